from __future__ import annotations

import base64
import os

import pytest
from fastapi.testclient import TestClient

from renderhub.app import create_app
from renderhub.assets.service import AssetService, set_asset_service
from renderhub.compositions.registry import set_composition_registry
from renderhub.config import runtime_config
from renderhub.render_engine.service import set_render_engine
from renderhub.renders.service import RenderService, set_render_service
from renderhub.uploads.service import UploadService, set_upload_service
from tests.render_engine_stub import FakeRenderEngine, sample_registry


@pytest.fixture
def engine():
    return FakeRenderEngine()


@pytest.fixture
def client(engine):
    registry = sample_registry()
    set_render_engine(engine)
    set_composition_registry(registry)
    set_render_service(RenderService(engine=engine, registry=registry))
    set_asset_service(AssetService())
    set_upload_service(UploadService())
    with TestClient(create_app(), raise_server_exceptions=False) as test_client:
        yield test_client


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Server is running"
    assert body["timestamp"].endswith("Z")


def test_startup_creates_storage_directories(client):
    assert runtime_config.get_renders_dir().is_dir()
    assert runtime_config.get_public_dir().is_dir()


def test_render_still_then_serve_file(client):
    resp = client.post("/render/still", json={"compositionId": "Intro", "inputProps": {"titleText": "Hi"}})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["cached"] is False
    assert body["message"] == "Still rendered successfully"
    assert body["url"] == f"/renders/{body['filename']}"

    served = client.get(body["url"])
    assert served.status_code == 200
    assert served.content == b"png-bytes"


def test_cached_render_returns_same_file(client, engine):
    payload = {"compositionId": "IntroLong", "compositionCache": True}
    first = client.post("/render/video", json=payload).json()
    second = client.post("/render/video", json=payload).json()

    assert first["filename"] == second["filename"]
    assert second["cached"] is True
    assert second["message"] == "Using cached video"
    assert engine.render_calls == 1


def test_missing_composition_id_is_400(client):
    resp = client.post("/render/video", json={"inputProps": {}})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert "compositionId" in body["error"]


def test_unsupported_codec_is_400(client):
    resp = client.post("/render/video", json={"compositionId": "IntroLong", "codec": "vp9"})
    assert resp.status_code == 400


def test_unknown_composition_is_500_envelope(client):
    resp = client.post("/render/still", json={"compositionId": "Nope"})
    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert body["code"] == "composition.not_found"
    assert "Nope" in body["error"]


def test_engine_failure_is_500_envelope(client, engine):
    engine.render_error = RuntimeError("Chromium crashed")
    resp = client.post("/render/still", json={"compositionId": "Intro"})
    assert resp.status_code == 500
    body = resp.json()
    assert body == {"success": False, "error": "Chromium crashed", "code": "render_engine.failed", "details": {}}


def test_list_and_delete_renders(client):
    assert client.get("/renders").json() == {"success": True, "files": []}
    filename = client.post("/render/still", json={"compositionId": "Intro"}).json()["filename"]

    files = client.get("/renders").json()["files"]
    assert [f["filename"] for f in files] == [filename]
    assert files[0]["type"] == "still"

    resp = client.delete(f"/renders/{filename}")
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": f"File {filename} deleted successfully"}
    assert client.get("/renders").json()["files"] == []


def test_delete_missing_render_is_500(client):
    resp = client.delete("/renders/Intro_2024-01-01T00-00-00-000Z.png")
    assert resp.status_code == 500
    assert resp.json()["success"] is False


def test_compositions_include_public_tree(client):
    public = runtime_config.get_public_dir()
    os.makedirs(public / "avatars", exist_ok=True)
    (public / "avatars" / "me.png").write_bytes(b"img")

    body = client.get("/compositions").json()
    assert body["success"] is True
    ids = [c["id"] for c in body["compositions"]]
    assert ids == ["Intro", "IntroLong", "Typewriter"]
    typewriter = body["compositions"][2]
    assert typewriter["durationInFrames"] == 120
    assert typewriter["defaultProps"] == {"text": "Typewriter Effect", "speed": 3}
    tree = body["publicFileTree"]
    assert tree[0]["name"] == "avatars"
    assert tree[0]["type"] == "directory"
    assert tree[0]["children"][0]["path"] == "avatars/me.png"


def test_assets(client):
    public = runtime_config.get_public_dir()
    os.makedirs(public / "videos", exist_ok=True)
    (public / "videos" / "clip.mp4").write_bytes(b"v" * 2048)

    body = client.get("/assets").json()
    video = body["assets"]["videos"]["items"][0]
    assert video["path"] == "videos/clip.mp4"
    assert video["url"] == "/public/videos/clip.mp4"
    assert video["sizeFormatted"] == "2 KB"
    assert body["assets"]["backdrops"]["count"] == 0
    assert "videos" in body["usage"]


def test_upload_image_and_serve_it(client):
    data = b"\x89PNG\r\n\x1a\nimage"
    payload = "data:image/png;base64," + base64.b64encode(data).decode()

    resp = client.post("/upload/image", json={"base64Data": payload})
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Image uploaded successfully"
    assert body["filename"].startswith("uploaded_") and body["filename"].endswith(".png")
    assert body["url"] == f"/public/{body['filename']}"
    assert client.get(body["url"]).content == data


@pytest.mark.parametrize("payload", [{}, {"base64Data": "not-a-data-uri"}, {"base64Data": 42}])
def test_upload_rejects_bad_payload(client, payload):
    resp = client.post("/upload/image", json=payload)
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_gallery_missing_is_404(client):
    resp = client.get("/gallery")
    assert resp.status_code == 404
    assert resp.json()["success"] is False


def test_gallery_served_when_present(client):
    runtime_config.get_gallery_page().write_text("<html>gallery</html>")
    resp = client.get("/gallery")
    assert resp.status_code == 200
    assert "gallery" in resp.text


def test_missing_static_file_is_404(client):
    resp = client.get("/renders/nothing-here.mp4")
    assert resp.status_code == 404


def test_cors_headers(client):
    resp = client.get("/health", headers={"Origin": "http://example.com"})
    assert resp.headers["access-control-allow-origin"] == "*"
