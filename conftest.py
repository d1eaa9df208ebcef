import os
import sys
from pathlib import Path

import pytest

# Ensure repo root on sys.path for imports from anywhere in tests tree.
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("REMOTION_BIN", "false")

from renderhub.assets.service import set_asset_service  # noqa: E402
from renderhub.bundle.service import set_bundle_manager  # noqa: E402
from renderhub.compositions.registry import set_composition_registry  # noqa: E402
from renderhub.render_engine.service import set_render_engine  # noqa: E402
from renderhub.renders.service import set_render_service  # noqa: E402
from renderhub.uploads.service import set_upload_service  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_storage(tmp_path, monkeypatch):
    """Point every storage location at a per-test directory and drop cached services."""
    monkeypatch.setenv("RENDERS_DIR", str(tmp_path / "renders"))
    monkeypatch.setenv("PUBLIC_DIR", str(tmp_path / "public"))
    monkeypatch.setenv("ARTIFACT_INDEX_FILE", str(tmp_path / "var" / "artifact_index.jsonl"))
    monkeypatch.setenv("COMPOSITIONS_FILE", str(tmp_path / "compositions.yaml"))
    monkeypatch.setenv("GALLERY_PAGE", str(tmp_path / "composition-gallery.html"))
    monkeypatch.delenv("RETENTION_KEEP", raising=False)
    for reset in (
        set_render_service,
        set_bundle_manager,
        set_composition_registry,
        set_render_engine,
        set_asset_service,
        set_upload_service,
    ):
        reset(None)
    yield
