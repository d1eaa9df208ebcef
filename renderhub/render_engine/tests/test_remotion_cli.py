import asyncio
import json
import sys
import textwrap
from pathlib import Path

import pytest

from renderhub.common.errors import RenderEngineError
from renderhub.compositions.models import CompositionDescriptor, ResolvedComposition
from renderhub.render_engine.remotion_cli import RemotionCliEngine

FAKE_CLI = textwrap.dedent(
    """
    import json, os, sys, time
    args = sys.argv[1:]
    record = {"args": args}
    for arg in args:
        if arg.startswith("--props="):
            with open(arg.split("=", 1)[1]) as f:
                record["props"] = json.load(f)
    with open(os.environ["FAKE_REMOTION_LOG"], "a") as f:
        f.write(json.dumps(record) + "\\n")
    mode = os.environ.get("FAKE_REMOTION_MODE", "ok")
    if mode == "fail":
        sys.stderr.write("Error: composition crashed at frame 12\\n")
        sys.exit(1)
    if mode == "hang":
        time.sleep(5)
    if args[0] in ("render", "still"):
        with open(args[3], "wb") as f:
            f.write(b"rendered")
    """
)


@pytest.fixture
def cli(tmp_path, monkeypatch):
    script = tmp_path / "fake_remotion.py"
    script.write_text(FAKE_CLI)
    log = tmp_path / "calls.jsonl"
    monkeypatch.setenv("FAKE_REMOTION_LOG", str(log))
    engine = RemotionCliEngine(command=[sys.executable, str(script)])

    def calls():
        if not log.exists():
            return []
        return [json.loads(line) for line in log.read_text().splitlines() if line]

    return engine, calls


def _composition(props=None):
    descriptor = CompositionDescriptor(id="Intro", kind="still")
    return ResolvedComposition(descriptor=descriptor, props=props or {"titleText": "Hi"})


def test_bundle_passes_entry_point_config_and_out_dir(cli, tmp_path):
    engine, calls = cli
    out_dir = tmp_path / "bundle"
    location = asyncio.run(engine.bundle(Path("/app/src/index.ts"), Path("/app/remotion.config.ts"), out_dir))

    assert location == str(out_dir)
    args = calls()[0]["args"]
    assert args[:2] == ["bundle", "/app/src/index.ts"]
    assert f"--out-dir={out_dir}" in args
    assert "--config=/app/remotion.config.ts" in args


def test_render_still_writes_output_and_sends_props_file(cli, tmp_path):
    engine, calls = cli
    output = tmp_path / "Intro_still.png"
    asyncio.run(engine.render_still(_composition({"titleText": "Hi"}), "/tmp/bundle", output, {"titleText": "Hi"}))

    assert output.read_bytes() == b"rendered"
    record = calls()[0]
    assert record["args"][:4] == ["still", "/tmp/bundle", "Intro", str(output)]
    assert record["props"] == {"titleText": "Hi"}
    props_arg = next(a for a in record["args"] if a.startswith("--props="))
    assert not Path(props_arg.split("=", 1)[1]).exists()


def test_render_media_passes_codec(cli, tmp_path):
    engine, calls = cli
    output = tmp_path / "Intro.mp4"
    asyncio.run(engine.render_media(_composition(), "/tmp/bundle", output, "prores", {}))

    args = calls()[0]["args"]
    assert args[0] == "render"
    assert "--codec=prores" in args
    assert output.exists()


def test_nonzero_exit_raises_engine_error_with_stderr(cli, tmp_path, monkeypatch):
    engine, _ = cli
    monkeypatch.setenv("FAKE_REMOTION_MODE", "fail")
    with pytest.raises(RenderEngineError, match="composition crashed at frame 12"):
        asyncio.run(engine.render_still(_composition(), "/tmp/bundle", tmp_path / "x.png", {}))


def test_missing_binary_raises_engine_error(tmp_path):
    engine = RemotionCliEngine(command=[str(tmp_path / "no-such-remotion")])
    with pytest.raises(RenderEngineError, match="Could not start render engine"):
        asyncio.run(engine.bundle(Path("/app/src/index.ts"), out_dir=tmp_path / "b"))


def test_timeout_kills_process(cli, tmp_path, monkeypatch):
    engine, _ = cli
    engine.timeout = 0.3
    monkeypatch.setenv("FAKE_REMOTION_MODE", "hang")
    with pytest.raises(RenderEngineError, match="timed out"):
        asyncio.run(engine.render_still(_composition(), "/tmp/bundle", tmp_path / "x.png", {}))
