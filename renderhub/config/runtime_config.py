"""Runtime configuration helpers for the render service."""
from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import List, Optional

DEFAULT_PORT = 3000
DEFAULT_RETENTION_KEEP = 10


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def _get_int(name: str, default: int) -> int:
    raw = _get_env(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_port() -> int:
    return _get_int("PORT", DEFAULT_PORT)


def get_host() -> str:
    return _get_env("HOST") or "0.0.0.0"


def get_log_level() -> str:
    return (_get_env("LOG_LEVEL") or "INFO").upper()


def get_renders_dir() -> Path:
    return Path(_get_env("RENDERS_DIR") or "./renders").resolve()


def get_artifact_index_file() -> Path:
    return Path(_get_env("ARTIFACT_INDEX_FILE") or "./var/artifact_index.jsonl").resolve()


def get_public_dir() -> Path:
    return Path(_get_env("PUBLIC_DIR") or "./public").resolve()


def get_entry_point() -> Path:
    return Path(_get_env("REMOTION_ENTRY_POINT") or "./src/index.ts").resolve()


def get_bundle_config() -> Optional[Path]:
    """Build config handed to the bundler (webpack overrides such as Tailwind)."""
    raw = _get_env("REMOTION_CONFIG")
    return Path(raw).resolve() if raw else None


def get_bundle_out_dir() -> Optional[Path]:
    raw = _get_env("REMOTION_BUNDLE_DIR")
    return Path(raw).resolve() if raw else None


def get_remotion_command() -> List[str]:
    return shlex.split(_get_env("REMOTION_BIN") or "npx remotion")


def get_engine_timeout() -> Optional[float]:
    raw = _get_env("REMOTION_TIMEOUT")
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def get_compositions_file() -> Path:
    return Path(_get_env("COMPOSITIONS_FILE") or "./compositions.yaml").resolve()


def get_retention_keep() -> int:
    return max(_get_int("RETENTION_KEEP", DEFAULT_RETENTION_KEEP), 1)


def get_gallery_page() -> Path:
    return Path(_get_env("GALLERY_PAGE") or "./composition-gallery.html").resolve()
