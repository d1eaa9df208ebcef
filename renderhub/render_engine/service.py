from __future__ import annotations

from typing import Optional

from renderhub.render_engine.base import RenderEngine
from renderhub.render_engine.remotion_cli import RemotionCliEngine

_default_engine: Optional[RenderEngine] = None


def get_render_engine() -> RenderEngine:
    global _default_engine
    if _default_engine is None:
        _default_engine = RemotionCliEngine()
    return _default_engine


def set_render_engine(engine: Optional[RenderEngine]) -> None:
    global _default_engine
    _default_engine = engine
