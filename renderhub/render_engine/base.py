"""
Render Engine Base
==================
Abstract interface for the external rendering engine.

The service never composites frames itself: it bundles the presentation
code once, then asks the engine for videos or stills.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from renderhub.compositions.models import ResolvedComposition

VideoCodec = Literal["h264", "h265", "prores"]


class RenderEngine(ABC):
    @abstractmethod
    async def bundle(
        self,
        entry_point: Path,
        config_path: Optional[Path] = None,
        out_dir: Optional[Path] = None,
    ) -> str:
        """
        Build the presentation entry point into a servable bundle.

        Returns:
            Location of the bundle (directory path or serve URL).

        Raises:
            RenderEngineError: If the build fails.
        """

    @abstractmethod
    async def render_media(
        self,
        composition: ResolvedComposition,
        serve_url: str,
        output_path: Path,
        codec: VideoCodec,
        input_props: Dict[str, Any],
    ) -> None:
        """Render a full video to ``output_path``."""

    @abstractmethod
    async def render_still(
        self,
        composition: ResolvedComposition,
        serve_url: str,
        output_path: Path,
        input_props: Dict[str, Any],
    ) -> None:
        """Render a single frame to ``output_path``."""
