"""Bundle lifecycle.

One servable bundle per process, built lazily on first use and kept until
the process exits. Concurrent first callers share a single build.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from renderhub.config import runtime_config
from renderhub.render_engine.base import RenderEngine
from renderhub.render_engine.service import get_render_engine

logger = logging.getLogger(__name__)


class BundleManager:
    def __init__(
        self,
        engine: RenderEngine,
        entry_point: Optional[Path] = None,
        config_path: Optional[Path] = None,
        out_dir: Optional[Path] = None,
    ) -> None:
        self.engine = engine
        self.entry_point = entry_point or runtime_config.get_entry_point()
        self.config_path = config_path if config_path is not None else runtime_config.get_bundle_config()
        self.out_dir = out_dir if out_dir is not None else runtime_config.get_bundle_out_dir()
        self._location: Optional[str] = None
        self._lock = asyncio.Lock()

    @property
    def location(self) -> Optional[str]:
        return self._location

    async def get_bundle(self) -> str:
        if self._location is not None:
            return self._location
        async with self._lock:
            # A concurrent caller may have finished the build while we waited.
            if self._location is None:
                logger.info(f"Creating bundle from {self.entry_point}")
                location = await self.engine.bundle(self.entry_point, self.config_path, self.out_dir)
                self._location = location
                logger.info(f"Bundle created at: {location}")
        return self._location


_default_manager: Optional[BundleManager] = None


def get_bundle_manager() -> BundleManager:
    global _default_manager
    if _default_manager is None:
        _default_manager = BundleManager(engine=get_render_engine())
    return _default_manager


def set_bundle_manager(manager: Optional[BundleManager]) -> None:
    global _default_manager
    _default_manager = manager
