from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from renderhub.bundle.service import BundleManager, get_bundle_manager
from renderhub.common.errors import FilesystemError, RenderEngineError, ValidationError
from renderhub.compositions.registry import CompositionRegistry, get_composition_registry
from renderhub.config import runtime_config
from renderhub.render_engine.base import RenderEngine
from renderhub.renders.artifacts import ArtifactIndex, compute_cache_key, generate_filename, kind_for_filename
from renderhub.renders.models import (
    ArtifactKind,
    RenderedArtifact,
    RenderFileInfo,
    RenderResult,
    RenderStillRequest,
    RenderVideoRequest,
    _RenderRequestBase,
)
from renderhub.renders.retention import RetentionManager

logger = logging.getLogger(__name__)


def render_url(filename: str) -> str:
    return f"/renders/{filename}"


class RenderService:
    def __init__(
        self,
        bundle_manager: Optional[BundleManager] = None,
        registry: Optional[CompositionRegistry] = None,
        renders_dir: Optional[str | Path] = None,
        index: Optional[ArtifactIndex] = None,
        retention: Optional[RetentionManager] = None,
        keep: Optional[int] = None,
        engine: Optional[RenderEngine] = None,
    ) -> None:
        self.bundle_manager = bundle_manager or (BundleManager(engine) if engine else get_bundle_manager())
        self.engine = engine or self.bundle_manager.engine
        self.registry = registry or get_composition_registry()
        self.renders_dir = Path(renders_dir) if renders_dir else runtime_config.get_renders_dir()
        self.index = index or ArtifactIndex(self.renders_dir, runtime_config.get_artifact_index_file())
        self.keep = keep if keep is not None else runtime_config.get_retention_keep()
        self.retention = retention or RetentionManager(self.renders_dir, index=self.index, keep=self.keep)
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, composition_id: str) -> asyncio.Lock:
        lock = self._locks.get(composition_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[composition_id] = lock
        return lock

    def _ensure_renders_dir(self) -> None:
        try:
            self.renders_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(f"Cannot create renders directory {self.renders_dir}: {exc}") from exc

    async def _next_filename(self, composition_id: str, kind: ArtifactKind) -> str:
        # Timestamps have millisecond resolution; renders of one composition are
        # serialized, so waiting out the current millisecond keeps names unique.
        filename = generate_filename(composition_id, kind)
        while await asyncio.to_thread((self.renders_dir / filename).exists):
            await asyncio.sleep(0.001)
            filename = generate_filename(composition_id, kind)
        return filename

    async def render_video(self, req: RenderVideoRequest) -> RenderResult:
        return await self.render(req, "video")

    async def render_still(self, req: RenderStillRequest) -> RenderResult:
        return await self.render(req, "still")

    async def render(self, req: _RenderRequestBase, kind: ArtifactKind) -> RenderResult:
        composition_id = req.composition_id
        props = req.props

        # Unknown ids never get a lock entry.
        self.registry.require(composition_id)

        # check -> render -> prune runs exclusively per composition
        async with self._lock_for(composition_id):
            if req.composition_cache:
                cached = await asyncio.to_thread(self.index.find_cached, composition_id, kind, props)
                if cached is not None:
                    logger.info(f"Cache hit for {composition_id} ({kind}): {cached.filename}")
                    return RenderResult(
                        message=f"Using cached {kind}",
                        filename=cached.filename,
                        url=render_url(cached.filename),
                        cached=True,
                    )

            serve_url = await self.bundle_manager.get_bundle()
            composition = self.registry.resolve(composition_id, props)

            await asyncio.to_thread(self._ensure_renders_dir)
            filename = await self._next_filename(composition_id, kind)
            output_path = self.renders_dir / filename

            logger.info(f"Rendering {kind}: {composition_id} to {filename}")
            try:
                if kind == "video":
                    codec = getattr(req, "codec", "h264")
                    await self.engine.render_media(composition, serve_url, output_path, codec, props)
                else:
                    await self.engine.render_still(composition, serve_url, output_path, props)
            except RenderEngineError:
                raise
            except Exception as exc:
                raise RenderEngineError(str(exc) or exc.__class__.__name__) from exc

            if not output_path.is_file():
                raise RenderEngineError(f"Render engine reported success but produced no file at {output_path}")

            artifact = RenderedArtifact(
                filename=filename,
                path=str(output_path),
                kind=kind,
                composition_id=composition_id,
                cache_key=compute_cache_key(composition_id, kind, props),
            )
            await asyncio.to_thread(self.index.record, artifact)
            await asyncio.to_thread(self.retention.prune, composition_id, kind, self.keep)

        return RenderResult(
            message=f"{kind.capitalize()} rendered successfully",
            filename=filename,
            url=render_url(filename),
            cached=False,
        )

    def list_renders(self) -> List[RenderFileInfo]:
        try:
            children = list(self.renders_dir.iterdir())
        except OSError as exc:
            logger.warning(f"Cannot list renders directory {self.renders_dir}: {exc}")
            return []
        files = []
        for path in children:
            if path.name.startswith("."):
                continue
            try:
                stats = path.stat()
            except OSError:
                continue
            if not path.is_file():
                continue
            created = getattr(stats, "st_birthtime", None) or stats.st_ctime
            files.append(
                RenderFileInfo(
                    filename=path.name,
                    size=stats.st_size,
                    created=datetime.fromtimestamp(created, tz=timezone.utc),
                    modified=datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc),
                    type=kind_for_filename(path.name) or "unknown",
                )
            )
        return sorted(files, key=lambda f: f.modified, reverse=True)

    def delete_render(self, filename: str) -> str:
        if not filename or filename in {".", ".."} or "/" in filename or "\\" in filename:
            raise ValidationError(f"Invalid filename: {filename!r}")
        path = self.renders_dir / filename
        try:
            path.unlink()
        except OSError as exc:
            raise FilesystemError(f"Could not delete {filename}: {exc.strerror or exc}") from exc
        self.index.discard(filename)
        logger.info(f"Deleted render {filename}")
        return f"File {filename} deleted successfully"


_default_service: Optional[RenderService] = None


def get_render_service() -> RenderService:
    global _default_service
    if _default_service is None:
        _default_service = RenderService()
    return _default_service


def set_render_service(service: Optional[RenderService]) -> None:
    global _default_service
    _default_service = service
