"""Retention of rendered artifacts.

Keeps the newest ``keep`` files per (composition, kind). Pruning is best
effort: failures are logged and never reach the render that triggered it.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from renderhub.config import runtime_config
from renderhub.renders.artifacts import ArtifactIndex, matches_artifact
from renderhub.renders.models import ArtifactKind

logger = logging.getLogger(__name__)


class RetentionManager:
    def __init__(
        self,
        renders_dir: str | Path,
        index: Optional[ArtifactIndex] = None,
        keep: Optional[int] = None,
    ) -> None:
        self.renders_dir = Path(renders_dir)
        self.index = index
        self.keep = keep if keep is not None else runtime_config.get_retention_keep()

    def _matching_files(self, composition_id: str, kind: ArtifactKind) -> List[Tuple[float, Path]]:
        try:
            children = list(self.renders_dir.iterdir())
        except OSError as exc:
            logger.warning(f"Cannot list {self.renders_dir} for cleanup: {exc}")
            return []
        files = []
        for path in children:
            if not matches_artifact(path.name, composition_id, kind):
                continue
            try:
                files.append((path.stat().st_mtime, path))
            except OSError:
                # Deleted between listing and stat.
                continue
        return files

    def prune(self, composition_id: str, kind: ArtifactKind, keep: Optional[int] = None) -> List[str]:
        """Delete all but the ``keep`` most recently modified artifacts; returns deleted names."""
        keep = self.keep if keep is None else keep
        files = self._matching_files(composition_id, kind)
        # Names embed a millisecond timestamp, so they break mtime ties.
        files.sort(key=lambda item: (item[0], item[1].name), reverse=True)
        deleted = []
        for _, path in files[max(keep, 0):]:
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            except OSError as exc:
                logger.error(f"Error deleting file {path.name}: {exc}")
                continue
            deleted.append(path.name)
            if self.index is not None:
                self.index.discard(path.name)
            logger.info(f"Cleaned up old file: {path.name}")
        return deleted
