"""Artifact naming and the artifact index.

Rendered files are named ``{composition_id}_{timestamp}.{ext}``. The index maps
each file to the composition, kind and cache key it was rendered with, and is
persisted as JSONL so cache hits survive a restart.

Each index line is: {"key": "<filename>", "data": <artifact>, "timestamp": "ISO-8601"}
"""
from __future__ import annotations

import hashlib
import json
import logging
import re
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from renderhub.renders.models import ARTIFACT_EXTENSIONS, ArtifactKind, RenderedArtifact

logger = logging.getLogger(__name__)

TIMESTAMP_PATTERN = r"\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{3}Z"


def artifact_extension(kind: ArtifactKind) -> str:
    return ARTIFACT_EXTENSIONS[kind]


def format_timestamp(now: Optional[datetime] = None) -> str:
    """UTC ISO-8601 with millisecond precision, ':' and '.' replaced by '-'."""
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    iso = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return iso.replace(":", "-").replace(".", "-")


def generate_filename(composition_id: str, kind: ArtifactKind, now: Optional[datetime] = None) -> str:
    return f"{composition_id}_{format_timestamp(now)}.{artifact_extension(kind)}"


def matches_artifact(filename: str, composition_id: str, kind: ArtifactKind) -> bool:
    pattern = rf"^{re.escape(composition_id)}_{TIMESTAMP_PATTERN}\.{artifact_extension(kind)}$"
    return re.match(pattern, filename) is not None


def kind_for_filename(filename: str) -> Optional[ArtifactKind]:
    for kind, ext in ARTIFACT_EXTENSIONS.items():
        if filename.endswith(f".{ext}"):
            return kind  # type: ignore[return-value]
    return None


def compute_cache_key(composition_id: str, kind: ArtifactKind, input_props: Optional[Dict[str, Any]]) -> str:
    normalized = json.dumps(
        {"composition_id": composition_id, "kind": kind, "props": input_props or {}},
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


class ArtifactIndex:
    """In-memory artifact map backed by a JSONL file."""

    def __init__(self, renders_dir: str | Path, index_file: Optional[str | Path] = None) -> None:
        self.renders_dir = Path(renders_dir)
        self.index_file = Path(index_file) if index_file else None
        self._records: Dict[str, RenderedArtifact] = {}
        self._loaded = False
        self._lock = threading.Lock()

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        if not self.index_file or not self.index_file.exists():
            return
        try:
            with open(self.index_file, "rb") as f:
                for raw in f:
                    try:
                        line = raw.decode("utf-8").strip()
                        if not line:
                            continue
                        record = json.loads(line)
                        artifact = RenderedArtifact.model_validate(record["data"])
                    except Exception as exc:
                        logger.warning(f"Skipping malformed line in {self.index_file}: {exc}")
                        continue
                    if (self.renders_dir / artifact.filename).exists():
                        self._records[artifact.filename] = artifact
        except OSError as exc:
            logger.warning(f"Failed to read {self.index_file}: {exc}")

    def _persist(self) -> None:
        if not self.index_file:
            return
        try:
            self.index_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.index_file, "w") as f:
                for artifact in self._records.values():
                    record = {
                        "key": artifact.filename,
                        "data": artifact.model_dump(mode="json"),
                        "timestamp": datetime.now(timezone.utc).isoformat(),
                    }
                    f.write(json.dumps(record) + "\n")
        except OSError as exc:
            # The in-memory map stays authoritative for this process.
            logger.error(f"Failed to write artifact index {self.index_file}: {exc}")

    def record(self, artifact: RenderedArtifact) -> RenderedArtifact:
        with self._lock:
            self._ensure_loaded()
            self._records[artifact.filename] = artifact
            self._persist()
        return artifact

    def discard(self, filename: str) -> None:
        with self._lock:
            self._ensure_loaded()
            if self._records.pop(filename, None) is not None:
                self._persist()

    def get(self, filename: str) -> Optional[RenderedArtifact]:
        with self._lock:
            self._ensure_loaded()
            return self._records.get(filename)

    def entries(self, composition_id: Optional[str] = None, kind: Optional[ArtifactKind] = None) -> List[RenderedArtifact]:
        with self._lock:
            self._ensure_loaded()
            results = list(self._records.values())
        if composition_id:
            results = [a for a in results if a.composition_id == composition_id]
        if kind:
            results = [a for a in results if a.kind == kind]
        return sorted(results, key=lambda a: a.created_at, reverse=True)

    def find_cached(
        self,
        composition_id: str,
        kind: ArtifactKind,
        input_props: Optional[Dict[str, Any]] = None,
    ) -> Optional[RenderedArtifact]:
        """Newest artifact rendered with the same composition, kind and props."""
        cache_key = compute_cache_key(composition_id, kind, input_props)
        with self._lock:
            self._ensure_loaded()
            candidates = sorted(
                (a for a in self._records.values() if a.cache_key == cache_key and a.kind == kind),
                key=lambda a: a.created_at,
                reverse=True,
            )
            stale = []
            hit = None
            for artifact in candidates:
                if (self.renders_dir / artifact.filename).is_file():
                    hit = artifact
                    break
                stale.append(artifact.filename)
            for filename in stale:
                self._records.pop(filename, None)
            if stale:
                self._persist()
        return hit
