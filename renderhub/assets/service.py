"""Media asset discovery over the public directory.

Everything here is derived from the directory tree at query time. Missing or
unreadable directories read as empty.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from renderhub.assets.models import AssetCategory, AssetEntry, AssetsResponse, DirectoryNode, FileNode, FileTreeNode
from renderhub.config import runtime_config

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = (".mp4", ".webm", ".mov", ".avi")
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")

# category -> (subdirectory, allowed extensions, description)
ASSET_CATEGORIES = {
    "videos": (
        "videos",
        VIDEO_EXTENSIONS,
        'Video files available for the VideoScreen composition. Use the "path" field in the videoSource prop.',
    ),
    "backdrops": (
        "backdrops",
        IMAGE_EXTENSIONS,
        'Background images for ImageScreen and other compositions. Use the "path" field in the imageSource prop.',
    ),
    "avatars": (
        "avatars",
        IMAGE_EXTENSIONS,
        'Avatar images for the AvatarScreen composition. Use the "path" field in the imageSource prop.',
    ),
}

ASSET_USAGE = {
    "videos": 'Use the "path" value (e.g. "videos/clip.mp4") in the VideoScreen videoSource prop',
    "backdrops": 'Use the "path" value (e.g. "backdrops/gradient-bg-1.jpg") in the ImageScreen imageSource prop',
    "avatars": 'Use the "path" value (e.g. "avatars/avatar-hand-fold.png") in the AvatarScreen imageSource prop',
}

_SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[unit]}"


def _sort_key(name: str):
    return (name.lower(), name)


def build_tree(root: str | Path, relative: str = "") -> List[FileTreeNode]:
    """Recursive tree of ``root``: directories first, then files, each alphabetical."""
    root = Path(root)
    try:
        children = list(root.iterdir())
    except OSError as exc:
        logger.debug(f"Cannot list {root}: {exc}")
        return []

    nodes = []
    for child in children:
        rel_path = f"{relative}/{child.name}" if relative else child.name
        try:
            stats = child.stat()
        except OSError:
            continue
        if child.is_dir():
            nodes.append(
                DirectoryNode(
                    name=child.name,
                    path=rel_path,
                    children=build_tree(child, rel_path),
                )
            )
        else:
            nodes.append(
                FileNode(
                    name=child.name,
                    path=rel_path,
                    size=stats.st_size,
                    modified=datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc),
                )
            )
    return sorted(nodes, key=lambda n: (n.type != "directory", *_sort_key(n.name)))


def _asset_entry(path: Path, rel_path: str) -> Optional[AssetEntry]:
    try:
        stats = path.stat()
    except OSError:
        return None
    modified = datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc)
    return AssetEntry(
        name=path.name,
        path=rel_path,
        url=f"/public/{rel_path}",
        size=stats.st_size,
        sizeFormatted=format_file_size(stats.st_size),
        modified=modified.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        extension=path.suffix.lower().lstrip("."),
    )


def list_category(public_dir: str | Path, category_dir: str, allowed_extensions: Iterable[str]) -> List[AssetEntry]:
    """Flat alphabetical listing of one category directory, filtered by extension."""
    directory = Path(public_dir) / category_dir
    allowed = {ext.lower() for ext in allowed_extensions}
    try:
        children = list(directory.iterdir())
    except OSError:
        return []
    entries = []
    for child in children:
        if child.suffix.lower() not in allowed or not child.is_file():
            continue
        entry = _asset_entry(child, f"{category_dir}/{child.name}")
        if entry is not None:
            entries.append(entry)
    return sorted(entries, key=lambda e: _sort_key(e.name))


def list_root_files(public_dir: str | Path) -> List[AssetEntry]:
    directory = Path(public_dir)
    try:
        children = list(directory.iterdir())
    except OSError:
        return []
    entries = []
    for child in children:
        if not child.is_file():
            continue
        entry = _asset_entry(child, child.name)
        if entry is not None:
            entries.append(entry)
    return sorted(entries, key=lambda e: _sort_key(e.name))


class AssetService:
    def __init__(self, public_dir: Optional[str | Path] = None) -> None:
        self.public_dir = Path(public_dir) if public_dir else runtime_config.get_public_dir()

    def public_file_tree(self) -> List[FileTreeNode]:
        return build_tree(self.public_dir)

    def collect_assets(self) -> AssetsResponse:
        assets = {}
        for category, (subdir, extensions, description) in ASSET_CATEGORIES.items():
            items = list_category(self.public_dir, subdir, extensions)
            assets[category] = AssetCategory(count=len(items), items=items, description=description)
        other = list_root_files(self.public_dir)
        assets["other"] = AssetCategory(
            count=len(other),
            items=other,
            description="Other assets in the public directory root",
        )
        return AssetsResponse(assets=assets, usage=dict(ASSET_USAGE))


_default_service: Optional[AssetService] = None


def get_asset_service() -> AssetService:
    global _default_service
    if _default_service is None:
        _default_service = AssetService()
    return _default_service


def set_asset_service(service: Optional[AssetService]) -> None:
    global _default_service
    _default_service = service
