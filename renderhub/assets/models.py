from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Union

from pydantic import BaseModel, Field


class AssetEntry(BaseModel):
    name: str
    path: str
    url: str
    size: int
    sizeFormatted: str
    modified: str
    extension: str


class FileNode(BaseModel):
    name: str
    path: str
    type: Literal["file"] = "file"
    size: int
    modified: datetime


class DirectoryNode(BaseModel):
    name: str
    path: str
    type: Literal["directory"] = "directory"
    children: List[FileTreeNode] = Field(default_factory=list)


FileTreeNode = Union[DirectoryNode, FileNode]

DirectoryNode.model_rebuild()


class AssetCategory(BaseModel):
    count: int = 0
    items: List[AssetEntry] = Field(default_factory=list)
    description: str = ""


class AssetsResponse(BaseModel):
    success: bool = True
    assets: Dict[str, AssetCategory] = Field(default_factory=dict)
    usage: Dict[str, str] = Field(default_factory=dict)
