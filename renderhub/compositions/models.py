from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from renderhub.assets.models import FileTreeNode

CompositionKind = Literal["still", "video"]
PropType = Literal["string", "number", "integer", "boolean", "array", "object", "any"]


class PropField(BaseModel):
    type: PropType = "any"
    required: bool = False
    description: Optional[str] = None
    enum: Optional[List[Any]] = None


class CompositionDescriptor(BaseModel):
    id: str
    kind: CompositionKind = "video"
    width: int = 1920
    height: int = 1080
    fps: int = 30
    duration_in_frames: int = 1
    props_schema: Dict[str, PropField] = Field(default_factory=dict)
    default_props: Dict[str, Any] = Field(default_factory=dict)
    # Unknown props are passed through unless the schema is strict.
    strict: bool = False


class ResolvedComposition(BaseModel):
    descriptor: CompositionDescriptor
    props: Dict[str, Any] = Field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.descriptor.id

    @property
    def kind(self) -> CompositionKind:
        return self.descriptor.kind


class CompositionSummary(BaseModel):
    id: str
    kind: CompositionKind
    width: int
    height: int
    fps: int
    durationInFrames: int
    defaultProps: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_descriptor(cls, descriptor: CompositionDescriptor) -> "CompositionSummary":
        return cls(
            id=descriptor.id,
            kind=descriptor.kind,
            width=descriptor.width,
            height=descriptor.height,
            fps=descriptor.fps,
            durationInFrames=descriptor.duration_in_frames,
            defaultProps=descriptor.default_props,
        )


class CompositionListResponse(BaseModel):
    success: bool = True
    compositions: List[CompositionSummary] = Field(default_factory=list)
    publicFileTree: List[FileTreeNode] = Field(default_factory=list)
