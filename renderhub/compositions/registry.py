"""Composition registry adapters.

The registry is populated outside this service; adapters only look descriptors
up and validate input props against the descriptor's prop schema.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Type

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError, create_model

from renderhub.common.errors import CompositionNotFound, InvalidInputProps
from renderhub.compositions.models import CompositionDescriptor, PropField, ResolvedComposition
from renderhub.config import runtime_config

logger = logging.getLogger(__name__)

_TYPE_MAP: Dict[str, Any] = {
    "string": str,
    "number": float,
    "integer": int,
    "boolean": bool,
    "array": list,
    "object": dict,
    "any": Any,
}


def _field_type(field: PropField) -> Any:
    if field.enum:
        return Literal[tuple(field.enum)]  # type: ignore[misc]
    return _TYPE_MAP.get(field.type, Any)


def build_props_model(descriptor: CompositionDescriptor) -> Type[BaseModel]:
    fields: Dict[str, Any] = {}
    for name, field in descriptor.props_schema.items():
        ftype = _field_type(field)
        if field.required:
            fields[name] = (ftype, ...)
        else:
            fields[name] = (Optional[ftype], None)
    config = ConfigDict(extra="forbid" if descriptor.strict else "allow")
    return create_model(f"{descriptor.id}Props", __config__=config, **fields)


def _format_errors(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


class CompositionRegistry:
    def __init__(self) -> None:
        self._models: Dict[str, Type[BaseModel]] = {}

    def list(self) -> List[CompositionDescriptor]:
        raise NotImplementedError

    def get(self, composition_id: str) -> Optional[CompositionDescriptor]:
        raise NotImplementedError

    def require(self, composition_id: str) -> CompositionDescriptor:
        descriptor = self.get(composition_id)
        if descriptor is None:
            raise CompositionNotFound(
                f"Could not find composition with ID {composition_id}",
                details={"composition_id": composition_id},
            )
        return descriptor

    def resolve(self, composition_id: str, input_props: Optional[Dict[str, Any]] = None) -> ResolvedComposition:
        descriptor = self.require(composition_id)
        merged = {**descriptor.default_props, **(input_props or {})}
        model = self._models.get(descriptor.id)
        if model is None:
            model = build_props_model(descriptor)
            self._models[descriptor.id] = model
        try:
            validated = model.model_validate(merged)
        except PydanticValidationError as exc:
            raise InvalidInputProps(
                f"Invalid input props for {composition_id}: {_format_errors(exc)}",
                details={"composition_id": composition_id},
            ) from exc
        props = {k: v for k, v in validated.model_dump().items() if k in merged}
        return ResolvedComposition(descriptor=descriptor, props=props)


class InMemoryCompositionRegistry(CompositionRegistry):
    def __init__(self, descriptors: Optional[List[CompositionDescriptor]] = None) -> None:
        super().__init__()
        self._descriptors: Dict[str, CompositionDescriptor] = {}
        for descriptor in descriptors or []:
            self.register(descriptor)

    def register(self, descriptor: CompositionDescriptor) -> CompositionDescriptor:
        self._descriptors[descriptor.id] = descriptor
        self._models.pop(descriptor.id, None)
        return descriptor

    def list(self) -> List[CompositionDescriptor]:
        return list(self._descriptors.values())

    def get(self, composition_id: str) -> Optional[CompositionDescriptor]:
        return self._descriptors.get(composition_id)


class YamlCompositionRegistry(CompositionRegistry):
    """Descriptors loaded once from a YAML document.

    The document is either a list of descriptors or a mapping with a
    ``compositions`` key holding that list.
    """

    def __init__(self, path: Optional[str | Path] = None) -> None:
        super().__init__()
        self._path = Path(path) if path else runtime_config.get_compositions_file()
        self._cache: Optional[Dict[str, CompositionDescriptor]] = None

    def _load(self) -> Dict[str, CompositionDescriptor]:
        if self._cache is not None:
            return self._cache
        if not self._path.exists():
            logger.warning(f"Composition registry file not found: {self._path}")
            self._cache = {}
            return self._cache
        with open(self._path, "r") as f:
            raw = yaml.safe_load(f) or []
        if isinstance(raw, dict):
            raw = raw.get("compositions") or []
        descriptors = [CompositionDescriptor.model_validate(item) for item in raw]
        self._cache = {d.id: d for d in descriptors}
        logger.info(f"Loaded {len(self._cache)} compositions from {self._path}")
        return self._cache

    def list(self) -> List[CompositionDescriptor]:
        return list(self._load().values())

    def get(self, composition_id: str) -> Optional[CompositionDescriptor]:
        return self._load().get(composition_id)


_default_registry: Optional[CompositionRegistry] = None


def get_composition_registry() -> CompositionRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = YamlCompositionRegistry()
    return _default_registry


def set_composition_registry(registry: Optional[CompositionRegistry]) -> None:
    global _default_registry
    _default_registry = registry
