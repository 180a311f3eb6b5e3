"""Field descriptors for dataclass and pydantic record types."""
from __future__ import annotations

import dataclasses
import types
import typing
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from recordmerge.records.atomic import is_atomic_type, registry_generation

_NONE_TYPE = type(None)

_ZERO_FACTORIES: Dict[type, Callable[[], Any]] = {
    bool: bool,
    int: int,
    float: float,
    complex: complex,
    str: str,
    bytes: bytes,
    bytearray: bytearray,
    list: list,
    dict: dict,
    set: set,
    frozenset: frozenset,
    tuple: tuple,
}

_DESCRIPTORS: Dict[type, Tuple["FieldSpec", ...]] = {}
_cache_generation = registry_generation()
_materializing: Set[type] = set()


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """How the merge engine sees one field of a record type."""

    name: str
    annotation: Any
    private: bool
    settable: bool
    nullable: bool
    nested: Optional[type]
    zero: Callable[[], Any]
    init: bool = True


def is_record_type(tp: object) -> bool:
    """Return True for dataclass and pydantic model classes."""
    if not isinstance(tp, type):
        return False
    return dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel)


def is_record(value: object) -> bool:
    """Return True for dataclass and pydantic model instances (not the classes)."""
    return not isinstance(value, type) and is_record_type(type(value))


def is_frozen_type(tp: type) -> bool:
    """True for frozen dataclasses and pydantic models configured with ``frozen=True``."""
    if dataclasses.is_dataclass(tp):
        return bool(tp.__dataclass_params__.frozen)  # type: ignore[attr-defined]
    if isinstance(tp, type) and issubclass(tp, BaseModel):
        return bool(tp.model_config.get("frozen", False))
    return False


def is_nullable(annotation: Any) -> bool:
    """True for ``Optional[...]``, ``X | None``, ``Any`` and ``object`` annotations."""
    if annotation is Any or annotation is object or annotation is None or annotation is _NONE_TYPE:
        return True
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        return _NONE_TYPE in typing.get_args(annotation)
    return False


def _nested_type(annotation: Any) -> Optional[type]:
    if typing.get_origin(annotation) is not None or not isinstance(annotation, type):
        return None
    if is_record_type(annotation) or is_atomic_type(annotation):
        return annotation
    return None


def zero_for(annotation: Any) -> Any:
    """Zero value for a declared annotation, ``None`` when there is no natural one."""
    if is_nullable(annotation):
        return None
    origin = typing.get_origin(annotation) or annotation
    factory = _ZERO_FACTORIES.get(origin) if isinstance(origin, type) else None
    if factory is not None:
        return factory()
    if is_record_type(annotation):
        return zero_record(annotation)
    return None


def _build_spec(
    name: str, annotation: Any, *, settable: bool, zero: Callable[[], Any], init: bool = True
) -> FieldSpec:
    private = name.startswith("_")
    nullable = is_nullable(annotation)
    return FieldSpec(
        name=name,
        annotation=annotation,
        private=private,
        settable=settable and not private,
        nullable=nullable,
        nested=None if nullable else _nested_type(annotation),
        zero=zero,
        init=init,
    )


def _dataclass_zero(field: dataclasses.Field, annotation: Any) -> Callable[[], Any]:
    if field.default is not dataclasses.MISSING:
        default = field.default
        return lambda: default
    if field.default_factory is not dataclasses.MISSING:
        return field.default_factory
    return lambda: zero_for(annotation)


def _describe_dataclass(record_type: type) -> Tuple[FieldSpec, ...]:
    try:
        hints = typing.get_type_hints(record_type)
    except (NameError, TypeError):
        # Forward references that cannot be resolved stay as strings (opaque leaves).
        hints = {}
    specs: List[FieldSpec] = []
    for field in dataclasses.fields(record_type):
        annotation = hints.get(field.name, field.type)
        specs.append(
            _build_spec(
                field.name,
                annotation,
                settable=True,
                zero=_dataclass_zero(field, annotation),
                init=field.init,
            )
        )
    return tuple(specs)


def _model_zero(info: FieldInfo) -> Callable[[], Any]:
    if not info.is_required():
        return lambda: info.get_default(call_default_factory=True)
    annotation = info.annotation
    return lambda: zero_for(annotation)


def _describe_model(record_type: type[BaseModel]) -> Tuple[FieldSpec, ...]:
    specs: List[FieldSpec] = []
    for name, info in record_type.model_fields.items():
        specs.append(
            _build_spec(name, info.annotation, settable=not info.frozen, zero=_model_zero(info))
        )
    return tuple(specs)


def describe_fields(record_type: type) -> Tuple[FieldSpec, ...]:
    """Return the ordered field descriptors of ``record_type``, cached per type."""
    global _cache_generation
    if _cache_generation != registry_generation():
        _DESCRIPTORS.clear()
        _cache_generation = registry_generation()
    cached = _DESCRIPTORS.get(record_type)
    if cached is not None:
        return cached
    if not is_record_type(record_type):
        raise TypeError(f"{record_type!r} is not a dataclass or pydantic model")
    if issubclass(record_type, BaseModel):
        specs = _describe_model(record_type)
    else:
        specs = _describe_dataclass(record_type)
    _DESCRIPTORS[record_type] = specs
    return specs


def zero_record(record_type: type) -> Any:
    """Build an instance of ``record_type`` holding defaults or zero values.

    The constructor is not run: dataclass ``__post_init__`` hooks and pydantic
    validators are skipped, the same way a zero value has no constructor. A
    record type that embeds itself without ``Optional`` gets ``None`` for the
    recursive field.
    """
    if record_type in _materializing:
        return None
    specs = describe_fields(record_type)
    _materializing.add(record_type)
    try:
        values = {spec.name: spec.zero() for spec in specs}
    finally:
        _materializing.discard(record_type)
    if issubclass(record_type, BaseModel):
        return record_type.model_construct(**values)
    instance = object.__new__(record_type)
    for name, value in values.items():
        object.__setattr__(instance, name, value)
    return instance


def rebuild(record: Any, updates: Dict[str, Any]) -> Any:
    """Return a copy of a frozen ``record`` with ``updates`` applied.

    Dataclasses go through ``dataclasses.replace``, so ``__post_init__`` runs;
    fields declared with ``init=False`` are set on the copy afterwards.
    Pydantic models use ``model_copy(update=...)``, which does not validate.
    """
    if isinstance(record, BaseModel):
        return record.model_copy(update=updates)
    init_names = {spec.name for spec in describe_fields(type(record)) if spec.init}
    rebuilt = dataclasses.replace(
        record, **{name: value for name, value in updates.items() if name in init_names}
    )
    for name, value in updates.items():
        if name not in init_names:
            object.__setattr__(rebuilt, name, value)
    return rebuilt
