"""Field-by-field merging of two records of the same type."""
from __future__ import annotations

import copy
from typing import AbstractSet, Any, Callable, Dict, Optional, TypeVar

from recordmerge.config.options import DEFAULT_CONFIG, MergeConfig, MergePolicy
from recordmerge.engine.emptiness import is_zero
from recordmerge.engine.errors import InvalidDestinationError, InvalidSourceError, TypeMismatchError
from recordmerge.engine.protocols import Merger
from recordmerge.observability.log import get_logger
from recordmerge.records.atomic import is_atomic_type
from recordmerge.records.fields import (
    FieldSpec,
    describe_fields,
    is_frozen_type,
    is_record,
    rebuild,
    zero_record,
)

LOGGER = get_logger(__name__)

R = TypeVar("R")


def merge(destination: R, source: R, config: Optional[MergeConfig] = None) -> R:
    """Merge ``source`` into ``destination`` and return the merged destination.

    Records are updated in place, so the return value is ``destination``
    itself. The exceptions:

    * a ``None`` destination is replaced by a zero-valued instance of the
      source's type before merging;
    * a frozen record is walked like any other and then rebuilt with the
      merged values, and the rebuilt copy is returned (the destination
      itself when nothing changed);
    * an atomic destination (``datetime`` and friends, registered types)
      is returned as the source value.

    Leaf values are assigned by reference; ``source`` is never modified.

    Raises:
        InvalidDestinationError: ``destination`` is not a record.
        InvalidSourceError: ``source`` is not a record.
        TypeMismatchError: the two records are of different types.
    """
    cfg = config if config is not None else DEFAULT_CONFIG
    if destination is None and is_record(source):
        destination = zero_record(type(source))
    return _merge_values(destination, source, cfg, "")


def merge_copy(destination: R, source: R, config: Optional[MergeConfig] = None) -> R:
    """Like :func:`merge` but into a deep copy; ``destination`` stays untouched on failure too."""
    return merge(copy.deepcopy(destination), source, config)


def should_include(path: str, include: AbstractSet[str]) -> bool:
    """Exact match, or a top-level field that prefixes some included path."""
    if path in include:
        return True
    if "." not in path:
        return any(key.startswith(path) for key in include)
    return False


def _should_set(policy: MergePolicy, spec: FieldSpec, dst_value: Any, src_value: Any) -> bool:
    if policy is MergePolicy.EXCLUDE_EMPTY:
        return not is_zero(src_value, spec.nullable)
    if policy is MergePolicy.OVERWRITE_EMPTY:
        return is_zero(dst_value, spec.nullable)
    return True


def _is_mergeable(value: Any) -> bool:
    return is_record(value) or is_atomic_type(type(value))


def _validate(dst: Any, src: Any, prefix: str) -> None:
    path = prefix.rstrip(".")
    if isinstance(dst, type) or not _is_mergeable(dst):
        LOGGER.debug("merge_rejected", path=path, reason="invalid_destination", dst_type=type(dst).__name__)
        raise InvalidDestinationError(path=path)
    if isinstance(src, type) or not _is_mergeable(src):
        LOGGER.debug("merge_rejected", path=path, reason="invalid_source", src_type=type(src).__name__)
        raise InvalidSourceError(path=path)
    if type(dst) is not type(src):
        LOGGER.debug(
            "merge_rejected",
            path=path,
            reason="type_mismatch",
            dst_type=type(dst).__name__,
            src_type=type(src).__name__,
        )
        raise TypeMismatchError(path=path)


def _override_of(value: Any) -> Optional[Callable[[Any], None]]:
    """Bound ``merge`` of a value whose class opted into :class:`Merger`, else ``None``."""
    cls = type(value)
    if Merger not in cls.__mro__ and not getattr(cls, "__merge_override__", False):
        return None
    if is_record(value) and any(spec.name == "merge" for spec in describe_fields(cls)):
        return None
    if not callable(getattr(cls, "merge", None)):
        return None
    return value.merge


def _merge_values(dst: Any, src: Any, config: MergeConfig, prefix: str) -> Any:
    _validate(dst, src, prefix)

    if is_atomic_type(type(dst)):
        LOGGER.debug("merge_atomic", path=prefix.rstrip("."), record_type=type(dst).__name__)
        return src

    override = _override_of(dst)
    if override is not None:
        LOGGER.debug("merge_override", path=prefix.rstrip("."), record_type=type(dst).__name__)
        override(src)
        return dst

    if not prefix:
        LOGGER.debug("merge_start", record_type=type(dst).__name__, policy=config.policy.value)

    include = frozenset(config.include)
    exclude = frozenset(config.exclude)
    # Frozen records collect their new values and are rebuilt once at the end.
    updates: Optional[Dict[str, Any]] = {} if is_frozen_type(type(dst)) else None

    def assign(name: str, value: Any) -> None:
        if updates is None:
            setattr(dst, name, value)
        else:
            updates[name] = value

    for spec in describe_fields(type(dst)):
        path = prefix + spec.name

        if include and not should_include(path, include):
            LOGGER.debug("merge_field_skipped", path=path, reason="not_included")
            continue
        if path in exclude:
            LOGGER.debug("merge_field_skipped", path=path, reason="excluded")
            continue
        if spec.private:
            LOGGER.debug("merge_field_skipped", path=path, reason="private")
            continue

        dst_value = getattr(dst, spec.name)
        src_value = getattr(src, spec.name)

        field_override = _override_of(dst_value)
        if field_override is not None:
            LOGGER.debug("merge_override", path=path, record_type=type(dst_value).__name__)
            field_override(src_value)
            continue

        if not spec.settable:
            LOGGER.debug("merge_field_skipped", path=path, reason="frozen")
            continue

        if spec.nested is not None:
            if is_atomic_type(spec.nested):
                LOGGER.debug("merge_atomic", path=path, record_type=spec.nested.__name__)
                assign(spec.name, src_value)
                continue
            target = zero_record(spec.nested) if dst_value is None else dst_value
            merged = _merge_values(target, src_value, config, path + ".")
            if merged is not dst_value:
                assign(spec.name, merged)
            continue

        if _should_set(config.policy, spec, dst_value, src_value):
            assign(spec.name, src_value)
        else:
            LOGGER.debug("merge_field_skipped", path=path, reason="policy")

    if updates:
        LOGGER.debug("merge_rebuilt", path=prefix.rstrip("."), record_type=type(dst).__name__)
        return rebuild(dst, updates)
    return dst
