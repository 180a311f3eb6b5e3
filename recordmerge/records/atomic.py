"""Registry of value types that are copied wholesale instead of walked."""
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Set, Type, TypeVar

T = TypeVar("T", bound=type)

_DEFAULT_ATOMIC: frozenset[type] = frozenset({datetime, date, time, timedelta})
_registered: Set[type] = set(_DEFAULT_ATOMIC)
_generation = 0


def registry_generation() -> int:
    """Counter bumped on every registry change; cached field descriptors compare against it."""
    return _generation


def register_atomic(cls: T) -> T:
    """Mark ``cls`` (and its subclasses) as atomic. Usable as a class decorator."""
    global _generation
    if not isinstance(cls, type):
        raise TypeError(f"register_atomic expects a class, got {cls!r}")
    _registered.add(cls)
    _generation += 1
    return cls


def unregister_atomic(cls: Type[object]) -> None:
    """Remove a type added with :func:`register_atomic`; built-in defaults stay."""
    global _generation
    if cls in _DEFAULT_ATOMIC or cls not in _registered:
        return
    _registered.discard(cls)
    _generation += 1


def is_atomic_type(tp: object) -> bool:
    """Return True when instances of ``tp`` must be replaced as a whole."""
    if not isinstance(tp, type):
        return False
    if getattr(tp, "__merge_atomic__", False):
        return True
    return any(issubclass(tp, known) for known in _registered)
