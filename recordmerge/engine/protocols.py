"""Override capability for types with their own merge logic."""
from typing import Any, Protocol, TypeVar

T = TypeVar("T", bound=type)


class Merger(Protocol):
    """
    Implemented by types that merge a source value into themselves.

    The capability is opt-in: a type takes part by subclassing ``Merger``
    explicitly, or by setting ``__merge_override__ = True`` on the class, by
    hand or with :func:`merge_override`. The flag is the way in for classes
    whose metaclass cannot mix with ``Protocol``, such as pydantic models.
    A ``merge`` attribute alone is not enough, so records with a field called
    ``merge`` and values with an unrelated ``merge`` method are merged as
    usual.

    When the destination record, or the current value of one of its fields,
    opts in, the engine hands it the matching source value and does not walk
    its fields, filter them or test them for emptiness. Implementations check
    the source type themselves and raise ``InvalidSourceError`` (or any
    exception) when it is not what they expect.
    """

    def merge(self, source: Any) -> None:
        """Update ``self`` in place from ``source``."""
        ...


def merge_override(cls: T) -> T:
    """Class decorator opting ``cls.merge`` into the override capability."""
    cls.__merge_override__ = True  # type: ignore[attr-defined]
    return cls
