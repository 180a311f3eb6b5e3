"""Merge policy and the options value object passed to ``merge``."""
from __future__ import annotations

from enum import Enum
from typing import Iterable, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MergePolicy(str, Enum):
    """Decides, per leaf field, whether the source value replaces the destination's."""

    INCLUDE_ALL = "include_all"
    EXCLUDE_EMPTY = "exclude_empty"
    OVERWRITE_EMPTY = "overwrite_empty"


class MergeConfig(BaseModel):
    """Validated options for a single merge call.

    ``include`` and ``exclude`` hold qualified field paths such as
    ``"address.street"``. They are matched as plain strings; a path that names
    no field is simply inert.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    policy: MergePolicy = MergePolicy.INCLUDE_ALL
    include: List[str] = Field(default_factory=list)
    exclude: List[str] = Field(default_factory=list)

    @field_validator("include", "exclude", mode="before")
    @classmethod
    def _as_path_list(cls, value: str | Iterable[str] | None) -> List[str] | Iterable[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("include", "exclude")
    @classmethod
    def _dedupe(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(value))


DEFAULT_CONFIG = MergeConfig()
