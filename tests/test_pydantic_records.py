from datetime import datetime
from typing import List, Optional

import pytest
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from recordmerge.config.options import MergeConfig, MergePolicy
from recordmerge.engine.errors import TypeMismatchError
from recordmerge.engine.merge import merge, merge_copy


class TimeSlot(BaseModel):
    start: str = ""
    end: str = ""


class Venue(BaseModel):
    name: str = ""
    city: str = ""
    country: str = ""


class Event(BaseModel):
    source_id: str = Field(default="", frozen=True)
    title: str = ""
    venue: Venue = Field(default_factory=Venue)
    time_slots: List[TimeSlot] = Field(default_factory=list)
    price_value: Optional[float] = None
    updated_at: datetime = datetime(2000, 1, 1)
    _revision: int = PrivateAttr(default=0)


class FrozenEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = ""
    rating: int = 0


class Listing(BaseModel):
    label: str = ""
    event: FrozenEvent = Field(default_factory=FrozenEvent)


class Festival(Event):
    headliner: str = ""


def test_patch_update_keeps_existing_values():
    existing = Event(
        source_id="demo",
        title="Jazz Night",
        venue=Venue(name="Club", city="NYC"),
        time_slots=[TimeSlot(start="20:00", end="22:00")],
        price_value=12.5,
    )
    patch = Event(source_id="other", venue=Venue(country="US"), price_value=0.0)

    merge(existing, patch, MergeConfig(policy=MergePolicy.EXCLUDE_EMPTY))

    assert existing.source_id == "demo"
    assert existing.title == "Jazz Night"
    assert existing.venue == Venue(name="Club", city="NYC", country="US")
    assert existing.time_slots == [TimeSlot(start="20:00", end="22:00")]
    assert existing.price_value == 0.0
    assert existing.updated_at == datetime(2000, 1, 1)


def test_backfill_from_defaults():
    partial = Event(title="Jazz Night")
    defaults = Event(title="Untitled", venue=Venue(city="Oslo", country="NO"), price_value=0.0)

    merge(partial, defaults, MergeConfig(policy=MergePolicy.OVERWRITE_EMPTY))

    assert partial.title == "Jazz Night"
    assert partial.venue == Venue(city="Oslo", country="NO")
    assert partial.price_value == 0.0


def test_private_attributes_untouched():
    dst = Event(title="a")
    dst._revision = 3
    src = Event(title="b")
    src._revision = 9
    merge(dst, src)
    assert dst.title == "b"
    assert dst._revision == 3


def test_frozen_model_destination_is_rebuilt():
    dst = FrozenEvent(title="old", rating=3)
    merged = merge(dst, FrozenEvent(title="new"), MergeConfig(policy=MergePolicy.EXCLUDE_EMPTY))

    assert merged == FrozenEvent(title="new", rating=3)
    assert dst.title == "old"


def test_frozen_model_field_follows_policy():
    dst = Listing(label="a", event=FrozenEvent(title="", rating=4))
    merge(dst, Listing(event=FrozenEvent(title="gig", rating=0)), MergeConfig(policy=MergePolicy.OVERWRITE_EMPTY))

    assert dst.event == FrozenEvent(title="gig", rating=4)
    assert dst.label == "a"


def test_subclass_is_a_type_mismatch():
    with pytest.raises(TypeMismatchError):
        merge(Event(), Festival())


def test_merge_copy_leaves_destination_untouched():
    original = Event(title="Jazz Night", venue=Venue(city="NYC"))
    merged = merge_copy(original, Event(title="Blues Night", venue=Venue(country="US")))

    assert original.title == "Jazz Night"
    assert original.venue == Venue(city="NYC")
    assert merged.title == "Blues Night"
    assert merged.venue == Venue(city="", country="US")
    assert merged is not original


def test_merge_copy_does_not_mutate_on_failure():
    original = Event(title="Jazz Night")
    with pytest.raises(TypeMismatchError):
        merge_copy(original, Festival(title="Rock"))
    assert original.title == "Jazz Night"
