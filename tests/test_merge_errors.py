from dataclasses import dataclass, field

import pytest

from recordmerge.engine.errors import (
    InvalidDestinationError,
    InvalidSourceError,
    MergeError,
    TypeMismatchError,
)
from recordmerge.engine.merge import merge


@dataclass
class Address:
    street: str = ""
    city: str = ""


@dataclass
class Customer:
    name: str = ""
    address: Address = field(default_factory=Address)


@dataclass
class Other:
    foo: str = ""


@dataclass
class SubAddress(Address):
    zip_code: str = ""


@pytest.mark.parametrize(
    "dst, src, expected",
    [
        pytest.param({"name": "a"}, Customer(), InvalidDestinationError, id="dict-destination"),
        pytest.param(42, Customer(), InvalidDestinationError, id="int-destination"),
        pytest.param(Customer, Customer(), InvalidDestinationError, id="class-destination"),
        pytest.param(None, "text", InvalidDestinationError, id="none-destination-invalid-source"),
        pytest.param(Customer(), {"name": "a"}, InvalidSourceError, id="dict-source"),
        pytest.param(Customer(), Customer, InvalidSourceError, id="class-source"),
        pytest.param(Customer(), None, InvalidSourceError, id="none-source"),
        pytest.param(Customer(), Other(), TypeMismatchError, id="type-mismatch"),
    ],
)
def test_merge_rejects_invalid_arguments(dst, src, expected):
    with pytest.raises(expected) as excinfo:
        merge(dst, src)
    assert isinstance(excinfo.value, MergeError)
    assert excinfo.value.path == ""


def test_destination_checked_before_source():
    with pytest.raises(InvalidDestinationError):
        merge("not a record", "also not a record")


def test_source_checked_before_type():
    with pytest.raises(InvalidSourceError):
        merge(Customer(), 3.5)


def test_nested_type_mismatch_reports_path():
    dst = Customer(name="Alice")
    src = Customer(name="Bob", address=SubAddress(street="Elm"))

    with pytest.raises(TypeMismatchError) as excinfo:
        merge(dst, src)

    assert excinfo.value.path == "address"
    assert "address" in str(excinfo.value)
    # fields visited before the failure keep their new values
    assert dst.name == "Bob"


def test_nested_none_source_is_invalid():
    src = Customer(name="Bob")
    src.address = None  # type: ignore[assignment]
    with pytest.raises(InvalidSourceError) as excinfo:
        merge(Customer(), src)
    assert excinfo.value.path == "address"


def test_error_messages():
    assert str(InvalidDestinationError()) == "destination must be a record"
    assert str(InvalidSourceError(path="a.b")) == "source must be a record (at 'a.b')"
    assert TypeMismatchError("custom").message == "custom"
