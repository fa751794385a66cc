"""Tests for the collection classifier."""

import datetime
import re
from collections import OrderedDict, defaultdict
from dataclasses import dataclass
from types import MappingProxyType, SimpleNamespace
from typing import NamedTuple

import pytest

from forkpath.engine.shapes import (
    MISSING,
    Shape,
    classify,
    instance_state,
    is_plain_record,
    shallow_copy,
    type_name,
)


@dataclass
class User:
    name: str


class Point(NamedTuple):
    x: int
    y: int


class Opaque:
    def __init__(self) -> None:
        self.handle = object()


@dataclass(slots=True)
class Slotted:
    a: int
    b: int


class TestClassify:
    """Tests for classify()"""

    @pytest.mark.parametrize(
        "value",
        [User("a"), Point(1, 2), SimpleNamespace(a=1), Opaque()],
    )
    def test_records(self, value: object) -> None:
        assert classify(value) is Shape.RECORD

    @pytest.mark.parametrize("value", [[1], (1, 2), ()])
    def test_sequences(self, value: object) -> None:
        assert classify(value) is Shape.SEQUENCE

    @pytest.mark.parametrize(
        "value",
        [{}, OrderedDict(), defaultdict(list), MappingProxyType({})],
    )
    def test_mappings(self, value: object) -> None:
        assert classify(value) is Shape.MAPPING

    @pytest.mark.parametrize("value", [set(), frozenset({1})])
    def test_sets(self, value: object) -> None:
        assert classify(value) is Shape.SET

    @pytest.mark.parametrize(
        "value",
        [
            None,
            "text",
            b"bytes",
            3,
            2.5,
            True,
            datetime.date(2024, 1, 1),
            re.compile("x"),
            len,
            lambda x: x,
            User,
            MISSING,
        ],
    )
    def test_scalars(self, value: object) -> None:
        assert classify(value) is Shape.SCALAR

    def test_only_data_records_are_plain(self) -> None:
        """Opaque objects are records for stepping, but not plain data."""
        assert is_plain_record(User("a"))
        assert is_plain_record(Point(1, 2))
        assert is_plain_record(SimpleNamespace())
        assert not is_plain_record(Opaque())
        assert not is_plain_record(User)


class TestHelpers:
    """Tests for type_name(), instance_state() and shallow_copy()"""

    def test_type_name(self) -> None:
        assert type_name(None) == "None"
        assert type_name(MISSING) == "missing"
        assert type_name({}) == "dict"
        assert type_name(User("a")) == "User"

    def test_instance_state_reads_slots(self) -> None:
        assert instance_state(Slotted(1, 2)) == {"a": 1, "b": 2}

    def test_shallow_copy_is_one_level(self) -> None:
        inner = [1]
        original = {"inner": inner}

        copied = shallow_copy(original)

        assert copied == original
        assert copied is not original
        assert copied["inner"] is inner

    def test_shallow_copy_of_read_only_mapping_is_a_dict(self) -> None:
        copied = shallow_copy(MappingProxyType({"a": 1}))

        assert type(copied) is dict
        assert copied == {"a": 1}

    def test_shallow_copy_of_record(self) -> None:
        user = User("a")

        copied = shallow_copy(user)

        assert copied == user
        assert copied is not user
