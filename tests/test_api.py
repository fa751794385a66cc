"""Tests for the entry points: delete_in, append_in, edit_in, get_in and terminal calls."""

import asyncio
from dataclasses import dataclass, field
from typing import NamedTuple

import pytest

from forkpath import (
    NOT_REACHABLE,
    Draft,
    StateContainer,
    UnsupportedOperationError,
    append_in,
    delete_in,
    edit_in,
    get_in,
    key,
    replace_in,
)
from forkpath.path.PathRecorder import path_of


@dataclass
class Contact:
    email: str
    phones: list[str] = field(default_factory=list)
    nickname: str | None = None


@dataclass
class Directory:
    contacts: dict[str, Contact]
    groups: set[str] = field(default_factory=set)
    history: tuple[str, ...] = ()
    archived: list[str] | None = None


class Version(NamedTuple):
    major: int
    minor: int


def make_directory() -> Directory:
    return Directory(
        contacts={
            "ada": Contact("ada@example.com", ["555-0100"]),
            "grace": Contact("grace@example.com"),
        },
        groups={"friends", "work"},
    )


class TestDeleteIn:
    """Tests for delete_in()"""

    def test_delete_mapping_entry(self) -> None:
        directory = make_directory()

        result = delete_in(directory).contacts[key("grace")]()

        assert list(result.contacts) == ["ada"]
        assert result.contacts["ada"] is directory.contacts["ada"]
        assert "grace" in directory.contacts

    def test_delete_missing_entry_is_a_no_op(self) -> None:
        directory = make_directory()

        result = delete_in(directory).contacts[key("nobody")]()

        assert result.contacts == directory.contacts

    def test_delete_list_item(self) -> None:
        result = delete_in(make_directory()).contacts[key("ada")].phones[0]()

        assert result.contacts["ada"].phones == []

    def test_delete_out_of_range_is_a_no_op(self) -> None:
        result = delete_in([1, 2])[7]()

        assert result == [1, 2]

    def test_delete_set_element(self) -> None:
        directory = make_directory()

        result = delete_in(directory).groups[key("work")]()

        assert result.groups == {"friends"}
        assert directory.groups == {"friends", "work"}

    def test_delete_record_attribute(self) -> None:
        contact = Contact("a@example.com", nickname="al")

        result = delete_in({"c": contact})[key("c")].nickname()

        assert "nickname" not in vars(result["c"])
        assert contact.nickname == "al"

    def test_delete_tuple_item(self) -> None:
        assert delete_in((1, 2, 3))[1]() == (1, 3)

    def test_delete_root_rejected(self) -> None:
        with pytest.raises(UnsupportedOperationError, match="root"):
            delete_in({"a": 1})()

    def test_delete_named_tuple_field_rejected(self) -> None:
        with pytest.raises(UnsupportedOperationError):
            delete_in({"v": Version(1, 2)})[key("v")].major()

    def test_delete_takes_no_arguments(self) -> None:
        with pytest.raises(TypeError, match="no arguments"):
            delete_in({"a": 1})[key("a")]("extra")


class TestAppendIn:
    """Tests for append_in()"""

    def test_append_to_list(self) -> None:
        directory = make_directory()

        result = append_in(directory).contacts[key("ada")].phones("555-0101", "555-0102")

        assert result.contacts["ada"].phones == ["555-0100", "555-0101", "555-0102"]
        assert directory.contacts["ada"].phones == ["555-0100"]

    def test_append_to_set(self) -> None:
        result = append_in(make_directory()).groups("family")

        assert result.groups == {"friends", "work", "family"}

    def test_append_to_tuple(self) -> None:
        result = append_in(make_directory()).history("created")

        assert result.history == ("created",)

    def test_appended_values_are_cloned(self) -> None:
        entry = {"tags": ["x"]}

        result = append_in({"log": []})[key("log")](entry)

        assert result["log"] == [entry]
        assert result["log"][0] is not entry

    def test_append_to_record_rejected(self) -> None:
        with pytest.raises(UnsupportedOperationError, match="Cannot add to Contact"):
            append_in(make_directory()).contacts[key("ada")]("x")

    def test_append_to_mapping_rejected(self) -> None:
        with pytest.raises(UnsupportedOperationError, match="Cannot add to dict"):
            append_in(make_directory()).contacts("x")

    def test_append_to_absent_optional_list(self) -> None:
        assert append_in(make_directory()).archived("old") is NOT_REACHABLE

    def test_append_to_absent_required_list(self) -> None:
        with pytest.raises(UnsupportedOperationError, match="Cannot add to None"):
            append_in({"log": None})[key("log")]("x")


class TestEditIn:
    """Tests for edit_in()"""

    def test_edit_several_fields_of_one_node(self) -> None:
        directory = make_directory()

        def update(contact: Draft[Contact]) -> None:
            replace_in(contact).email("ada@example.org")
            append_in(contact).phones("555-0199")

        result = edit_in(directory).contacts[key("ada")](update)

        assert result.contacts["ada"].email == "ada@example.org"
        assert result.contacts["ada"].phones == ["555-0100", "555-0199"]
        assert result.contacts["grace"] is directory.contacts["grace"]
        assert directory.contacts["ada"].email == "ada@example.com"

    def test_returned_value_replaces_leaf(self) -> None:
        result = edit_in({"c": Contact("a")})[key("c")](lambda draft: Contact("b"))

        assert result["c"] == Contact("b")

    def test_edit_through_optional_absence(self) -> None:
        calls: list[object] = []

        result = edit_in(Contact("a")).nickname.first(calls.append)

        assert result is NOT_REACHABLE
        assert calls == []

    def test_edit_skips_missing_leaf(self) -> None:
        calls: list[object] = []

        result = edit_in(make_directory()).contacts[key("nobody")](calls.append)

        assert result is NOT_REACHABLE
        assert calls == []

    def test_edit_requires_a_function(self) -> None:
        with pytest.raises(TypeError, match="function"):
            edit_in({})[key("a")](42)

    @pytest.mark.asyncio
    async def test_async_edit(self) -> None:
        async def update(contact: Draft[Contact]) -> None:
            await asyncio.sleep(0)
            replace_in(contact).nickname("al")

        result = await edit_in(make_directory()).contacts[key("ada")](update)

        assert result.contacts["ada"].nickname == "al"


class TestReplaceTerminal:
    """Tests for replace_in() terminal calls and async transforms"""

    def test_exactly_one_argument(self) -> None:
        with pytest.raises(TypeError, match="exactly one"):
            replace_in({"a": 1})[key("a")]()
        with pytest.raises(TypeError, match="exactly one"):
            replace_in({"a": 1})[key("a")](1, 2)

    @pytest.mark.asyncio
    async def test_async_transform(self) -> None:
        async def lookup(email: str) -> str:
            await asyncio.sleep(0)
            return email.upper()

        directory = make_directory()

        pending = replace_in(directory).contacts[key("ada")].email(lookup)
        result = await pending

        assert result.contacts["ada"].email == "ADA@EXAMPLE.COM"
        assert directory.contacts["ada"].email == "ada@example.com"

    def test_independent_calls_see_their_own_root(self) -> None:
        """Back-to-back edits on one root do not observe each other."""
        directory = make_directory()

        first = replace_in(directory).contacts[key("ada")].email("one")
        second = replace_in(directory).contacts[key("grace")].email("two")

        assert first.contacts["grace"].email == "grace@example.com"
        assert second.contacts["ada"].email == "ada@example.com"


class TestGetIn:
    """Tests for get_in()"""

    def test_recorded_read(self) -> None:
        assert get_in(make_directory()).contacts[key("ada")].phones[0]() == "555-0100"

    def test_read_with_path(self) -> None:
        path = path_of(get_in(None).contacts[key("grace")].email)

        assert get_in(make_directory(), path) == "grace@example.com"

    def test_unreachable_read(self) -> None:
        assert get_in(make_directory()).contacts[key("nobody")].email() is NOT_REACHABLE

    def test_read_from_container(self) -> None:
        holder = {"state": make_directory()}
        container = StateContainer(lambda: holder["state"], lambda v: None)

        assert get_in(container).groups() == {"friends", "work"}

    @pytest.mark.asyncio
    async def test_read_from_async_container(self) -> None:
        async def get() -> Directory:
            return make_directory()

        async def set(value: Directory) -> None:
            pass

        container = StateContainer(get, set)

        assert await get_in(container).contacts[key("ada")].email() == "ada@example.com"
