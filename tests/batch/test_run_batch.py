"""Tests for run_batch(): single commit, atomicity, nesting and frame reuse."""

# pyright: reportPrivateUsage=false

import asyncio
import copy
from dataclasses import dataclass, field

import pytest
from deepdiff import DeepDiff

from forkpath import (
    BatchClosedError,
    Draft,
    StateContainer,
    append_in,
    edit_in,
    key,
    replace_in,
    run_batch,
)
from forkpath.batch.Frame import frame_pool


@dataclass
class Item:
    title: str
    done: bool = False


@dataclass
class Board:
    items: list[Item]
    owner: str = "ada"
    tags: set[str] = field(default_factory=set)
    meta: dict[str, int] = field(default_factory=dict)


def make_board() -> Board:
    return Board(items=[Item("write"), Item("review")], meta={"version": 1})


class CountingContainer:
    """State container that records every set() call."""

    def __init__(self, state: object) -> None:
        self.state = state
        self.writes: list[object] = []

    def get(self) -> object:
        return self.state

    def set(self, value: object) -> None:
        self.writes.append(value)
        self.state = value

    @property
    def __state_container__(self) -> "CountingContainer":
        return self


class TestCommit:
    """Tests for what a batch commits"""

    def test_no_op_batch_returns_top_level_clone(self) -> None:
        original = {"unchanged": "v"}

        result = run_batch(original, lambda draft: None)

        assert result == original
        assert result is not original

    def test_several_edits_commit_together(self) -> None:
        board = make_board()
        before = copy.deepcopy(board)

        def edit(draft: Draft[Board]) -> None:
            replace_in(draft).items[0].done(True)
            replace_in(draft).owner("grace")
            append_in(draft).tags("urgent")
            replace_in(draft).meta[key("version")](lambda v: v + 1)

        result = run_batch(board, edit)

        assert result.items[0].done is True
        assert result.owner == "grace"
        assert result.tags == {"urgent"}
        assert result.meta == {"version": 2}
        assert result.items[1] is board.items[1]
        assert not DeepDiff(before, board)

    def test_container_set_called_once(self) -> None:
        container = CountingContainer(make_board())

        def edit(draft: Draft[Board]) -> None:
            replace_in(draft).items[0].title("draft")
            replace_in(draft).items[1].title("ship")
            replace_in(draft).owner("grace")

        result = run_batch(container, edit)

        assert len(container.writes) == 1
        assert container.writes[0] is result
        assert [item.title for item in result.items] == ["draft", "ship"]

    def test_returned_value_is_committed(self) -> None:
        original = {"name": "john"}

        result = run_batch(original, lambda draft: {"name": "Jane"})

        assert result == {"name": "Jane"}
        assert original == {"name": "john"}

    def test_returned_draft_commits_working_copy(self) -> None:
        def edit(draft: Draft[dict[str, str]]) -> Draft[dict[str, str]]:
            replace_in(draft)[key("name")]("Jane")
            return draft

        assert run_batch({"name": "john"}, edit) == {"name": "Jane"}

    @pytest.mark.asyncio
    async def test_async_returned_value_is_committed(self) -> None:
        container = CountingContainer({"name": "john", "age": 30})

        async def edit(draft: Draft[dict[str, object]]) -> dict[str, object]:
            await asyncio.sleep(0)
            return {"name": "Jane", "age": 25}

        result = await run_batch(container, edit)

        assert result == {"name": "Jane", "age": 25}
        assert container.writes == [result]

    def test_draft_value_is_a_private_copy(self) -> None:
        """Writing to draft.value never touches the original."""
        original = {"a": 1}

        def edit(draft: Draft[dict[str, int]]) -> None:
            draft.value["a"] = 2

        result = run_batch(original, edit)

        assert result == {"a": 2}
        assert original == {"a": 1}


class TestIdentity:
    """Nodes cloned once in a batch are reused by later edits"""

    def test_repeated_edits_reuse_clone(self) -> None:
        board = make_board()
        seen: list[Item] = []

        def edit(draft: Draft[Board]) -> None:
            replace_in(draft).items[0].title("one")
            seen.append(draft.value.items[0])
            replace_in(draft).items[0].done(True)
            seen.append(draft.value.items[0])

        result = run_batch(board, edit)

        assert seen[0] is seen[1]
        assert result.items[0] is seen[0]
        assert result.items[0] == Item("one", True)


class TestAtomicity:
    """A failing batch commits nothing"""

    def test_failure_leaves_container_unchanged(self) -> None:
        original = make_board()
        container = CountingContainer(original)

        def edit(draft: Draft[Board]) -> None:
            replace_in(draft).owner("grace")
            replace_in(draft).meta.version(2)  # attribute step on a dict

        with pytest.raises(TypeError):
            run_batch(container, edit)

        assert container.writes == []
        assert container.state is original
        assert original.owner == "ada"

    def test_failure_in_callback(self) -> None:
        board = make_board()
        before = copy.deepcopy(board)

        def edit(draft: Draft[Board]) -> None:
            replace_in(draft).items[0].title("changed")
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            run_batch(board, edit)

        assert not DeepDiff(before, board)


class TestNesting:
    """Nested batches fold into the enclosing frame"""

    def test_nested_batch_folds_into_parent(self) -> None:
        container = CountingContainer(make_board())

        def outer(draft: Draft[Board]) -> None:
            run_batch(draft, lambda inner: replace_in(inner).owner("grace"))
            replace_in(draft).meta[key("version")](5)

        result = run_batch(container, outer)

        assert len(container.writes) == 1
        assert result.owner == "grace"
        assert result.meta == {"version": 5}

    def test_edit_in_draft(self) -> None:
        def outer(draft: Draft[Board]) -> None:
            def finish(item: Draft[Item]) -> None:
                replace_in(item).done(True)
                replace_in(item).title(lambda t: t.upper())

            edit_in(draft).items[1](finish)

        result = run_batch(make_board(), outer)

        assert result.items[1] == Item("REVIEW", True)

    def test_failing_nested_batch_aborts_outer(self) -> None:
        container = CountingContainer(make_board())

        def inner(draft: Draft[Board]) -> None:
            replace_in(draft).owner("grace")
            raise ValueError("inner failed")

        def outer(draft: Draft[Board]) -> None:
            replace_in(draft).meta[key("version")](5)
            run_batch(draft, inner)

        with pytest.raises(ValueError, match="inner failed"):
            run_batch(container, outer)

        assert container.writes == []

    def test_inner_result_sees_later_parent_edits(self) -> None:
        """The child folds into the parent's current working copy."""

        def outer(draft: Draft[dict[str, int]]) -> None:
            replace_in(draft)[key("a")](1)
            run_batch(draft, lambda inner: replace_in(inner)[key("b")](2))
            replace_in(draft)[key("c")](3)

        assert run_batch({}, outer) == {"a": 1, "b": 2, "c": 3}


class TestAsyncBatch:
    """Tests for async callbacks, transforms and containers"""

    @pytest.mark.asyncio
    async def test_async_callback_commits_after_await(self) -> None:
        container = CountingContainer(make_board())

        async def edit(draft: Draft[Board]) -> None:
            replace_in(draft).owner("grace")
            await asyncio.sleep(0)
            replace_in(draft).items[0].done(True)

        pending = run_batch(container, edit)
        assert container.writes == []

        result = await pending

        assert len(container.writes) == 1
        assert result.owner == "grace"
        assert result.items[0].done is True

    @pytest.mark.asyncio
    async def test_async_transform_inside_batch(self) -> None:
        async def fetch_title(current: str) -> str:
            await asyncio.sleep(0)
            return current + " (fetched)"

        async def edit(draft: Draft[Board]) -> None:
            await replace_in(draft).items[0].title(fetch_title)
            replace_in(draft).owner("grace")

        result = await run_batch(make_board(), edit)

        assert result.items[0].title == "write (fetched)"
        assert result.owner == "grace"

    @pytest.mark.asyncio
    async def test_async_container(self) -> None:
        state = {"board": make_board()}
        writes: list[object] = []

        async def get() -> Board:
            await asyncio.sleep(0)
            return state["board"]

        async def set(value: Board) -> None:
            await asyncio.sleep(0)
            writes.append(value)
            state["board"] = value

        container = StateContainer(get, set)

        result = await run_batch(
            container, lambda draft: replace_in(draft).owner("grace")
        )

        assert writes == [result]
        assert state["board"].owner == "grace"

    @pytest.mark.asyncio
    async def test_async_failure_commits_nothing(self) -> None:
        container = CountingContainer(make_board())

        async def edit(draft: Draft[Board]) -> None:
            replace_in(draft).owner("grace")
            await asyncio.sleep(0)
            raise ValueError("late failure")

        with pytest.raises(ValueError, match="late failure"):
            await run_batch(container, edit)

        assert container.writes == []

    @pytest.mark.asyncio
    async def test_async_nested_batch(self) -> None:
        async def inner(draft: Draft[Board]) -> None:
            await asyncio.sleep(0)
            replace_in(draft).owner("grace")

        async def outer(draft: Draft[Board]) -> None:
            await run_batch(draft, inner)
            append_in(draft).tags("nested")

        result = await run_batch(make_board(), outer)

        assert result.owner == "grace"
        assert result.tags == {"nested"}

    @pytest.mark.asyncio
    async def test_parent_edits_during_suspended_child_are_kept(self) -> None:
        async def inner(draft: Draft[dict[str, int]]) -> None:
            await asyncio.sleep(0)
            replace_in(draft)[key("a")](2)

        async def outer(draft: Draft[dict[str, int]]) -> None:
            task = asyncio.ensure_future(run_batch(draft, inner))
            replace_in(draft)[key("b")](20)
            await task

        result = await run_batch({"a": 1, "b": 2}, outer)

        assert result == {"a": 2, "b": 20}

    @pytest.mark.asyncio
    async def test_concurrent_edits_at_overlapping_paths(self) -> None:
        async def add_tag(item: Draft[Item]) -> None:
            await asyncio.sleep(0)
            replace_in(item).title(lambda title: title + "!")

        async def outer(draft: Draft[Board]) -> None:
            pending = edit_in(draft).items[0](add_tag)
            replace_in(draft).items[0].done(True)
            await pending

        result = await run_batch(make_board(), outer)

        assert result.items[0] == Item("write!", True)


class TestFrames:
    """Tests for frame lifecycle and reuse"""

    def test_draft_unusable_after_commit(self) -> None:
        drafts: list[Draft[dict[str, int]]] = []

        run_batch({"a": 1}, drafts.append)

        with pytest.raises(BatchClosedError):
            replace_in(drafts[0])[key("a")](2)
        with pytest.raises(BatchClosedError):
            drafts[0].value
        assert not drafts[0].is_open

    def test_sequential_batches_reuse_frames(self) -> None:
        run_batch({"a": 1}, lambda draft: None)
        created = frame_pool.created
        idle = frame_pool.idle

        run_batch({"a": 1}, lambda draft: None)
        run_batch({"a": 1}, lambda draft: replace_in(draft)[key("a")](2))

        assert frame_pool.created == created
        assert frame_pool.idle == idle

    def test_failed_batch_releases_frame(self) -> None:
        run_batch({}, lambda draft: None)
        idle = frame_pool.idle

        def fail(draft: Draft[dict[str, int]]) -> None:
            raise KeyError("x")

        with pytest.raises(KeyError):
            run_batch({}, fail)

        assert frame_pool.idle == idle
