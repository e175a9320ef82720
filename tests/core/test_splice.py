"""Tests for branching and splitting sequences."""

import pytest

from kifutree.core.arena import SequenceArena
from kifutree.core.splice import (
    OrphanBranchPoint,
    begin_variation,
    find_branch_ancestor,
    split_sequence,
)


def _assert_consistent(arena: SequenceArena) -> None:
    """Every id resolves, children point back, and the root is reachable."""
    root_id = arena.root_id()
    for sid in arena.ids():
        seq = arena.lookup(sid)
        arena.lookup(seq.parent)
        for child_id in seq.follow_ups:
            assert arena.lookup(child_id).parent == sid
        if sid != root_id:
            assert sid in arena.lookup(seq.parent).follow_ups
        seen = set()
        cur = sid
        while arena.lookup(cur).parent != cur:
            assert cur not in seen
            seen.add(cur)
            cur = arena.lookup(cur).parent
        assert cur == root_id


def _snapshot(arena: SequenceArena) -> dict:
    return {
        sid: (
            arena.lookup(sid).start_move_number,
            list(arena.lookup(sid).moves),
            set(arena.lookup(sid).follow_ups),
            arena.lookup(sid).parent,
        )
        for sid in arena.ids()
    }


class TestSplitInside:
    def test_truncates_ancestor(self, four_move_arena, mv) -> None:
        root_id = four_move_arena.root_id()
        begin_variation(four_move_arena, 3)
        assert four_move_arena.lookup(root_id).moves == [mv(1), mv(2)]

    def test_continuation_holds_tail(self, four_move_arena, mv) -> None:
        root_id = four_move_arena.root_id()
        variation_id = begin_variation(four_move_arena, 3)
        kids = four_move_arena.lookup(root_id).follow_ups
        assert len(kids) == 2
        (continuation_id,) = kids - {variation_id}
        continuation = four_move_arena.lookup(continuation_id)
        assert continuation.start_move_number == 3
        assert continuation.moves == [mv(3), mv(4)]
        assert continuation.parent == root_id

    def test_variation_is_empty_and_current(self, four_move_arena) -> None:
        root_id = four_move_arena.root_id()
        variation_id = begin_variation(four_move_arena, 3)
        variation = four_move_arena.lookup(variation_id)
        assert variation.moves == []
        assert variation.start_move_number == 3
        assert variation.parent == root_id
        assert four_move_arena.current() == variation_id

    def test_siblings_share_start(self, four_move_arena) -> None:
        root_id = four_move_arena.root_id()
        begin_variation(four_move_arena, 3)
        starts = [four_move_arena.lookup(c).start_move_number for c in four_move_arena.lookup(root_id).follow_ups]
        assert starts == [3, 3]

    def test_existing_follow_ups_move_to_continuation(self, four_move_arena, mv) -> None:
        root_id = four_move_arena.root_id()
        first = begin_variation(four_move_arena, 5)
        four_move_arena.append_move(mv(5, "tail"))
        second = begin_variation(four_move_arena, 2)
        root = four_move_arena.lookup(root_id)
        assert root.moves == [mv(1)]
        (continuation_id,) = root.follow_ups - {second}
        continuation = four_move_arena.lookup(continuation_id)
        assert continuation.moves == [mv(2), mv(3), mv(4)]
        assert continuation.follow_ups == {first}
        assert four_move_arena.lookup(first).parent == continuation_id
        _assert_consistent(four_move_arena)

    def test_only_the_tail_is_marked_continuation(self, four_move_arena) -> None:
        root_id = four_move_arena.root_id()
        variation_id = begin_variation(four_move_arena, 3)
        continuation_id = four_move_arena.continuation_of(root_id)
        assert continuation_id is not None
        assert continuation_id != variation_id
        assert four_move_arena.lookup(continuation_id).continuation
        assert not four_move_arena.lookup(variation_id).continuation

    def test_tree_stays_consistent(self, four_move_arena) -> None:
        begin_variation(four_move_arena, 3)
        _assert_consistent(four_move_arena)


class TestBoundaryBranch:
    def test_no_continuation(self, four_move_arena, mv) -> None:
        root_id = four_move_arena.root_id()
        before = len(four_move_arena)
        variation_id = begin_variation(four_move_arena, 5)
        root = four_move_arena.lookup(root_id)
        assert len(four_move_arena) == before + 1
        assert root.moves == [mv(1), mv(2), mv(3), mv(4)]
        assert root.follow_ups == {variation_id}

    def test_variation_is_not_a_continuation(self, four_move_arena) -> None:
        root_id = four_move_arena.root_id()
        variation_id = begin_variation(four_move_arena, 5)
        assert not four_move_arena.lookup(variation_id).continuation
        assert four_move_arena.continuation_of(root_id) is None

    def test_new_child_starts_after_last_move(self, four_move_arena) -> None:
        variation_id = begin_variation(four_move_arena, 5)
        variation = four_move_arena.lookup(variation_id)
        assert variation.start_move_number == 5
        assert variation.moves == []


class TestNestedVariation:
    def test_branch_inside_variation_splits_variation(self, four_move_arena, mv) -> None:
        outer = begin_variation(four_move_arena, 3)
        four_move_arena.append_move(mv(3, "alt"))
        four_move_arena.append_move(mv(4, "alt"))
        inner = begin_variation(four_move_arena, 4)
        assert four_move_arena.lookup(outer).moves == [mv(3, "alt")]
        assert four_move_arena.lookup(inner).parent == outer
        assert len(four_move_arena.lookup(outer).follow_ups) == 2
        _assert_consistent(four_move_arena)

    def test_walks_past_variation_to_ancestor(self, four_move_arena, mv) -> None:
        root_id = four_move_arena.root_id()
        outer = begin_variation(four_move_arena, 3)
        four_move_arena.append_move(mv(3, "alt"))
        inner = begin_variation(four_move_arena, 2)

        assert four_move_arena.lookup(outer).moves == [mv(3, "alt")]
        root = four_move_arena.lookup(root_id)
        assert root.moves == [mv(1)]
        assert inner in root.follow_ups
        (continuation_id,) = root.follow_ups - {inner}
        continuation = four_move_arena.lookup(continuation_id)
        assert continuation.start_move_number == 2
        assert continuation.moves == [mv(2)]
        assert outer in continuation.follow_ups
        _assert_consistent(four_move_arena)

    def test_branch_off_empty_variation(self, four_move_arena) -> None:
        root_id = four_move_arena.root_id()
        begin_variation(four_move_arena, 3)
        second = begin_variation(four_move_arena, 3)
        assert four_move_arena.lookup(second).parent == root_id
        assert len(four_move_arena.lookup(root_id).follow_ups) == 3
        _assert_consistent(four_move_arena)


class TestRebranch:
    def test_same_point_adds_sibling(self, four_move_arena, mv) -> None:
        root_id = four_move_arena.root_id()
        a = begin_variation(four_move_arena, 3)
        four_move_arena.append_move(mv(3, "a"))
        b = begin_variation(four_move_arena, 3)
        four_move_arena.append_move(mv(3, "b"))
        kids = four_move_arena.lookup(root_id).follow_ups
        assert {a, b} <= kids
        assert len(kids) == 3
        assert four_move_arena.lookup(root_id).moves == [mv(1), mv(2)]
        _assert_consistent(four_move_arena)


class TestOrphan:
    def test_beyond_recorded_moves(self, four_move_arena) -> None:
        with pytest.raises(OrphanBranchPoint) as excinfo:
            begin_variation(four_move_arena, 7)
        assert excinfo.value.branch_move_number == 7

    def test_tree_unmodified(self, four_move_arena) -> None:
        before = _snapshot(four_move_arena)
        cursor = four_move_arena.current()
        with pytest.raises(OrphanBranchPoint):
            begin_variation(four_move_arena, 9)
        assert _snapshot(four_move_arena) == before
        assert four_move_arena.current() == cursor

    def test_branch_at_first_move(self, four_move_arena) -> None:
        with pytest.raises(OrphanBranchPoint):
            begin_variation(four_move_arena, 1)

    def test_empty_arena(self) -> None:
        arena = SequenceArena()
        with pytest.raises(OrphanBranchPoint):
            begin_variation(arena, 2)

    def test_is_a_value_error(self, four_move_arena) -> None:
        with pytest.raises(ValueError, match="move 7"):
            begin_variation(four_move_arena, 7)

    def test_line_number_in_message(self) -> None:
        exc = OrphanBranchPoint(5).at_line(12)
        assert exc.line_no == 12
        assert "line 12" in str(exc)


class TestAncestorSearch:
    def test_finds_current(self, four_move_arena) -> None:
        assert find_branch_ancestor(four_move_arena, 2) == four_move_arena.root_id()

    def test_cycle_is_reported(self) -> None:
        arena = SequenceArena()
        a = arena.create_sequence(10)
        b = arena.create_sequence(10)
        arena.lookup(a).parent = b
        with pytest.raises(RuntimeError, match="cycle"):
            find_branch_ancestor(arena, 3)


class TestSplitSequence:
    def test_at_start_empties_sequence(self, four_move_arena, mv) -> None:
        root_id = four_move_arena.root_id()
        continuation_id = split_sequence(four_move_arena, root_id, 1)
        root = four_move_arena.lookup(root_id)
        assert root.moves == []
        assert root.follow_ups == {continuation_id}
        assert four_move_arena.lookup(continuation_id).moves == [mv(1), mv(2), mv(3), mv(4)]
        _assert_consistent(four_move_arena)

    def test_past_end_is_noop(self, four_move_arena) -> None:
        root_id = four_move_arena.root_id()
        assert split_sequence(four_move_arena, root_id, 5) is None
        assert len(four_move_arena) == 1

    def test_keeps_cursor(self, four_move_arena) -> None:
        cursor = four_move_arena.current()
        split_sequence(four_move_arena, four_move_arena.root_id(), 3)
        assert four_move_arena.current() == cursor

    def test_before_start_rejected(self, four_move_arena) -> None:
        variation_id = begin_variation(four_move_arena, 3)
        with pytest.raises(ValueError):
            split_sequence(four_move_arena, variation_id, 2)

    def test_positional_numbering_ignores_declared_numbers(self, mv) -> None:
        arena = SequenceArena()
        for n in (10, 20, 30, 40):
            arena.append_move(mv(n))
        begin_variation(arena, 3)
        root = arena.lookup(arena.root_id())
        assert root.moves == [mv(10), mv(20)]
