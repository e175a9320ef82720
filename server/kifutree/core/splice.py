from __future__ import annotations

import logging

from .arena import Sequence, SequenceArena, SequenceId


_LOGGER = logging.getLogger(__name__)


class OrphanBranchPoint(ValueError):
    """A variation branches after a move no sequence on the cursor's path holds."""

    def __init__(self, branch_move_number: int, line_no: int | None = None):
        self.branch_move_number = branch_move_number
        self.line_no = line_no
        super().__init__(self._message())

    def _message(self) -> str:
        msg = f"no recorded move {self.branch_move_number - 1} to branch from at move {self.branch_move_number}"
        if self.line_no is not None:
            msg += f" (line {self.line_no})"
        return msg

    def at_line(self, line_no: int) -> "OrphanBranchPoint":
        return OrphanBranchPoint(self.branch_move_number, line_no=line_no)


def find_branch_ancestor(arena: SequenceArena, move_number: int) -> SequenceId:
    """Walk up from the cursor to the first sequence holding ``move_number``.

    Raises ``OrphanBranchPoint(move_number + 1)`` once the root's self-loop
    is reached without a match.
    """
    seen: set[SequenceId] = set()
    cur_id = arena.current()
    while True:
        if cur_id in seen:
            raise RuntimeError("cycle detected in sequence tree")
        seen.add(cur_id)
        seq = arena.lookup(cur_id)
        if seq.contains(move_number):
            return cur_id
        if seq.parent == cur_id:
            raise OrphanBranchPoint(move_number + 1)
        cur_id = seq.parent


def split_sequence(arena: SequenceArena, sequence_id: SequenceId, branch_move_number: int) -> SequenceId | None:
    """Cut ``sequence_id`` so that it ends right before ``branch_move_number``.

    The cut-off tail moves into a new continuation sequence which also takes
    over every existing follow-up. Returns the continuation id, or None when
    nothing lies at or past the branch point.
    """
    seq = arena.lookup(sequence_id)
    split_index = branch_move_number - seq.start_move_number
    if split_index < 0:
        raise ValueError(
            f"move {branch_move_number} precedes sequence {sequence_id} starting at {seq.start_move_number}"
        )
    if split_index >= len(seq.moves):
        return None

    remainder = seq.moves[split_index:]
    del seq.moves[split_index:]
    inherited = seq.follow_ups
    seq.follow_ups = set()

    cursor = arena.current()
    arena.set_current(sequence_id)
    continuation_id = arena.create_sequence(branch_move_number)
    arena.set_current(cursor)
    continuation: Sequence = arena.lookup(continuation_id)
    continuation.moves = remainder
    continuation.continuation = True
    for child_id in inherited:
        arena.attach(continuation_id, child_id)
    arena.attach(sequence_id, continuation_id)

    _LOGGER.debug(
        "split sequence %s at move %s: %s moves and %s follow-ups moved to %s",
        sequence_id,
        branch_move_number,
        len(remainder),
        len(inherited),
        continuation_id,
    )
    return continuation_id


def begin_variation(arena: SequenceArena, branch_move_number: int) -> SequenceId:
    """Open a new empty variation whose first move is ``branch_move_number``.

    The tree is left untouched when the branch point is orphaned.
    """
    ancestor_id = find_branch_ancestor(arena, branch_move_number - 1)
    split_sequence(arena, ancestor_id, branch_move_number)

    arena.set_current(ancestor_id)
    variation_id = arena.create_sequence(branch_move_number)
    arena.attach(ancestor_id, variation_id)
    _LOGGER.debug(
        "variation %s branches from sequence %s at move %s",
        variation_id,
        ancestor_id,
        branch_move_number,
    )
    return variation_id
