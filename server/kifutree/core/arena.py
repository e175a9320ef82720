from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator

from .records import MoveRecord, Recorded

if TYPE_CHECKING:
    from .tree import SequenceTree


SequenceId = int


class UnknownSequence(KeyError):
    """Lookup of a sequence id that the arena never allocated."""

    def __init__(self, sequence_id: SequenceId):
        super().__init__(f"sequence not found: {sequence_id}")
        self.sequence_id = sequence_id


@dataclass
class Sequence:
    """A contiguous run of moves hanging off one branch point.

    The move at index ``k`` occupies move number ``start_move_number + k``
    regardless of the number the source line declared for itself.
    ``continuation`` marks the tail a split cut off its parent: the line the
    record was following before the variation was inserted.
    """

    sequence_id: SequenceId
    start_move_number: int
    parent: SequenceId
    moves: list[MoveRecord] = field(default_factory=list)
    follow_ups: set[SequenceId] = field(default_factory=set)
    continuation: bool = False

    @property
    def end_move_number(self) -> int:
        # One past the last positional move number.
        return self.start_move_number + len(self.moves)

    def contains(self, move_number: int) -> bool:
        return self.start_move_number <= move_number < self.end_move_number

    def move_at(self, move_number: int) -> MoveRecord | None:
        if not self.contains(move_number):
            return None
        return self.moves[move_number - self.start_move_number]


class SequenceArena:
    """Owns every sequence of one parse, addressed by integer id.

    The root is allocated first, starts at move 1 and is its own parent.
    A cursor (``current``) marks the sequence that receives appended moves.
    """

    def __init__(self, root_start_move_number: int = 1):
        self._sequences: dict[SequenceId, Sequence] = {}
        self._next_id = 0
        root_id = self._allocate_id()
        self._sequences[root_id] = Sequence(
            sequence_id=root_id,
            start_move_number=root_start_move_number,
            parent=root_id,
        )
        self._root_id = root_id
        self._current_id = root_id

    def __len__(self) -> int:
        return len(self._sequences)

    def __contains__(self, sequence_id: object) -> bool:
        return sequence_id in self._sequences

    def _allocate_id(self) -> SequenceId:
        sequence_id = self._next_id
        self._next_id += 1
        return sequence_id

    def ids(self) -> Iterator[SequenceId]:
        return iter(sorted(self._sequences))

    def root_id(self) -> SequenceId:
        return self._root_id

    def current(self) -> SequenceId:
        return self._current_id

    def set_current(self, sequence_id: SequenceId) -> None:
        self.lookup(sequence_id)
        self._current_id = sequence_id

    def lookup(self, sequence_id: SequenceId) -> Sequence:
        try:
            return self._sequences[sequence_id]
        except KeyError as exc:
            raise UnknownSequence(sequence_id) from exc

    def create_sequence(self, start_move_number: int) -> SequenceId:
        # The new sequence is parented on the cursor but not attached to its
        # follow_ups; callers wire it in with attach().
        parent_id = self._current_id
        self.lookup(parent_id)
        sequence_id = self._allocate_id()
        self._sequences[sequence_id] = Sequence(
            sequence_id=sequence_id,
            start_move_number=start_move_number,
            parent=parent_id,
        )
        self._current_id = sequence_id
        return sequence_id

    def attach(self, parent_id: SequenceId, child_id: SequenceId) -> None:
        parent = self.lookup(parent_id)
        child = self.lookup(child_id)
        if child_id == self._root_id:
            raise ValueError("the root sequence cannot be attached as a follow-up")
        parent.follow_ups.add(child_id)
        child.parent = parent_id

    def append_move(self, record: MoveRecord) -> None:
        current = self.lookup(self._current_id)
        if not isinstance(record, Recorded):
            return
        current.moves.append(record)

    def continuation_of(self, sequence_id: SequenceId) -> SequenceId | None:
        for child_id in self.lookup(sequence_id).follow_ups:
            if self.lookup(child_id).continuation:
                return child_id
        return None

    def snapshot(self) -> "SequenceTree":
        from .tree import SequenceTree

        return SequenceTree.from_arena(self)
