from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import TYPE_CHECKING, Iterator, Mapping
import uuid

from .arena import SequenceId, UnknownSequence
from .records import MoveRecord

if TYPE_CHECKING:
    from .arena import SequenceArena


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class SequenceView:
    sequence_id: SequenceId
    start_move_number: int
    parent: SequenceId
    moves: tuple[MoveRecord, ...]
    follow_ups: frozenset[SequenceId]
    continuation: bool = False

    @property
    def end_move_number(self) -> int:
        return self.start_move_number + len(self.moves)

    def move_at(self, move_number: int) -> MoveRecord | None:
        index = move_number - self.start_move_number
        if index < 0 or index >= len(self.moves):
            return None
        return self.moves[index]

    def to_dict(self) -> dict:
        return {
            "sequence_id": self.sequence_id,
            "start_move_number": self.start_move_number,
            "end_move_number": self.end_move_number,
            "parent": self.parent,
            "moves": [m.to_dict() for m in self.moves],
            "follow_ups": sorted(self.follow_ups),
            "continuation": self.continuation,
        }


class SequenceTree:
    """Read-only snapshot of a finished parse."""

    def __init__(self, root_id: SequenceId, sequences: Mapping[SequenceId, SequenceView]):
        if root_id not in sequences:
            raise ValueError("root sequence missing")
        self._root_id = root_id
        self._sequences = MappingProxyType(dict(sequences))

    @classmethod
    def from_arena(cls, arena: "SequenceArena") -> "SequenceTree":
        views: dict[SequenceId, SequenceView] = {}
        for sequence_id in arena.ids():
            seq = arena.lookup(sequence_id)
            views[sequence_id] = SequenceView(
                sequence_id=sequence_id,
                start_move_number=seq.start_move_number,
                parent=seq.parent,
                moves=tuple(seq.moves),
                follow_ups=frozenset(seq.follow_ups),
                continuation=seq.continuation,
            )
        return cls(arena.root_id(), views)

    def __len__(self) -> int:
        return len(self._sequences)

    def __contains__(self, sequence_id: object) -> bool:
        return sequence_id in self._sequences

    def root_id(self) -> SequenceId:
        return self._root_id

    def ids(self) -> Iterator[SequenceId]:
        return iter(sorted(self._sequences))

    def get(self, sequence_id: SequenceId) -> SequenceView:
        try:
            return self._sequences[sequence_id]
        except KeyError as exc:
            raise UnknownSequence(sequence_id) from exc

    def children(self, sequence_id: SequenceId) -> frozenset[SequenceId]:
        return self.get(sequence_id).follow_ups

    def moves(self, sequence_id: SequenceId) -> tuple[MoveRecord, ...]:
        return self.get(sequence_id).moves

    def parent(self, sequence_id: SequenceId) -> SequenceId:
        return self.get(sequence_id).parent

    def move_at(self, sequence_id: SequenceId, move_number: int) -> MoveRecord | None:
        return self.get(sequence_id).move_at(move_number)

    def continuation_of(self, sequence_id: SequenceId) -> SequenceId | None:
        for child_id in self.children(sequence_id):
            if self.get(child_id).continuation:
                return child_id
        return None

    def alternatives(self, sequence_id: SequenceId) -> list[SequenceId]:
        return sorted(c for c in self.children(sequence_id) if not self.get(c).continuation)

    def ordered_children(self, sequence_id: SequenceId) -> list[SequenceId]:
        # The continuation, if any, first; variations in creation order.
        return sorted(self.children(sequence_id), key=lambda c: (not self.get(c).continuation, c))

    def path_to(self, sequence_id: SequenceId) -> list[SequenceId]:
        chain: list[SequenceId] = []
        seen: set[SequenceId] = set()
        cur_id = sequence_id
        while True:
            if cur_id in seen:
                raise ValueError("cycle detected in sequence tree")
            seen.add(cur_id)
            chain.append(cur_id)
            parent_id = self.get(cur_id).parent
            if parent_id == cur_id:
                break
            cur_id = parent_id
        chain.reverse()
        return chain

    def mainline(self) -> list[SequenceId]:
        chain = [self._root_id]
        cur_id = self._root_id
        while True:
            nxt = self.continuation_of(cur_id)
            if nxt is None:
                break
            cur_id = nxt
            chain.append(cur_id)
        return chain

    def mainline_moves(self) -> list[MoveRecord]:
        out: list[MoveRecord] = []
        for sequence_id in self.mainline():
            out.extend(self.moves(sequence_id))
        return out

    def to_wire(self) -> dict:
        return {
            "root_id": self._root_id,
            "mainline": self.mainline(),
            "sequences": [self._sequences[sid].to_dict() for sid in self.ids()],
        }
