from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Recorded:
    """A move line whose number column parsed as an integer."""

    source_move_number: int
    raw_text: str

    @property
    def body(self) -> str:
        # Text after the number column, e.g. "７六歩(77)   ( 0:00/00:00:00)".
        parts = self.raw_text.strip().split(None, 1)
        return parts[1] if len(parts) > 1 else ""

    def to_dict(self) -> dict:
        return {
            "kind": "recorded",
            "source_move_number": self.source_move_number,
            "raw_text": self.raw_text,
            "body": self.body,
        }


@dataclass(frozen=True)
class Unrecognized:
    raw_text: str
    reason: str = "not_a_number"

    def to_dict(self) -> dict:
        return {
            "kind": "unrecognized",
            "raw_text": self.raw_text,
            "reason": self.reason,
        }


MoveRecord = Union[Recorded, Unrecognized]

