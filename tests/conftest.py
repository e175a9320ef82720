"""Shared pytest fixtures used across the test suite."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from kifutree.core.arena import SequenceArena
from kifutree.core.records import Recorded


SAMPLE_KIF = """\
開始日時：2024/01/06 10:00:00
棋戦：練習対局
手合割：平手
先手：先手太郎
後手：後手花子
手数----指手---------消費時間--
   1 ７六歩(77)   ( 0:01/00:00:01)
   2 ３四歩(33)   ( 0:02/00:00:02)
   3 ２六歩(27)   ( 0:01/00:00:02)
*ここで居飛車を明示
   4 ８四歩(83)   ( 0:03/00:00:05)
   5 ２五歩(26)   ( 0:01/00:00:03)
   6 投了
まで5手で先手の勝ち

変化：3手
   3 ６六歩(67)   ( 0:00/00:00:00)
   4 ８四歩(83)   ( 0:00/00:00:00)

変化：4手
   4 ３二飛(82)   ( 0:00/00:00:00)

変化：2手
   2 ８四歩(83)   ( 0:00/00:00:00)
"""


def _mv(n: int, text: str | None = None) -> Recorded:
    return Recorded(source_move_number=n, raw_text=f"{n:>4} {text or f'move-{n}'}")


def _arena_with_moves(count: int) -> SequenceArena:
    arena = SequenceArena()
    for n in range(1, count + 1):
        arena.append_move(_mv(n))
    return arena


@pytest.fixture
def mv() -> Callable[..., Recorded]:
    """Build a recorded move line in the default fixed-width layout."""
    return _mv


@pytest.fixture
def arena_with_moves() -> Callable[[int], SequenceArena]:
    """Build an arena whose root holds moves 1..count."""
    return _arena_with_moves


@pytest.fixture
def four_move_arena() -> SequenceArena:
    return _arena_with_moves(4)


@pytest.fixture
def sample_kif() -> str:
    return SAMPLE_KIF
