from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
import re
from typing import Iterable

from ..config import ParserConfig
from .arena import SequenceArena, SequenceId
from .decoding import split_lines
from .records import MoveRecord, Recorded, Unrecognized
from .splice import OrphanBranchPoint, begin_variation
from .tree import SequenceTree, new_id, utc_now_iso


_LOGGER = logging.getLogger(__name__)

_INT_RE = re.compile(r"[+-]?[0-9]+")
_DECLARED_MOVE_RE = re.compile(r"(\d+)\s*手")
_TITLE_KEYS = ("棋戦", "表題", "タイトル")


def detect_kif(text: str, config: ParserConfig | None = None) -> bool:
    config = config or ParserConfig()
    return any(ln.startswith(config.main_line_marker) for ln in split_lines(text or ""))


def parse_move_record(line: str, config: ParserConfig | None = None) -> MoveRecord:
    """Read the move number from the fixed-width column of ``line``."""
    config = config or ParserConfig()
    if len(line) < config.number_to:
        return Unrecognized(raw_text=line, reason="too_short")
    column = line[config.number_from : config.number_to].strip()
    if not _INT_RE.fullmatch(column):
        return Unrecognized(raw_text=line, reason="not_a_number")
    return Recorded(source_move_number=int(column), raw_text=line)


def _is_blank(line: str) -> bool:
    return not line.strip()


class ScanState(Enum):
    AWAITING_SECTION = "awaiting_section"
    IN_MAIN_LINE = "in_main_line"
    VARIATION_STARTING = "variation_starting"
    IN_VARIATION_BODY = "in_variation_body"


@dataclass
class ParsedKifu:
    kifu_id: str
    title: str
    created_at: str
    meta: dict[str, str]
    tree: SequenceTree
    unrecognized: list[tuple[int, str]] = field(default_factory=list)

    def summary(self) -> dict:
        return {
            "kifu_id": self.kifu_id,
            "title": self.title,
            "created_at": self.created_at,
            "sequence_count": len(self.tree),
            "mainline_length": len(self.tree.mainline_moves()),
        }

    def to_wire(self) -> dict:
        out = self.summary()
        out["meta"] = dict(self.meta)
        out["tree"] = self.tree.to_wire()
        out["unrecognized"] = [{"line_no": n, "text": t} for n, t in self.unrecognized]
        return out


class KifuScanner:
    """Single-pass line classifier feeding one arena.

    Lines are fed in file order; ``finish()`` returns the immutable tree.
    """

    def __init__(self, config: ParserConfig | None = None):
        self.config = config or ParserConfig()
        self.arena = SequenceArena()
        self.state = ScanState.AWAITING_SECTION
        self.meta: dict[str, str] = {}
        self.unrecognized: list[tuple[int, str]] = []
        self._line_no = 0
        self._main_line_seen = False
        self._declared_branch: int | None = None

    def feed(self, line: str) -> None:
        self._line_no += 1
        if self.state is ScanState.AWAITING_SECTION:
            self._await_section(line)
        elif self.state is ScanState.VARIATION_STARTING:
            self._start_variation(line)
        elif _is_blank(line):
            self.end_section()
        else:
            self.append(self._parse(line))

    def feed_lines(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.feed(line)

    def finish(self) -> SequenceTree:
        self.end_section()
        return self.arena.snapshot()

    # Hooks

    def begin_main_line(self) -> None:
        # A repeated main-line section resumes where the main line stopped.
        self.arena.set_current(self._mainline_tip())
        self._main_line_seen = True
        self.state = ScanState.IN_MAIN_LINE

    def begin_variation(self, move_number: int) -> SequenceId:
        try:
            return begin_variation(self.arena, move_number)
        except OrphanBranchPoint as exc:
            raise exc.at_line(self._line_no) from exc

    def append(self, record: MoveRecord) -> None:
        self.arena.append_move(record)

    def end_section(self) -> None:
        self.state = ScanState.AWAITING_SECTION
        self._declared_branch = None

    # States

    def _await_section(self, line: str) -> None:
        if line.startswith(self.config.main_line_marker):
            self.begin_main_line()
            return
        if line.startswith(self.config.variation_marker):
            m = _DECLARED_MOVE_RE.search(line, len(self.config.variation_marker))
            self._declared_branch = int(m.group(1)) if m else None
            self.state = ScanState.VARIATION_STARTING
            return
        if not self._main_line_seen and "：" in line:
            k, v = line.split("：", 1)
            k = k.strip()
            v = v.strip()
            if k and v:
                self.meta[k] = v

    def _start_variation(self, line: str) -> None:
        record = self._parse(line)
        if isinstance(record, Recorded):
            self.begin_variation(record.source_move_number)
            self.append(record)
        elif self._declared_branch is not None:
            self.begin_variation(self._declared_branch)
        self._declared_branch = None
        self.state = ScanState.IN_VARIATION_BODY

    def _parse(self, line: str) -> MoveRecord:
        record = parse_move_record(line, self.config)
        if isinstance(record, Unrecognized):
            _LOGGER.debug("skipping line %s (%s): %r", self._line_no, record.reason, line)
            self.unrecognized.append((self._line_no, line))
        return record

    def _mainline_tip(self) -> SequenceId:
        cur_id = self.arena.root_id()
        while True:
            nxt = self.arena.continuation_of(cur_id)
            if nxt is None:
                break
            cur_id = nxt
        tip = self.arena.lookup(cur_id)
        if not tip.follow_ups:
            return cur_id
        # Variations already hang off the tip; further main-line moves go into
        # a continuation beside them.
        self.arena.set_current(cur_id)
        continuation_id = self.arena.create_sequence(tip.end_move_number)
        self.arena.lookup(continuation_id).continuation = True
        self.arena.attach(cur_id, continuation_id)
        return continuation_id


def import_kif_lines(
    lines: Iterable[str],
    *,
    config: ParserConfig | None = None,
    title: str | None = None,
) -> ParsedKifu:
    scanner = KifuScanner(config)
    scanner.feed_lines(lines)
    tree = scanner.finish()
    meta = scanner.meta
    game_title = (title or next((meta[k] for k in _TITLE_KEYS if meta.get(k)), None) or "").strip()
    parsed = ParsedKifu(
        kifu_id=new_id(),
        title=game_title or "Imported KIF",
        created_at=utc_now_iso(),
        meta=meta,
        tree=tree,
        unrecognized=scanner.unrecognized,
    )
    _LOGGER.info(
        "imported kifu %s: %s sequences, %s skipped lines",
        parsed.kifu_id,
        len(tree),
        len(parsed.unrecognized),
    )
    return parsed


def import_kif_text(
    text: str,
    *,
    config: ParserConfig | None = None,
    title: str | None = None,
) -> ParsedKifu:
    return import_kif_lines(split_lines(text or ""), config=config, title=title)
