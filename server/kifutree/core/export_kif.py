from __future__ import annotations

from ..config import ParserConfig
from .arena import SequenceId
from .tree import SequenceTree


MAIN_LINE_HEADER_TAIL = "----指手---------消費時間--"


def _line_from(tree: SequenceTree, sequence_id: SequenceId) -> list[SequenceId]:
    # Follow split continuations only; variations are emitted separately.
    line = [sequence_id]
    cur = tree.continuation_of(sequence_id)
    while cur is not None:
        line.append(cur)
        cur = tree.continuation_of(cur)
    return line


def _move_lines(tree: SequenceTree, line: list[SequenceId]) -> list[str]:
    return [m.raw_text for sid in line for m in tree.moves(sid)]


def _emit_variations(tree: SequenceTree, line: list[SequenceId], out: list[str], marker: str) -> None:
    # Latest branch point first: a re-import searches upward from the most
    # recent variation, so earlier branch points must come later.
    for sequence_id in reversed(line):
        for alt_id in tree.alternatives(sequence_id):
            alt_line = _line_from(tree, alt_id)
            moves = _move_lines(tree, alt_line)
            # A header with no moves would swallow the next section on re-import.
            if not moves:
                continue
            out.append("")
            out.append(f"{marker}：{tree.get(alt_id).start_move_number}手")
            out.extend(moves)
            _emit_variations(tree, alt_line, out, marker)


def export_tree_to_kif(
    tree: SequenceTree,
    meta: dict | None = None,
    config: ParserConfig | None = None,
) -> str:
    config = config or ParserConfig()
    meta = dict(meta or {})
    lines: list[str] = []
    handicap = meta.pop("手合割", None) or "平手"
    lines.append(f"手合割：{handicap}")
    for key, value in meta.items():
        lines.append(f"{key}：{value}")
    lines.append("")
    lines.append(f"{config.main_line_marker}{MAIN_LINE_HEADER_TAIL}")

    main_line = _line_from(tree, tree.root_id())
    lines.extend(_move_lines(tree, main_line))
    _emit_variations(tree, main_line, lines, config.variation_marker)

    return "\n".join(lines).rstrip() + "\n"
