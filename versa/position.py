"""Source positions used by tokens, AST nodes and error reports."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Position:
    """A point in a source text.

    `idx` is the absolute offset, `ln` and `col` are zero based. The
    filename and the full text travel with the position so that an error
    raised deep inside the evaluator can still print the offending line.
    """
    idx: int
    ln: int
    col: int
    fn: str
    ftxt: str


def underline(text: str, pos_start: Position, pos_end: Position) -> str:
    """Return the lines covered by a span with `^` markers below them."""
    lines = text.split('\n')
    out = []
    for ln in range(pos_start.ln, pos_end.ln + 1):
        line = lines[ln] if ln < len(lines) else ''
        col_start = pos_start.col if ln == pos_start.ln else 0
        col_end = pos_end.col if ln == pos_end.ln else len(line)
        out.append(line)
        out.append(' ' * col_start + '^' * max(col_end - col_start, 1))
    return '\n'.join(out).replace('\t', ' ')
