"""Exception types raised by the Versa toolchain.

Every error carries the span it refers to and the context it was raised
in. Errors raised by helpers that know nothing about source positions
(the symbol tables and the operator functions) are located later by the
interpreter, at the innermost node being evaluated.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from .position import Position, underline

if TYPE_CHECKING:
    from .environment import Context


class VersaError(Exception):
    """Base class of all errors reported to a Versa user."""
    name = 'Error'

    def __init__(self, details: str, pos_start: Optional[Position] = None,
                 pos_end: Optional[Position] = None, context: Optional['Context'] = None):
        super().__init__(details)
        self.details = details
        self.pos_start = pos_start
        self.pos_end = pos_end
        self.context = context

    def locate(self, pos_start: Optional[Position], pos_end: Optional[Position],
               context: Optional['Context'] = None) -> 'VersaError':
        if self.pos_start is None:
            self.pos_start = pos_start
            self.pos_end = pos_end if pos_end is not None else pos_start
        if self.context is None:
            self.context = context
        return self

    def traceback(self) -> str:
        lines = []
        pos = self.pos_start
        ctx = self.context
        while ctx is not None and pos is not None:
            lines.insert(0, f'  File {pos.fn}, line {pos.ln + 1}, in {ctx.display_name}')
            pos = ctx.parent_entry_pos
            ctx = ctx.parent
        return 'Traceback (most recent call last):\n' + '\n'.join(lines)

    def report(self) -> str:
        """Build the user facing report: context chain, message and source line."""
        if self.pos_start is None:
            return f'{self.name}: {self.details}'
        parts = []
        if self.context is not None:
            parts.append(self.traceback())
        parts.append(f'{self.name}: {self.details}')
        parts.append('')
        parts.append(underline(self.pos_start.ftxt, self.pos_start, self.pos_end))
        return '\n'.join(parts)

    def __str__(self) -> str:
        return self.report()


class InvalidSyntaxError(VersaError):
    """Raised by the lexer and the parser."""
    name = 'Invalid Syntax'


class VersaRuntimeError(VersaError):
    name = 'Runtime Error'


class VersaTypeError(VersaError):
    """A value does not match the type declared for a binding."""
    name = 'Type Error'
