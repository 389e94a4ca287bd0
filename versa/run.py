"""Entry points that take source text all the way to a result."""

from __future__ import annotations

import sys
from typing import Optional

from .environment import Context
from .errors import VersaError
from .interpreter import Interpreter
from .parser import parse_program
from .values import ListValue


def execute(text: str, filename: str = '<stdin>', context: Optional[Context] = None,
            interpreter: Optional[Interpreter] = None) -> ListValue:
    """Parse and evaluate source text. Errors propagate as `VersaError`."""
    if interpreter is None:
        interpreter = Interpreter()
    program = parse_program(text, filename)
    return interpreter.run(program, context)


def run(text: str, filename: str = '<stdin>', context: Optional[Context] = None,
        interpreter: Optional[Interpreter] = None) -> Optional[ListValue]:
    """Like `execute`, but a Versa error is reported on stderr and None is returned."""
    try:
        return execute(text, filename, context, interpreter)
    except VersaError as e:
        print(e.report(), file=sys.stderr)
        return None
