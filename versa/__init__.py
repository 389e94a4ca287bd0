# Versa language package
# This package provides a lexer, a parser and a tree-walking interpreter for the Versa language.
from .errors import VersaError, InvalidSyntaxError, VersaRuntimeError, VersaTypeError
from .interpreter import Interpreter
from .parser import parse_program
from .run import execute, run

__all__ = [
    'run',
    'execute',
    'parse_program',
    'Interpreter',
    'VersaError',
    'InvalidSyntaxError',
    'VersaRuntimeError',
    'VersaTypeError',
]
