"""Tokenizer for Versa source code.

The token grammar is written for `lark` and compiled into a lexer only
(`parser=None`); the statement grammar is handled by the hand written
parser in `versa.parser`. Names that are keywords get the keyword itself
as their token type, operators get the operator text, and the stream
always ends with an `EOF` token.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import List

from lark import Lark
from lark.exceptions import UnexpectedCharacters

from .errors import InvalidSyntaxError
from .position import Position

KEYWORDS = frozenset([
    'var', 'define', 'func', 'return', 'break', 'continue', 'pass', 'delete',
    'if', 'elif', 'else', 'end', 'for', 'to', 'step', 'while', 'foreach', 'as',
    'switch', 'case', 'default',
    'class', 'extends', 'new', 'super', 'public', 'private', 'protected',
    'static', 'override', 'property', 'method', 'get', 'set',
    'enum', 'tag', 'prop', 'state',
    'and', 'or', 'not', 'typeof', 'instanceof',
    'yes', 'no', 'true', 'false', 'none',
])

GRAMMAR = r'''
NAME: /[A-Za-z_][A-Za-z0-9_]*/
NUMBER: /[0-9][0-9_]*(\.[0-9][0-9_]*)?/
STRING: /"(\\.|[^"\\])*"|'(\\.|[^'\\])*'|`(\\.|[^`\\])*`/s
NEWLINE: /(\n[\t \f]*)+/
OP: /\.\.\.|\?::|\?\?=|\*\*=|&&=|\|\|=|>>>|<\/>|\*\*|\?\?|\?\.|::|->|=>|==|!=|<=|>=|<<|>>|&&|\|\||\+\+|--|\+=|-=|\*=|\/=|%=|&=|\|=|\^=|<>|[-+*\/%=<>()\[\]{},.:;?&|^~@#]/
COMMENT: /#(?![A-Za-z_])[^\n]*/
WS: /[ \t\f]+/

%ignore WS
%ignore COMMENT
'''


@dataclass
class Token:
    type: str
    value: str
    pos_start: Position
    pos_end: Position

    @property
    def line(self) -> int:
        return self.pos_start.ln + 1

    @property
    def column(self) -> int:
        return self.pos_start.col + 1

    def matches(self, type_: str, value: str = None) -> bool:
        return self.type == type_ and (value is None or self.value == value)


@lru_cache(maxsize=None)
def _lark_lexer() -> Lark:
    return Lark(GRAMMAR, parser=None, lexer='basic')


def tokenize(text: str, filename: str = '<stdin>') -> List[Token]:
    """Split source text into tokens.

    Carriage returns are dropped first so that positions refer to the
    text the error reports will print.
    """
    text = text.replace('\r\n', '\n').replace('\r', '\n')
    tokens: List[Token] = []
    try:
        for tok in _lark_lexer().lex(text):
            pos_start = Position(tok.start_pos, tok.line - 1, tok.column - 1, filename, text)
            pos_end = Position(tok.end_pos, tok.end_line - 1, tok.end_column - 1, filename, text)
            if tok.type == 'NAME' and tok.value in KEYWORDS:
                type_ = tok.value
            elif tok.type == 'OP':
                type_ = tok.value
            else:
                type_ = tok.type
            tokens.append(Token(type_, str(tok), pos_start, pos_end))
    except UnexpectedCharacters as e:
        pos_start = Position(e.pos_in_stream, e.line - 1, e.column - 1, filename, text)
        pos_end = Position(e.pos_in_stream + 1, e.line - 1, e.column, filename, text)
        raise InvalidSyntaxError(f"Illegal Character '{e.char}'", pos_start, pos_end) from e
    lines = text.split('\n')
    eof = Position(len(text), len(lines) - 1, len(lines[-1]), filename, text)
    tokens.append(Token('EOF', '', eof, eof))
    return tokens
