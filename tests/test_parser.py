import pytest

from versa.ast import (
    Assign, BinaryOp, Call, FuncDef, If, Index, NumberNode, PostfixIncrement, PropertyAccess,
    Slice, StringNode, UnaryOp, VarAccess,
)
from versa.errors import InvalidSyntaxError
from versa.lexer import tokenize
from versa.parser import parse_program


def types(text):
    return [tok.type for tok in tokenize(text)]


def first(text):
    return parse_program(text).statements[0]


def test_keywords_and_operators_are_their_own_token_types():
    assert types('var x = 5') == ['var', 'NAME', '=', 'NUMBER', 'EOF']
    assert types('a &= b |= c ^= d &&= e') == ['NAME', '&=', 'NAME', '|=', 'NAME', '^=', 'NAME', '&&=', 'NAME', 'EOF']
    assert types('a ??= b') == ['NAME', '??=', 'NAME', 'EOF']
    assert types('a?.b?::c') == ['NAME', '?.', 'NAME', '?::', 'NAME', 'EOF']


def test_comments_and_html_ids():
    assert types('x # a comment') == ['NAME', 'EOF']
    assert types('<div#main>') == ['<', 'NAME', '#', 'NAME', '>', 'EOF']


def test_token_positions():
    tokens = tokenize('var x\n  y', 'file.versa')
    y = tokens[3]
    assert y.value == 'y'
    assert (y.line, y.column) == (2, 3)
    assert y.pos_start.fn == 'file.versa'


def test_illegal_character():
    with pytest.raises(InvalidSyntaxError, match="Illegal Character '\\$'"):
        tokenize('var x = $')


def test_numbers():
    assert first('1_000') == NumberNode(1000)
    assert first('2.5') == NumberNode(2.5)


def test_precedence():
    assert first('1 + 2 * 3') == BinaryOp('+', NumberNode(1), BinaryOp('*', NumberNode(2), NumberNode(3)))
    assert first('-a ** 2') == BinaryOp('**', UnaryOp('-', VarAccess('a')), NumberNode(2))
    assert first('not a == b') == UnaryOp('not', BinaryOp('==', VarAccess('a'), VarAccess('b')))


def test_assignment_is_right_associative():
    assert first('a = b = 1') == Assign(VarAccess('a'), '=', Assign(VarAccess('b'), '=', NumberNode(1)))


def test_postfix_increments_fold():
    assert first('a++++') == PostfixIncrement(2, VarAccess('a'))
    assert first('a++--') == PostfixIncrement(0, VarAccess('a'))


def test_access_chains():
    node = first('a?.b[1:](2)')
    assert node == Call(Index(PropertyAccess(VarAccess('a'), 'b', True), Slice(NumberNode(1), None)), [NumberNode(2)])


def test_string_interpolation():
    node = first('"a{b}c"')
    assert node == StringNode(['a', VarAccess('b'), 'c'])
    inner = node.parts[1]
    assert inner.pos_start.idx == 3


def test_inline_and_multiline_if():
    inline = first('if a: 1 else: 2')
    assert isinstance(inline, If) and not inline.should_return_null
    multiline = first('if a:\n    1\nelse:\n    2\nend')
    assert multiline.should_return_null


def test_function_forms():
    arrow = first('func add(a, b = 1) -> a + b')
    assert isinstance(arrow, FuncDef) and arrow.auto_return
    assert [p.optional for p in arrow.params] == [False, True]
    block = first('func (...rest):\n    return rest\nend')
    assert block.name is None and block.params[0].rest and not block.auto_return


@pytest.mark.parametrize('source', [
    '1 = 2',
    'a?.b = 1',
    'func f(...a, b) -> 1',
    'func f(a = 1, b) -> 1',
    '{"a": 1, "a": 2}',
    'if a:\n    1\n',
    'class A:\n    get x(y) -> y\nend',
    'enum E: a, a',
    'var x = (1',
])
def test_syntax_errors(source):
    with pytest.raises(InvalidSyntaxError):
        parse_program(source)
