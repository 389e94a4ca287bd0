import textwrap

import pytest

from versa.errors import VersaRuntimeError, VersaTypeError
from versa.run import execute


def last(source):
    return execute(textwrap.dedent(source)).to_python()[-1]


def test_arrow_and_block_functions():
    assert last('func double(x) -> x * 2\ndouble(4)') == 8
    assert last('func f():\n    1\n    2\nend\nf()') is None
    assert last('func f():\n    return 7\nend\nf()') == 7
    assert last('var anon = func (a) -> a + 1\nanon(1)') == 2


def test_recursion():
    source = '''
    func fib(n):
        if n < 2: return n
        return fib(n - 1) + fib(n - 2)
    end
    fib(15)
    '''
    assert last(source) == 610


def test_return_from_inside_a_loop():
    source = '''
    func find(list, wanted):
        foreach list as i => x:
            if x == wanted: return i
        end
        return -1
    end
    [find([4, 5, 6], 6), find([], 1)]
    '''
    assert last(source) == [2, -1]


def test_argument_count_errors():
    with pytest.raises(VersaRuntimeError, match="Too many args passed into 'f': 2, but expected at most 1"):
        execute('func f(a) -> a\nf(1, 2)')
    with pytest.raises(VersaRuntimeError, match="Too few args passed into 'f': 0, but expected at least 1"):
        execute('func f(a, b?) -> a\nf()')


def test_parameter_types():
    assert last('func f(a: number) -> a\nf(1)') == 1
    with pytest.raises(VersaTypeError, match="Type 'string' is not assignable to type 'number'"):
        execute('func f(a: number) -> a\nf("x")')
    # An optional parameter accepts none whatever its type.
    assert last('func f(a?: number) -> a\nf(none)') is None
    with pytest.raises(VersaTypeError, match="Type 'none' is not assignable to type 'dynamic'"):
        execute('func f(a?: dynamic) -> a\nf()')


def test_defaults_are_evaluated_at_call_time_in_order():
    assert last('func f(a, b = a * 2) -> b\nf(3)') == 6
    assert last('var base = 1\nfunc f(x = base) -> x\nbase = 5\nf()') == 5
    assert last('func f(a, b?) -> b\nf(1)') is None


def test_rest_parameters():
    assert last('func f(first, ...others) -> others\nf(1, 2, 3)') == [2, 3]
    assert last('func f(...all) -> all\nf()') == []
    with pytest.raises(VersaTypeError, match="A rest parameter must be of type 'list'"):
        execute('func f(...all: number) -> all\nf(1)')


def test_arguments_holds_every_supplied_value():
    assert last('func f(a?, b?) -> arguments\nf(1)') == [1]
    assert last('func f(...rest) -> len(arguments)\nf(1, 2, 3)') == 3


def test_closures_capture_variables_not_values():
    assert last('var x = 1\nfunc f() -> x\nx = 2\nf()') == 2
    source = '''
    func adder(n):
        return func (x) -> x + n
    end
    var add2 = adder(2)
    var add5 = adder(5)
    [add2(1), add5(1)]
    '''
    assert last(source) == [3, 6]


def test_locals_do_not_leak():
    with pytest.raises(VersaRuntimeError, match="'inner' is not defined"):
        execute('func f():\n    var inner = 1\nend\nf()\ninner')


def test_calling_a_non_function():
    with pytest.raises(VersaRuntimeError, match='not a function'):
        execute('var x = 5\nx()')


def test_natives(capsys):
    assert last('len("abc") + len([1, 2]) + len({"a": 1})') == 6
    execute('log("a", 1, [1, "b"], none, yes)')
    assert capsys.readouterr().out == 'a 1 [1, "b"] none yes\n'
    with pytest.raises(VersaRuntimeError, match='len\\(\\) expects'):
        execute('len(5)')
    with pytest.raises(VersaTypeError):
        execute('len(none)')
    with pytest.raises(VersaRuntimeError):
        execute('var log = 1')


def test_exit():
    with pytest.raises(SystemExit) as info:
        execute('exit(3)\nlog("never")')
    assert info.value.code == 3
