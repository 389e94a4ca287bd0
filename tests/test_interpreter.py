import textwrap

import pytest

from versa.errors import VersaRuntimeError, VersaTypeError
from versa.run import execute


def evaluate(source):
    """Run a snippet and return the Python form of every statement value."""
    return execute(textwrap.dedent(source)).to_python()


def last(source):
    return evaluate(source)[-1]


def test_program_result_lists_each_statement():
    assert evaluate('1 + 2\nvar x = 3; x * 2') == [3, 3, 6]


def test_logical_operators():
    assert last('0 or "a"') == 'a'
    assert last('1 and 0') is False
    assert last('1 && 2') is True
    assert last('none ?? 5') == 5
    assert last('0 ?? 5') == 0
    assert last('not []') is True


def test_logical_operators_short_circuit():
    source = '''
    var called = no
    func touch():
        called = yes
        return 1
    end
    no and touch()
    yes or touch()
    none ?? touch()
    called
    '''
    assert last(source) is True
    assert last(source.replace('none ??', '0 ??')) is False


def test_typeof():
    assert evaluate('typeof 1; typeof "a"; typeof yes; typeof none; typeof [1]; typeof {}; typeof func () -> 1') == [
        'number', 'string', 'boolean', 'any', 'list', 'dict', 'function',
    ]


def test_booleans_keep_their_spelling():
    result = execute('yes; true; not yes')
    assert [str(value) for value in result.elements] == ['yes', 'true', 'false']


def test_increments():
    assert evaluate('var a = 1\n++a\na') == [1, 2, 1]
    assert evaluate('var a = 1\na++\na') == [1, 2, 2]
    assert last('var a = 1\na++++') == 3
    assert last('var l = [1]\nl[0]--\nl') == [0]


def test_compound_assignments():
    assert last('var s = "a"\ns += "b"\ns') == 'ab'
    assert last('var n = 10\nn -= 3\nn *= 2\nn /= 7\nn') == 2
    assert last('var n = 2\nn **= 3\nn %= 5\nn') == 3


def test_bitwise_assignments():
    assert evaluate('var a = 6\na &= 3\na') == [6, 2, 2]
    assert last('var a = 6\na |= 3\na') == 7
    assert last('var a = 6\na ^= 3\na') == 5
    assert last('var l = [12]\nl[0] &= 10\nl[0] &&= 4\nl') == [4]


def test_conditional_assignments():
    assert last('var a = none\na ??= 1\na ??= 2\na') == 1
    assert last('var a = 1\na &&= 2\na') == 2
    assert last('var a = 0\na &&= 2\na') == 0
    assert last('var a = 0\na ||= 3\na') == 3


def test_declared_types():
    with pytest.raises(VersaTypeError, match="Type 'string' is not assignable to type 'number'"):
        execute('var x: number = "a"')
    with pytest.raises(VersaTypeError):
        execute('var x: number = 1\nx = "a"')
    with pytest.raises(VersaTypeError):
        execute('var x: dynamic = none')
    assert last('var x: dynamic = 0\nx = "now a string"\nx') == 'now a string'


def test_constants():
    assert last('define PI = 3.14\nPI') == 3.14
    with pytest.raises(VersaRuntimeError, match='constant'):
        execute('define PI = 3.14\nPI = 3')
    with pytest.raises(VersaRuntimeError):
        execute('define PI = 3.14\ndefine PI = 3')


def test_lists_are_shared_between_bindings():
    assert last('var a = [1]\nvar b = a\nb[] = 2\na') == [1, 2]


def test_index_reads():
    assert evaluate('var l = [1, 2, 3]\nl[-1]; l[5]; l[0:2]; l[1:]; l[:-1]')[1:] == [3, None, [1, 2], [2, 3], [1, 2]]
    assert evaluate('var s = "hello"\ns[1]; s[-1]; s[1:3]; s[9]')[1:] == ['e', 'o', 'el', None]
    assert last('var d = {"a": 1}\nd["b"]') is None
    with pytest.raises(VersaRuntimeError, match='without a number as index'):
        execute('[1]["a"]')
    with pytest.raises(VersaRuntimeError, match='without a string as key'):
        execute('var d = {}\nd[0]')


def test_index_writes():
    assert last('var l = []\nl[2] = "x"\nl') == [None, None, 'x']
    assert last('var l = [1, 2]\nl[-1] = 5\nl') == [1, 5]
    assert last('var d = {}\nd["k"] = 1\nd') == {'k': 1}
    with pytest.raises(VersaRuntimeError, match='immutable'):
        execute('var s = "abc"\ns[0] = "x"')


def test_delete():
    assert last('var l = [1, 2, 3, 4]\ndelete l[1]\nl') == [1, 3, 4]
    assert last('var l = [1, 2, 3, 4]\ndelete l[1:3]\nl') == [1, 4]
    assert last('var l = [1, 2, 3]\ndelete l[-1]\nl') == [1, 2]
    assert last('var d = {"a": 1, "b": 2}\ndelete d["a"]\nd') == {'b': 2}
    with pytest.raises(VersaRuntimeError, match="'x' is not defined"):
        execute('var x = 1\ndelete x\nx')
    with pytest.raises(VersaRuntimeError):
        execute('delete nothing')
    with pytest.raises(VersaRuntimeError, match='out of range'):
        execute('var l = [1]\ndelete l[3]')
    with pytest.raises(VersaRuntimeError):
        execute('var d = {}\ndelete d["missing"]')


def test_if_statements():
    assert last('if no: 1 elif yes: 2 else: 3') == 2
    assert last('if no: 1') is None
    source = '''
    var x = 0
    if x > 0:
        "positive"
    else:
        "other"
    end
    '''
    assert last(source) is None


def test_for_loops():
    assert last('for i to 3: i') == [0, 1, 2]
    assert last('for i = 5 to 0 step -2: i') == [5, 3, 1]
    assert last('for i = 3 to 0: i') == [3, 2, 1]
    assert last('for i = 0 to 3:\n    i\nend') is None
    assert last('for i to 3: i\ni') == 2
    with pytest.raises(VersaRuntimeError):
        execute('for i = 0 to 3 step 0: i')


def test_loop_break_and_continue():
    source = '''
    var seen = []
    for i to 10:
        if i % 2 == 0: continue
        if i > 6: break
        seen[] = i
    end
    seen
    '''
    assert last(source) == [1, 3, 5]
    assert last('var n = 0\nwhile yes:\n    n++\n    if n == 4: break\nend\nn') == 4


def test_while_and_foreach():
    assert last('var n = 0\nwhile n < 3: n++') == [1, 2, 3]
    assert last('foreach [1, 2] as x: x * 10') == [10, 20]
    assert last('foreach ["a", "b"] as i => x: i') == [0, 1]
    assert last('foreach {"a": 1, "b": 2} as k => v: k + v') == ['a1', 'b2']
    with pytest.raises(VersaRuntimeError, match='Cannot iterate'):
        execute('foreach 5 as x: x')


def test_switch():
    source = '''
    func kind(x):
        switch x:
            case 1, 2:
                return "small"
            case "3":
                return "three"
            default:
                return "other"
        end
    end
    [kind(2), kind(3), kind(9)]
    '''
    assert last(source) == ['small', 'three', 'other']


def test_misplaced_control_flow():
    with pytest.raises(VersaRuntimeError, match="'return' outside of a function"):
        execute('return 1')
    with pytest.raises(VersaRuntimeError, match="'break' outside of a loop"):
        execute('break')
    with pytest.raises(VersaRuntimeError, match="'continue' outside of a loop"):
        execute('func f():\n    continue\nend\nf()')


def test_enums():
    assert evaluate('enum Dir: up, down\nDir.up; Dir.down; typeof Dir')[1:] == [0, 1, 'enum']
    with pytest.raises(VersaRuntimeError, match="has no member 'left'"):
        execute('enum Dir: up, down\nDir.left')
    with pytest.raises(VersaRuntimeError):
        execute('enum Dir: up\nDir = 1')


def test_string_interpolation_uses_display_forms():
    assert last('var l = ["a", 1]\n"l={l} n={none} b={yes}"') == 'l=["a", 1] n=none b=yes'


def test_optional_chaining_short_circuits():
    assert last('none?.()?.()') is None
    assert last('var d = {"a": none}\nd["a"]?.b.c[0]()') is None
    assert last('var calls = 0\nfunc f() -> calls++\nvar x = none\nx?.[f()]\ncalls') == 0
    with pytest.raises(VersaRuntimeError, match='of none'):
        execute('var x = none\nx.name')
    with pytest.raises(VersaRuntimeError, match='not a function'):
        execute('none()')
