import pytest

from versa.errors import VersaRuntimeError, VersaTypeError
from versa.run import execute


def test_console_log(capsys):
    execute('console.log("a", 1, [none])')
    assert capsys.readouterr().out == 'a 1 [none]\n'


def test_console_assert(capsys):
    execute('console.assert(1 == 1, "never shown")')
    assert capsys.readouterr().err == ''
    execute('console.assert(1 == 2, "math is broken", 42)')
    assert capsys.readouterr().err == 'Assertion failed: math is broken 42\n'
    execute('console.assert(no)')
    assert capsys.readouterr().err == 'Assertion failed\n'


def test_console_assert_rejects_object_messages():
    with pytest.raises(VersaRuntimeError, match="Invalid Type for argument 'message'"):
        execute('class Box: pass\nconsole.assert(yes, new Box())')
    with pytest.raises(VersaRuntimeError, match="Invalid Type for argument 'message'"):
        execute('enum Color: red\nconsole.assert(yes, Color)')


def test_versa_mount(capsys):
    assert execute('Versa.mount(<div> "hi")').to_python() == [None]
    assert 'no effect outside a browser' in capsys.readouterr().err
    with pytest.raises(VersaTypeError, match="Type 'number' is not assignable to type 'html'"):
        execute('Versa.mount(1)')


def test_native_classes_are_objects():
    assert execute('[typeof console, typeof Versa, typeof console.log]').to_python()[0] == [
        'console', 'Versa', 'function']
    with pytest.raises(VersaRuntimeError, match="Cannot assign to the method 'log'"):
        execute('console.log = 1')
    with pytest.raises(VersaRuntimeError):
        execute('var console = 1')


def test_native_errors_cover_the_whole_call():
    with pytest.raises(VersaRuntimeError) as info:
        execute('len(5)')
    assert info.value.report().splitlines()[-2:] == ['len(5)', '^^^^^^']
