import pytest

from versa.errors import InvalidSyntaxError, VersaRuntimeError, VersaTypeError
from versa.run import execute, run


def test_error_report_points_at_the_failing_expression():
    with pytest.raises(VersaRuntimeError) as info:
        execute('var x = 1\nvar y = x / 0', 'calc.versa')
    assert str(info.value).splitlines() == [
        'Traceback (most recent call last):',
        '  File calc.versa, line 2, in <program>',
        'Runtime Error: Division by zero',
        '',
        'var y = x / 0',
        '        ^^^^^',
    ]


def test_traceback_follows_calls():
    with pytest.raises(VersaRuntimeError) as info:
        execute('func divide(a, b) -> a / b\ndivide(1, 0)', 'calls.versa')
    lines = info.value.report().splitlines()
    assert lines[:3] == [
        'Traceback (most recent call last):',
        '  File calls.versa, line 2, in <program>',
        '  File calls.versa, line 1, in divide',
    ]
    assert info.value.context.display_name == 'divide'


def test_interpolated_expressions_keep_their_position():
    with pytest.raises(VersaRuntimeError) as info:
        execute('var s = "value: {missing}"')
    assert info.value.report().splitlines()[-1] == ' ' * 17 + '^' * 7


def test_syntax_error_report():
    with pytest.raises(InvalidSyntaxError) as info:
        execute('var = 1')
    assert info.value.report().splitlines() == [
        'Invalid Syntax: Expected an identifier',
        '',
        'var = 1',
        '    ^',
    ]


def test_type_error_name():
    with pytest.raises(VersaTypeError) as info:
        execute('var n: number = "x"')
    assert info.value.report().splitlines()[-4] == "Type Error: Type 'string' is not assignable to type 'number'"


def test_run_reports_errors_on_stderr(capsys):
    assert run('log(1)\nundefined_name') is None
    captured = capsys.readouterr()
    assert captured.out == '1\n'
    assert "Runtime Error: 'undefined_name' is not defined" in captured.err


def test_run_returns_the_statement_values():
    result = run('var a = 2\na * 3')
    assert result.to_python() == [2, 6]
