import builtins

import pytest

from versa.__main__ import main


def write_program(tmp_path, source):
    program = tmp_path / 'program.versa'
    program.write_text(source, encoding='utf-8')
    return str(program)


def test_cli_runs_a_file(tmp_path, capsys):
    main([write_program(tmp_path, 'log("hi")\n')])
    assert capsys.readouterr().out == 'hi\n'


def test_cli_reports_errors(tmp_path, capsys):
    with pytest.raises(SystemExit) as info:
        main([write_program(tmp_path, 'log(1 / 0)')])
    assert info.value.code == 1
    assert 'Runtime Error: Division by zero' in capsys.readouterr().err


def test_cli_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as info:
        main([str(tmp_path / 'nope.versa')])
    assert info.value.code == 1
    assert 'not found' in capsys.readouterr().err


def test_cli_debug_trace(tmp_path):
    debug_file = tmp_path / 'trace.txt'
    main(['-vv', '--debug-file', str(debug_file), write_program(tmp_path, 'var x = 1\nlog(x)')])
    trace = debug_file.read_text(encoding='utf-8')
    assert 'run 2 statement(s) in <program>' in trace
    assert 'declare x: any = 1' in trace
    assert 'call log(1)' in trace


def test_repl(monkeypatch, capsys):
    lines = iter(['var x = 2', 'x * 21', 'nope', '', '"still alive"'])

    def fake_input(prompt=''):
        try:
            return next(lines)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr(builtins, 'input', fake_input)
    main([])
    captured = capsys.readouterr()
    assert captured.out.splitlines() == ['2', '42', 'still alive', '']
    assert "'nope' is not defined" in captured.err
