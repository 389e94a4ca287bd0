from versa.interpreter import Interpreter
from versa.parser import parse_program


def test_program_6_lists(capsys):
    with open('examples/program_6.versa', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source, 'program_6.versa')
    interp = Interpreter()
    interp.run(ast)
    out_lines = capsys.readouterr().out.strip().split('\n')
    assert out_lines == [
        '[1, 2, 3, 4, none, none, 7]',
        '7 none [2, 3] [1, 2, 3, 4, none]',
        '[2, 3, 4, none, none, 7] 6',
        'h o ell',
    ]
