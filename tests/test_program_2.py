from versa.interpreter import Interpreter
from versa.parser import parse_program


def test_program_2_arithmetic(capsys):
    with open('examples/program_2.versa', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source, 'program_2.versa')
    interp = Interpreter()
    interp.run(ast)
    out = capsys.readouterr().out.strip()
    assert out == '7 3 10 2.5 1 25'
