from versa.interpreter import Interpreter
from versa.parser import parse_program


def test_program_8_inheritance(capsys):
    with open('examples/program_8.versa', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source, 'program_8.versa')
    interp = Interpreter()
    interp.run(ast)
    out_lines = capsys.readouterr().out.strip().split('\n')
    assert out_lines == ['Rex makes a sound and barks', 'Animal Rex', 'true true Dog']
