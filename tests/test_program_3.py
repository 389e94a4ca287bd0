from versa.interpreter import Interpreter
from versa.parser import parse_program


def test_program_3_interpolation(capsys):
    with open('examples/program_3.versa', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source, 'program_3.versa')
    interp = Interpreter()
    interp.run(ast)
    out_lines = capsys.readouterr().out.strip().split('\n')
    assert out_lines == ['Hello Versa, you have 4 messages', 'a1 bbb', 'braces: {kept}']
