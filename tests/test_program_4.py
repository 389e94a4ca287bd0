from versa.interpreter import Interpreter
from versa.parser import parse_program


def test_program_4_default_and_rest_params(capsys):
    with open('examples/program_4.versa', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source, 'program_4.versa')
    interp = Interpreter()
    interp.run(ast)
    out_lines = capsys.readouterr().out.strip().split('\n')
    assert out_lines == ['Hello, Ada!', 'Hi, Bob!', '10']
