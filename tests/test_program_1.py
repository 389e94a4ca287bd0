from versa.interpreter import Interpreter
from versa.parser import parse_program


def test_program_1_hello(capsys):
    with open('examples/program_1.versa', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source, 'program_1.versa')
    interp = Interpreter()
    interp.run(ast)
    out = capsys.readouterr().out.strip()
    assert out == 'Hello World!!'
