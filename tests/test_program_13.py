from versa.interpreter import Interpreter
from versa.parser import parse_program


def test_program_13_html(capsys):
    with open('examples/program_13.versa', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source, 'program_13.versa')
    interp = Interpreter()
    interp.run(ast)
    out = capsys.readouterr().out.strip()
    assert out == '<div#main.container.wide>'
