"""CLI entry point for the Versa interpreter.

Usage:
    python -m versa [-v|-vv|-vvv] [--debug-file PATH] [program_file]

Options:
  -v            Increase debug verbosity (can be repeated)
  --debug-file  Where the debug trace is written (default: debug.txt)

Without a program file an interactive shell is started. Debug information
is written to the debug file when verbosity is greater than zero.
"""

import argparse
import sys
from pathlib import Path

from .errors import VersaError
from .interpreter import Interpreter
from .run import execute, run

PROMPT = 'versa > '


def repl(interpreter: Interpreter) -> None:
    """Read lines until EOF; every line shares the same global context."""
    while True:
        try:
            text = input(PROMPT)
        except EOFError:
            print()
            return
        if not text.strip():
            continue
        result = run(text, '<stdin>', interpreter=interpreter)
        if result is None or not result.elements:
            continue
        shown = result.elements[0] if len(result.elements) == 1 else result
        print(interpreter.represent(shown))


def main(argv: list = None) -> None:
    parser = argparse.ArgumentParser(description="Versa language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--debug-file', default='debug.txt', help='file receiving the debug trace')
    parser.add_argument('program', nargs='?', help='Versa program file (.versa) to execute')
    args = parser.parse_args(argv)

    interpreter = Interpreter(debug_level=args.v, debug_file=args.debug_file)
    try:
        if not args.program:
            repl(interpreter)
            return
        program_file = Path(args.program)
        if not program_file.exists():
            print(f"Error: file {program_file} not found", file=sys.stderr)
            sys.exit(1)
        with open(program_file, 'r', encoding='utf-8') as f:
            source = f.read()
        try:
            execute(source, str(program_file), interpreter=interpreter)
        except VersaError as e:
            print(e.report(), file=sys.stderr)
            sys.exit(1)
    finally:
        interpreter.close()


if __name__ == '__main__':
    main()
