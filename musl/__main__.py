"""CLI entry point for the MUSL interpreter.

Usage:
    python -m musl [-v|-vv|-vvv] [-D NAME=VALUE ...] <script> [<script> ...]
    python -m musl --check <script> [<script> ...]

Options:
  -v            Increase debug verbosity (can be repeated)
  -D NAME=VALUE Set a variable before the scripts run
  --lenient     Let undefined variables read as 0 or ""
  --check       Check the syntax and labels of each script without running it

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero. All scripts run in order on the same
interpreter, so variables set by one script are visible to the next. The
console, file, random, regex, CALL and HALT functions are available to
the scripts.
"""

import argparse
import sys
from pathlib import Path

from .errors import MuslError
from .grammar import check_script
from .interpreter import Interpreter, read_script
from .std import load_host_library


def define_variable(interpreter: Interpreter, definition: str) -> None:
    name, sep, value = definition.partition('=')
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"bad definition {definition!r}, expected NAME=VALUE")
    try:
        interpreter.set_num(name, int(value))
    except ValueError:
        interpreter.set_str(name, value)


def check_files(files: list) -> None:
    for program_file in files:
        source = read_script(program_file)
        try:
            check_script(source)
        except MuslError as e:
            print(f"ERROR:Line {e.line or 0}: {e.message}:\n>> {e.text or ''}", file=sys.stderr)
            sys.exit(1)
        print(f"{program_file}: OK")


def main(argv: list = None) -> None:
    parser = argparse.ArgumentParser(prog='musl', description="MUSL language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('-D', dest='defines', action='append', default=[], metavar='NAME=VALUE',
                        help='set a variable before running')
    parser.add_argument('--lenient', action='store_true', help='undefined variables read as 0 or ""')
    parser.add_argument('--check', action='store_true', help='check scripts without running them')
    parser.add_argument('programs', nargs='+', metavar='FILE', help='MUSL script(s) to execute')
    args = parser.parse_args(argv)

    for program_file in args.programs:
        if not Path(program_file).exists():
            print(f"ERROR: Unable to read \"{program_file}\"", file=sys.stderr)
            sys.exit(1)

    if args.check:
        check_files(args.programs)
        return

    interpreter = Interpreter(debug_level=args.v, strict_variables=not args.lenient)
    basic_io = load_host_library(interpreter)
    for definition in args.defines:
        try:
            define_variable(interpreter, definition)
        except argparse.ArgumentTypeError as e:
            parser.error(str(e))

    try:
        for program_file in args.programs:
            source = read_script(program_file)
            if not interpreter.run(source):
                print(f"ERROR:Line {interpreter.cur_line()}: {interpreter.error_msg}:\n"
                      f">> {interpreter.error_text}", file=sys.stderr)
                sys.exit(1)
    finally:
        basic_io.close_all()
        interpreter.cleanup()


if __name__ == '__main__':
    main()
