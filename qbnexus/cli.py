"""Command-line entry point."""

from __future__ import annotations

import logging
import sys

from .backend.javascript import TARGET_NODE, TARGETS
from .compiler import Compiler, CompilerOptions
from .diagnostics import SEV_ERROR, SEV_WARNING, Diagnostic

USAGE: str = """\
qbnexus [OPTIONS] [INPUT] [-o OUTPUT]

Transpile a QBasic / QB64 program to JavaScript.

Options:
  --target TARGET     Output flavor: node (default) or web
  --lint              Report diagnostics only, generate nothing
  --no-cache          Disable the compilation cache
  --verbose           Log debug information to stderr
  -o, --output FILE   Write output to FILE instead of stdout
  --help              Show this help message
"""


class CliArgs:
    def __init__(self) -> None:
        self.target: str = TARGET_NODE
        self.lint: bool = False
        self.cache: bool = True
        self.verbose: bool = False
        self.input_file: str | None = None
        self.output_file: str | None = None


def parse_args(args: list[str]) -> CliArgs:
    """Parse command-line arguments; exits with status 2 on misuse."""
    parsed = CliArgs()
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            sys.exit(0)
        elif arg == "--target":
            if i + 1 >= len(args):
                print("error: --target requires an argument", file=sys.stderr)
                sys.exit(2)
            parsed.target = args[i + 1]
            i += 2
        elif arg == "-o" or arg == "--output":
            if i + 1 >= len(args):
                print("error: " + arg + " requires an argument", file=sys.stderr)
                sys.exit(2)
            parsed.output_file = args[i + 1]
            i += 2
        elif arg == "--lint":
            parsed.lint = True
            i += 1
        elif arg == "--no-cache":
            parsed.cache = False
            i += 1
        elif arg == "--verbose":
            parsed.verbose = True
            i += 1
        elif arg.startswith("-") and arg != "-":
            print("error: unknown flag '" + arg + "'", file=sys.stderr)
            sys.exit(2)
        else:
            if parsed.input_file is not None:
                print("error: unexpected argument '" + arg + "'", file=sys.stderr)
                sys.exit(2)
            parsed.input_file = None if arg == "-" else arg
            i += 1
    if parsed.target not in TARGETS:
        print("error: unknown target '" + parsed.target + "'", file=sys.stderr)
        sys.exit(2)
    return parsed


def read_source(input_file: str | None) -> tuple[str, int]:
    """Read source from file or stdin. Returns (source, exit_code) where exit_code 0 means OK."""
    if input_file is not None:
        try:
            with open(input_file, "rb") as f:
                raw = f.read()
        except OSError:
            print("error: cannot open '" + input_file + "'", file=sys.stderr)
            return ("", 1)
    else:
        raw = sys.stdin.buffer.read()
    if len(raw) > 0:
        try:
            source = raw.decode("utf-8-sig")
        except ValueError:
            print("error: invalid utf-8 in input", file=sys.stderr)
            return ("", 1)
        return (source, 0)
    return ("", 0)


def write_output(output: str, output_file: str | None) -> int:
    """Write output to file or stdout. Returns 0 on success, 1 on error."""
    if output_file is not None:
        try:
            with open(output_file, "w", encoding="utf-8") as f:
                f.write(output + "\n")
        except OSError:
            print("error: cannot write '" + output_file + "'", file=sys.stderr)
            return 1
        return 0
    print(output)
    return 0


def format_diagnostic(d: Diagnostic) -> str:
    return d.severity + ":" + str(d.line) + ":" + str(d.column) + ": " + d.message


def print_diagnostics(diagnostics: list[Diagnostic]) -> None:
    for d in diagnostics:
        if d.severity == SEV_ERROR or d.severity == SEV_WARNING:
            print(format_diagnostic(d), file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    source, err = read_source(args.input_file)
    if err != 0:
        return err
    if len(source) == 0:
        print("error: no input provided", file=sys.stderr)
        return 2
    compiler = Compiler(CompilerOptions(target=args.target, cache=args.cache))
    result = compiler.compile(source)
    print_diagnostics(result.diagnostics)
    if args.verbose:
        logging.getLogger(__name__).debug(compiler.format_stats())
    if not result.success:
        return 1
    if args.lint:
        return 0
    return write_output(result.code, args.output_file)


if __name__ == "__main__":
    sys.exit(main())
