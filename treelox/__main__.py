"""Command-line entry point: run a script, or start a prompt when none is given."""

from __future__ import annotations
import argparse
import cmd
import logging
import sys

from .session import LoxSession, Outcome

EXIT_USAGE = 64
EXIT_NO_INPUT = 66


def report(outcome: Outcome, stream=None):
    stream = stream or sys.stderr
    for diagnostic in outcome.diagnostics:
        print(diagnostic, file=stream)


class Shell(cmd.Cmd):
    """Interactive Lox prompt. Each line runs in the same session."""

    intro = "treelox :: Ctrl-D to exit"
    prompt = "> "

    def __init__(self, session: LoxSession, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.session = session

    def default(self, line):
        # Error flags live on the per-line Outcome, so nothing carries over.
        report(self.session.interpret(line))

    def emptyline(self):
        """Do not repeat the previous line."""
        return False

    def do_EOF(self, arg):
        print()
        return True


def run_file(path: str, session: LoxSession) -> int:
    try:
        with open(path, encoding="utf-8") as f:
            source = f.read()
    except OSError as exc:
        print(f"Could not read {path}: {exc.strerror}", file=sys.stderr)
        return EXIT_NO_INPUT
    outcome = session.interpret(source)
    report(outcome)
    return outcome.exit_code


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="treelox", description="Lox tree-walking interpreter")
    parser.add_argument("script", nargs="?", help="file to run (if omitted, starts a prompt)")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug information")
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return EXIT_USAGE if exc.code else 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )
    session = LoxSession(writer=print)
    if args.script is not None:
        return run_file(args.script, session)
    Shell(session).cmdloop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
