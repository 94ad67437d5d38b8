"""Interactive REPL for the Clyde query language."""

from __future__ import annotations

import argparse
import logging
import readline  # noqa: F401 - enables line editing in input()
import sys
from dataclasses import dataclass, field
from pathlib import Path

from clyde import __version__
from clyde.backend import Backend, PythonBackend
from clyde.display import format_value
from clyde.environment import Environment
from clyde.errors import ClydeError, EmptyInput, LexError, ParseError, VarNotFound
from clyde.file_system import FileSystem, PhysicalFs
from clyde.interpreter import History, Interpreter, SymbolTable
from clyde.parsing.query_parser import Assign, Meta, MetaKind, MetaVar, Statement, parse_program, parse_stmt
from clyde.types import Value

logger = logging.getLogger(__name__)


@dataclass
class ReplConfig:
    """Settings for a session, taken from the command line."""

    root: Path = field(default_factory=Path.cwd)
    verbose: bool = False


class Repl(Environment):
    """A REPL session: history, named variables, the file system and the backend."""

    def __init__(self, config: ReplConfig | None = None) -> None:
        self.config = config or ReplConfig()
        self.fs = PhysicalFs(self.config.root)
        self.symbols = SymbolTable()
        self.history = History()
        self.interpreter = Interpreter(self, self.symbols)
        self.running = True
        self._backend: Backend | None = None

    # ---- Environment ----

    def exec_meta(self, kind: MetaKind) -> None:
        if kind == MetaKind.HELP:
            print_help()
        elif kind == MetaKind.EXIT:
            self.running = False

    def show(self, value: Value) -> None:
        print(format_value(value, self.fs))

    def lookup_var(self, var: MetaVar) -> Value:
        raise VarNotFound(var)

    def lookup_numeric_var(self, index: int) -> Value:
        return self.history.lookup(index)

    def file_system(self) -> FileSystem:
        return self.fs

    def backend(self) -> Backend:
        if self._backend is None:
            logger.debug("Starting Python backend for %s", self.fs.root)
            self._backend = PythonBackend(self.fs)
        return self._backend

    # ---- Statements ----

    def prompt(self) -> str:
        return f"{len(self.history)} > "

    def execute(self, text: str, prompt_len: int = 0) -> bool:
        """Parse and run one line of input. Returns False if it failed.

        Empty input is ignored and does not count as a statement.
        """
        try:
            stmt = parse_stmt(text, env_ctx=len(self.history))
        except EmptyInput:
            return True
        except LexError as e:
            print(" " * (prompt_len + e.position) + "^")
            print(f"Syntax error: {e.message}")
            self.history.append(None)
            return False
        except ParseError as e:
            print(f"Syntax error: {e.message}")
            self.history.append(None)
            return False
        return self.run_statement(stmt)

    def run_statement(self, stmt: Statement) -> bool:
        """Evaluate and display a statement, recording its result in the history."""
        try:
            value = self.interpreter.evaluate_stmt(stmt)
        except ClydeError as e:
            print(f"Error: {e}")
            self.history.append(None)
            return False
        except Exception as e:
            logger.debug("Unexpected error in %r", stmt.ctx.input, exc_info=True)
            print(f"Error: {e}")
            self.history.append(None)
            return False

        if not isinstance(stmt.kind, (Assign, Meta)):
            try:
                self.interpreter.show_result(value)
            except OSError as e:
                print(f"Error displaying result: {e}", file=sys.stderr)
        self.history.append(value)
        return True

    def run_source(self, source: str, verbose: bool = False) -> bool:
        """Run a `;`-separated script, stopping at the first failing statement."""
        try:
            program = parse_program(source)
        except (LexError, ParseError) as e:
            print(f"Syntax error: {e}", file=sys.stderr)
            return False

        for stmt in program.statements:
            if verbose:
                text = (stmt.ctx.input or "").strip(" \t\n;")
                print(f">>> {text}")
            if not self.run_statement(stmt):
                return False
            if not self.running:
                break
        return True


HELP_TEXT = f"""Clyde {__version__}

Meta-commands:
  ^help     display this message
  ^exit     exit Clyde

Some common statements:
  select    query the program
  x =       variable assignment
  show      print a value

Functions (chain them with `->`):
  show      print a value, evaluating it first if it is a query
  select    evaluate a query (`select*` keeps every element)
  idents    identifiers at a position or within a range
  pick      the first element of a set
  def       the definition of an identifier
  count     the number of elements in a set
  name      the name of an identifier or definition

Locations:
  (:file)  (:file:line)  (:file:line:column)  (:line)  (:line:column)  (:)

Variables:
  $         the last result
  $n        result n (the number in the prompt)
  $-n       the n-th most recent result
  $x        the value assigned by `x = ...`
"""


def print_help() -> None:
    """Print help information."""
    print(HELP_TEXT)


def run_repl(config: ReplConfig) -> int:
    """Run the interactive REPL."""
    repl = Repl(config)
    print(f"Clyde {__version__} - {repl.fs.root}")
    print("Type ^help for help, ^exit to quit.\n")

    while repl.running:
        prompt = repl.prompt()
        try:
            line = input(prompt)
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print()
            continue
        repl.execute(line, len(prompt))

    return 0


def run_file(file_path: Path, config: ReplConfig) -> int:
    """Execute the statements of a file.

    Returns:
        0 on success, 1 on error
    """
    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Error reading file: {e}", file=sys.stderr)
        return 1

    repl = Repl(config)
    return 0 if repl.run_source(content, config.verbose) else 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    arg_parser = argparse.ArgumentParser(
        description="Interactive query language for source code"
    )
    arg_parser.add_argument(
        "root",
        type=Path,
        nargs="?",
        default=Path("."),
        help="Root directory of the project to query (default: current directory)",
    )
    arg_parser.add_argument(
        "-c", "--command",
        type=str,
        help="Execute statements and exit",
    )
    arg_parser.add_argument(
        "-f", "--file",
        type=Path,
        help="Execute statements from a file and exit",
    )
    arg_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Echo each statement before running it and log debug output to stderr",
    )

    args = arg_parser.parse_args(argv)

    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        level=logging.DEBUG if args.verbose else logging.WARNING,
        stream=sys.stderr,
    )

    if not args.root.is_dir():
        print(f"Error: Root directory not found: {args.root}", file=sys.stderr)
        return 1
    config = ReplConfig(root=args.root, verbose=args.verbose)

    if args.file:
        if not args.file.exists():
            print(f"Error: File not found: {args.file}", file=sys.stderr)
            return 1
        return run_file(args.file, config)

    if args.command:
        repl = Repl(config)
        return 0 if repl.run_source(args.command, config.verbose) else 1

    return run_repl(config)


if __name__ == "__main__":
    sys.exit(main())
