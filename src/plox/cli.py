"""Command-line interface for plox: file runner and REPL."""

from __future__ import annotations

import argparse
import sys
import time
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TextIO

from plox.errors import STATIC_ERRORS, EvalError, ScanError
from plox.interpreter import DEFAULT_MAX_CALL_DEPTH
from plox.parser import Parser
from plox.scanner import tokenize
from plox.session import Session
from plox.tokens import Token

# sysexits.h
EX_OK = 0
EX_USAGE = 64
EX_DATAERR = 65
EX_NOINPUT = 66
EX_SOFTWARE = 70

DEFAULT_PROMPT = "> "
_PHASES = ("scan", "parse", "resolve", "interpret")


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    script: Path | None
    debug: bool
    timing: bool
    watch: bool
    max_call_depth: int
    prompt: str


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="plox",
        description="Lox tree-walk interpreter. Starts a REPL when no script is given.",
    )
    p.add_argument("script", nargs="?", help="Lox source file to run")
    p.add_argument(
        "--config",
        metavar="FILE",
        help="Config file (default: auto-discover plox.toml)",
    )
    p.add_argument(
        "--max-call-depth",
        type=int,
        default=None,
        metavar="N",
        help=f"Maximum nested function calls (default: {DEFAULT_MAX_CALL_DEPTH})",
    )
    p.add_argument("--watch", action="store_true", help="Rerun the script whenever it changes")
    p.add_argument("--debug", action="store_true", help="Dump the AST to stderr")
    p.add_argument("--timing", action="store_true", help="Print phase timings to stderr")
    return p


def load_config(config_path: Path | None, base_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else base_dir / "plox.toml"

    if not path.is_file():
        return {}

    with open(path, "rb") as f:
        return tomllib.load(f)


def resolve_options(args: argparse.Namespace) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: config file < CLI flags.
    """
    script = Path(args.script) if args.script else None
    base_dir = Path(".")
    if script is not None and script.parent.parts:
        base_dir = script.parent

    config_path = Path(args.config) if args.config else None
    config = load_config(config_path, base_dir)

    debug = bool(config.get("debug", False)) or args.debug
    timing = bool(config.get("timing", False)) or args.timing

    max_call_depth = DEFAULT_MAX_CALL_DEPTH
    cfg_interp = config.get("interpreter")
    if isinstance(cfg_interp, dict):
        cfg_depth = cfg_interp.get("max_call_depth")
        if isinstance(cfg_depth, int):
            max_call_depth = cfg_depth
    if args.max_call_depth is not None:
        max_call_depth = args.max_call_depth
    if max_call_depth < 1:
        raise argparse.ArgumentTypeError(f"max call depth must be positive: {max_call_depth}")

    prompt = DEFAULT_PROMPT
    cfg_repl = config.get("repl")
    if isinstance(cfg_repl, dict):
        cfg_prompt = cfg_repl.get("prompt")
        if isinstance(cfg_prompt, str):
            prompt = cfg_prompt

    if args.watch and script is None:
        raise argparse.ArgumentTypeError("--watch needs a script")

    return CliOptions(
        script=script,
        debug=debug,
        timing=timing,
        watch=args.watch,
        max_call_depth=max_call_depth,
        prompt=prompt,
    )


def print_timings(timings: dict[str, float], file: TextIO | None = None) -> None:
    out = file if file is not None else sys.stderr
    for phase in _PHASES:
        if phase in timings:
            print(f"{phase}: {timings[phase] * 1000:.4f}ms", file=out)


def run_source(
    session: Session,
    source: str,
    options: CliOptions,
    filename: str = "<script>",
    repl: bool = False,
) -> int:
    """Run one unit through the pipeline, printing any error. Returns an exit code."""
    from plox.debug import dump_ast

    session.timings.clear()
    try:
        statements = session.parse(source)
        if options.debug:
            dump_ast(statements, file=sys.stderr)
        session.resolve(statements, source)
        session.execute(statements, source, repl=repl)
    except STATIC_ERRORS as exc:
        print(exc.format(filename), file=sys.stderr)
        return EX_DATAERR
    except EvalError as exc:
        print(exc.format(filename), file=sys.stderr)
        return EX_SOFTWARE
    finally:
        if options.timing:
            print_timings(session.timings)
    return EX_OK


def run_file(options: CliOptions) -> int:
    """Read and run a script in a fresh session."""
    assert options.script is not None
    try:
        source = options.script.read_text(encoding="utf-8")
    except OSError as exc:
        print(f"error: cannot read {options.script}: {exc.strerror}", file=sys.stderr)
        return EX_NOINPUT
    session = Session(max_call_depth=options.max_call_depth)
    return run_source(session, source, options, str(options.script))


def _parses(tokens: list[Token]) -> bool:
    _, errors = Parser(tokens).parse_with_errors()
    return not errors


def complete_statement(line: str) -> str:
    """Append the ';' a one-line REPL entry usually leaves off.

    The ';' goes right after the last token, ahead of any trailing comment,
    and only when the line parses with it and not without it. Anything else
    is returned as typed so its own error is reported.
    """
    stripped = line.rstrip()
    try:
        tokens = tokenize(stripped)
    except ScanError:
        return stripped
    if len(tokens) < 2 or _parses(tokens):
        return stripped

    last = tokens[-2]
    end = last.column - 1 + len(last.lexeme)
    candidate = stripped[:end] + ";" + stripped[end:]
    if _parses(tokenize(candidate)):
        return candidate
    return stripped


def repl(options: CliOptions, stdin: TextIO | None = None) -> int:
    """Read-eval-print loop over one persistent session. 'exit' or EOF quits."""
    stream = stdin if stdin is not None else sys.stdin
    session = Session(max_call_depth=options.max_call_depth, color=sys.stdout.isatty())
    try:
        while True:
            sys.stdout.write(options.prompt)
            sys.stdout.flush()
            line = stream.readline()
            if not line:
                sys.stdout.write("\n")
                break
            if line.strip() == "exit":
                break
            if not line.strip():
                continue
            run_source(session, complete_statement(line), options, "<stdin>", repl=True)
    except KeyboardInterrupt:
        sys.stdout.write("\n")
    return EX_OK


def watch_loop(options: CliOptions) -> None:
    """Poll the script for changes, rerunning it on each modification."""
    assert options.script is not None
    last_mtime = 0.0
    print(f"Watching {options.script} for changes...", file=sys.stderr)
    try:
        while True:
            try:
                mtime = options.script.stat().st_mtime
            except OSError:
                time.sleep(0.5)
                continue
            if mtime != last_mtime:
                last_mtime = mtime
                code = run_file(options)
                print(f"Ran {options.script} (exit {code})", file=sys.stderr)
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/64/65/66/70). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = resolve_options(args)
    except argparse.ArgumentTypeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EX_USAGE
    except tomllib.TOMLDecodeError as exc:
        print(f"error: invalid config file: {exc}", file=sys.stderr)
        return EX_USAGE

    if options.script is None:
        return repl(options)

    if options.watch:
        watch_loop(options)
        return EX_OK

    return run_file(options)
