"""Command-line runner for Swiftlet programs.

Usage:
  python -m backend.swiftlet hello.swift
  echo 'print("hi")' | python -m backend.swiftlet -

Prints the program output on success. On failure prints
`Error: <Kind>: <message>` to stderr and exits with status 1.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .execution import CodeRunner


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="swiftlet", description="Run a Swiftlet source file")
    p.add_argument("file", help="Source file to run, or '-' to read stdin")
    p.add_argument("--max-steps", type=int, default=None, help="Maximum executed lines per run")
    p.add_argument("--max-output-chars", type=int, default=None, help="Maximum output size in characters")
    p.add_argument("--subprocess", action="store_true", help="Run in an isolated worker process")
    p.add_argument("--timeout", type=float, default=2.0, help="Worker timeout in seconds (with --subprocess)")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    source = sys.stdin.read() if args.file == "-" else Path(args.file).read_text(encoding="utf-8")

    settings = {}
    if args.max_steps is not None:
        settings["max_steps"] = args.max_steps
    if args.max_output_chars is not None:
        settings["max_output_chars"] = args.max_output_chars
    if args.subprocess:
        settings["use_subprocess"] = True
        settings["timeout_s"] = args.timeout

    with CodeRunner(settings=settings, max_workers=1) as runner:
        result = runner.run_sync(source)

    if result.error is not None:
        print(result.rendered(), file=sys.stderr)
        return 1
    output = result.output or ""
    sys.stdout.write(output if output.endswith("\n") else output + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
