"""Swiftlet interpreter module.

This module runs programs written in a tiny Swift-like subset, one line at
a time. There is no parser in the compiler sense. Each trimmed line is
classified by substring checks in a fixed priority order and routed to a
handler:

- `print(...)`                      -> evaluate and emit an output line
- `let name = expr` / `var ...`     -> declare (or overwrite) a variable
- `name = expr`                     -> assign (or create) a variable
- `factorial(..)`, `greet(..)`, ... -> built-in call, output its result
- anything else                     -> ignored

The order matters: later checks assume earlier ones already excluded their
patterns, so a line like `print(x = 1)` is a print, never an assignment.

Blank lines, `//` comments and `import` lines never reach the dispatcher.
The first error aborts the whole run; no partial output is returned.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from . import subprocess_runner
from .builtin_functions import DEFAULT_MAX_FACTORIAL_ARG, call_builtin
from .errors import CompilationError, ExecutionError, RunnerError
from .expressions import VariableStore, evaluate

logger = logging.getLogger(__name__)

NO_OUTPUT_MESSAGE = "Code executed successfully (no output)"

_COMPARISON_OPERATORS = ("==", "!=", "<=", ">=")


@dataclass
class RunResult:
    """Outcome of one run: either `output` text or exactly one `error`."""

    output: Optional[str] = None
    error: Optional[RunnerError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def rendered(self) -> str:
        """Plain text for display: the output, or `Error: <Kind>: <message>`."""
        if self.error is not None:
            return f"Error: {self.error.describe()}"
        return self.output or ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "output": self.output if self.error is None else "",
            "errors": self.error.to_dict() if self.error is not None else None,
        }


class Interpreter:
    """Top-level Swiftlet interpreter.

    Responsibilities:
    - classify and execute source lines against a per-run variable store,
    - collect printed output,
    - enforce per-run safety limits.

    Tunable attributes (defaults are set in __init__):
    - max_steps: number of dispatched lines allowed in one run
    - max_output_chars: total characters of output allowed in one run
    - max_factorial_arg: largest argument `factorial` accepts

    An instance keeps no state between runs; every `run` starts from an
    empty store, so one instance may be reused.
    """

    def __init__(self):
        self.max_steps = 10000
        self.max_output_chars = 5000
        self.max_factorial_arg = DEFAULT_MAX_FACTORIAL_ARG

    # --- Statement handlers ---------------------------------------------
    def _handle_print(self, line: str, env: VariableStore) -> str:
        start = line.find("print(")
        end = line.rfind(")")
        if start < 0 or end < start + len("print("):
            raise CompilationError("Invalid print statement")
        content = line[start + len("print(") : end]
        return evaluate(content, env).display()

    def _handle_declaration(self, line: str, env: VariableStore) -> None:
        components = line.split("=")
        if len(components) != 2:
            raise CompilationError("Invalid variable declaration")
        left = components[0].strip()
        right = components[1].strip()
        if left.startswith("let ") or left.startswith("var "):
            name = left[4:].strip()
        else:
            raise CompilationError("Invalid variable declaration")
        if not name:
            raise CompilationError("Invalid variable declaration")
        env[name] = evaluate(right, env)

    def _handle_assignment(self, line: str, env: VariableStore) -> None:
        components = line.split("=")
        if len(components) != 2:
            raise CompilationError("Invalid assignment")
        name = components[0].strip()
        if not name:
            raise CompilationError("Invalid assignment")
        env[name] = evaluate(components[1], env)

    def _handle_call(self, line: str, env: VariableStore, limits: Dict[str, int]) -> str:
        return call_builtin(line, env, max_factorial_arg=limits["max_factorial_arg"])

    def _dispatch_statement(self, line: str, env: VariableStore, limits: Dict[str, int]) -> str:
        """Classify one trimmed line and run its handler.

        Returns the text the line prints, or an empty string.
        """
        if "print(" in line:
            return self._handle_print(line, env)
        if "let " in line or "var " in line:
            self._handle_declaration(line, env)
            return ""
        if "=" in line and not any(op in line for op in _COMPARISON_OPERATORS):
            self._handle_assignment(line, env)
            return ""
        if "(" in line and ")" in line:
            return self._handle_call(line, env, limits)
        return ""

    # --- Run loop -------------------------------------------------------
    @staticmethod
    def _is_skipped(line: str) -> bool:
        return not line or line.startswith("//") or line.startswith("import")

    def _limits_for(self, settings: Dict[str, Any]) -> Dict[str, int]:
        """Resolve the limits for one run; the instance defaults are left untouched."""
        return {
            "max_steps": int(settings.get("max_steps", self.max_steps)),
            "max_output_chars": int(settings.get("max_output_chars", self.max_output_chars)),
            "max_factorial_arg": int(settings.get("max_factorial_arg", self.max_factorial_arg)),
        }

    def _execute_core(self, code: str, limits: Dict[str, int]) -> List[str]:
        """Run every line of `code` against a fresh store.

        Returns the output lines. Raises a RunnerError carrying the offending
        line on the first failure.
        """
        env: VariableStore = {}
        output_lines: List[str] = []
        output_chars = 0
        steps = 0

        for number, raw in enumerate(code.splitlines(), start=1):
            line = raw.strip()
            if self._is_skipped(line):
                continue
            steps += 1
            try:
                if steps > limits["max_steps"]:
                    raise ExecutionError(f"Step limit exceeded (max {limits['max_steps']} lines)")
                out = self._dispatch_statement(line, env, limits)
                if out:
                    output_chars += len(out) + 1
                    if output_chars > limits["max_output_chars"]:
                        raise ExecutionError(
                            f"Output length limit reached (max {limits['max_output_chars']} characters)"
                        )
                    output_lines.append(out)
            except RunnerError as e:
                raise e.at_line(number, line) from e
            except RecursionError as e:
                raise ExecutionError("Recursion limit exceeded").at_line(number, line) from e
            except Exception as e:
                # anything unexpected still ends the run as a runtime error
                raise ExecutionError(str(e) or type(e).__name__).at_line(number, line) from e
        return output_lines

    def _maybe_run_in_subprocess(self, code: str, settings: Dict[str, Any], limits: Dict[str, int]) -> RunResult:
        # Run the program in the isolated worker process and rebuild the result
        # from its JSON reply.
        try:
            rc, out, err = subprocess_runner.run_source_in_subprocess(
                code,
                timeout_s=float(settings.get("timeout_s", 2)),
                limits=limits,
            )
        except OSError as e:
            return RunResult(error=ExecutionError(f"Subprocess error: {e}"))
        if rc == -1:
            return RunResult(error=ExecutionError("Time limit exceeded"))
        if rc != 0:
            return RunResult(error=ExecutionError(f"Subprocess failed: {err.strip() or rc}"))
        try:
            payload = json.loads(out)
        except ValueError:
            return RunResult(error=ExecutionError("Subprocess returned malformed output"))
        if payload.get("error"):
            return RunResult(error=RunnerError.from_dict(payload["error"]))
        return RunResult(output=payload.get("output") or NO_OUTPUT_MESSAGE)

    def run(self, code: str, settings: Optional[Dict[str, Any]] = None) -> RunResult:
        """Execute `code` and return its RunResult.

        Args:
            code: the whole program text, one statement per line.
            settings: optional overrides for the tunable limits, plus
                `use_subprocess` / `timeout_s` to run in an isolated worker.

        Never raises for program errors; they are returned in `error`.
        """
        settings_local: Dict[str, Any] = settings or {}
        limits = self._limits_for(settings_local)

        if settings_local.get("use_subprocess"):
            return self._maybe_run_in_subprocess(code, settings_local, limits)

        start = time.perf_counter()
        try:
            output_lines = self._execute_core(code, limits)
        except RunnerError as e:
            logger.debug("run failed after %.3fs: %s", time.perf_counter() - start, e.describe())
            return RunResult(error=e)
        logger.debug("run finished in %.3fs with %d output lines", time.perf_counter() - start, len(output_lines))
        if not output_lines:
            return RunResult(output=NO_OUTPUT_MESSAGE)
        return RunResult(output="".join(f"{o}\n" for o in output_lines))
