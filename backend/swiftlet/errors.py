"""Error taxonomy for Swiftlet runs.

Every failure that reaches a caller is one of three `RunnerError`
subclasses. Errors are terminal for the run that raised them. They carry an
optional line number and line text so the presentation layer can show where
the run stopped; `to_dict` produces the same payload shape the API returns
under `errors`.
"""

from typing import Any, Dict, Optional


class RunnerError(Exception):
    """Base class for errors surfaced by a run.

    Attributes:
        message: human-readable description (without the kind label)
        line: optional 1-based source line where the run stopped
        line_text: optional trimmed text of that line
    """

    code = "RUNNER_ERROR"
    label = "Error"

    def __init__(self, message: str, *, line: Optional[int] = None, line_text: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.line_text = line_text

    def at_line(self, line: int, line_text: str) -> "RunnerError":
        """Return a copy of this error of the same kind, prefixed with line context."""
        return type(self)(
            f"Error in line '{line_text}': {self.message}",
            line=line,
            line_text=line_text,
        )

    def describe(self) -> str:
        return f"{self.label}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        err: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.line is not None:
            err["line"] = self.line
        if self.line_text is not None:
            err["context"] = {"line_text": self.line_text}
        return err

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "RunnerError":
        """Rebuild an error from `to_dict` output (used across the subprocess boundary)."""
        kinds = {k.code: k for k in (CompilationError, ExecutionError, UnsupportedOperation)}
        kind = kinds.get(payload.get("code", ""), ExecutionError)
        context = payload.get("context") or {}
        return kind(
            str(payload.get("message", "")),
            line=payload.get("line"),
            line_text=context.get("line_text"),
        )


class CompilationError(RunnerError):
    """A statement has the wrong shape: bad `=` split, wrong arity, missing `)`."""

    code = "COMPILATION_ERROR"
    label = "Compilation Error"


class ExecutionError(RunnerError):
    """A value of the wrong kind reached an operation, or an expression did not resolve.

    Also the catch-all for lower-level failures inside a run.
    """

    code = "RUNTIME_ERROR"
    label = "Runtime Error"


class UnsupportedOperation(RunnerError):
    # Nothing raises this yet; kept so callers can match on the full taxonomy.
    code = "UNSUPPORTED_OPERATION"
    label = "Unsupported Operation"
