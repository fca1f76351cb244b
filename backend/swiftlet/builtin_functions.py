"""The fixed table of built-in functions.

Exactly three calls are recognised, matched by substring containment of
`name(` and tried in table order: `factorial`, `greet` and `add`. Any other
call is ignored and contributes no output. Each handler returns the text the
call produces; the dispatcher turns non-empty text into an output line.
"""

from typing import Callable, Mapping, Sequence, Tuple

from .errors import CompilationError, ExecutionError
from .expressions import evaluate
from .values import Value, ValueKind, fits_int64

# 20! is the largest factorial that fits in a signed 64-bit integer.
DEFAULT_MAX_FACTORIAL_ARG = 20

Handler = Callable[[str, Mapping[str, Value], int], str]


def _argument_text(line: str, prefixes: Sequence[str], name: str) -> str:
    """Return the text between the first matching prefix and the last `)`."""
    for prefix in prefixes:
        start = line.find(prefix)
        if start >= 0:
            start += len(prefix)
            break
    else:
        raise CompilationError(f"Invalid {name} function call")
    end = line.rfind(")")
    if end < start:
        raise CompilationError(f"Invalid {name} function call")
    return line[start:end]


def factorial(n: int) -> int:
    if n <= 1:
        return 1
    return n * factorial(n - 1)


def _call_factorial(line: str, store: Mapping[str, Value], max_factorial_arg: int) -> str:
    value = evaluate(_argument_text(line, ("factorial(",), "factorial"), store)
    if value.kind is not ValueKind.INTEGER:
        raise ExecutionError("Factorial requires an integer parameter")
    n = int(value.data)
    if n > max_factorial_arg:
        raise ExecutionError(f"Factorial argument too large (max {max_factorial_arg})")
    return str(factorial(n))


def _call_greet(line: str, store: Mapping[str, Value], max_factorial_arg: int) -> str:
    value = evaluate(_argument_text(line, ("greet(name:", "greet("), "greet"), store)
    if value.kind is not ValueKind.STRING:
        raise ExecutionError("Greet requires a string parameter")
    return f"Hello, {value.data}!"


def _call_add(line: str, store: Mapping[str, Value], max_factorial_arg: int) -> str:
    params = [p.strip() for p in _argument_text(line, ("add(",), "add").split(",")]
    if len(params) != 2:
        raise CompilationError("Add function requires exactly 2 parameters")
    first = evaluate(params[0], store)
    second = evaluate(params[1], store)
    if first.kind is not ValueKind.INTEGER or second.kind is not ValueKind.INTEGER:
        raise ExecutionError("Add function requires integer parameters")
    total = int(first.data) + int(second.data)
    if not fits_int64(total):
        raise ExecutionError("Integer overflow in add")
    return str(total)


BUILTINS: Tuple[Tuple[str, Handler], ...] = (
    ("factorial", _call_factorial),
    ("greet", _call_greet),
    ("add", _call_add),
)


def call_builtin(
    line: str,
    store: Mapping[str, Value],
    *,
    max_factorial_arg: int = DEFAULT_MAX_FACTORIAL_ARG,
) -> str:
    """Run the first built-in whose `name(` appears in `line`.

    Returns the call's output text, or an empty string when the line names
    no known built-in.

    Raises:
        CompilationError: malformed call or wrong argument count.
        ExecutionError: an argument of the wrong kind, or a value out of range.
    """
    for name, handler in BUILTINS:
        if f"{name}(" in line:
            return handler(line, store, max_factorial_arg)
    return ""
