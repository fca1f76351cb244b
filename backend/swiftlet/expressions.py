"""Expression evaluation for Swiftlet.

`evaluate` resolves a single expression string against the run's variable
store. It tries, in order: string literal (with interpolation), boolean
literal, integer literal, float literal, variable lookup and finally
arithmetic. The first rule that matches wins; there is no tokenizer.

Arithmetic is evaluated with a small AST walker in the same spirit as a
restricted `eval`: the text is parsed with `ast.parse(mode="eval")`, only
`+ - * /`, unary sign, numeric constants and names bound to numeric values
are accepted, and anything else is rejected. Division of two integers
truncates toward zero at each step; once a Float operand is involved the
division is a true one. The final result is truncated to an Integer.
"""

import ast
import re
from typing import Dict, Mapping, Optional, Union

from .errors import ExecutionError
from .values import Value, ValueKind, bool_val, fits_int64, float_val, int_val, string_val

VariableStore = Dict[str, Value]

_INT_LITERAL = re.compile(r"[+-]?[0-9]+")
_FLOAT_LITERAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_INTERPOLATION = re.compile(r"\\\(([^)]+)\)")
_ARITHMETIC_OPERATORS = ("+", "-", "*", "/")


class EvalError(Exception):
    """Raised inside the arithmetic walker; always converted to ExecutionError."""


def _int_div(left: int, right: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(left) // abs(right)
    return -q if (left < 0) != (right < 0) else q


class ArithmeticEvaluator(ast.NodeVisitor):
    """Evaluate a parsed arithmetic expression over numeric store values.

    Only the four binary operators and unary +/- are supported. Names are
    looked up in `store` and must be bound to an Integer or Float; booleans
    and strings are not substituted.

    Args:
        store: the run's variable store (read-only).
    """

    def __init__(self, store: Mapping[str, Value]):
        self.store = store

    def visit_Expression(self, node):
        return self.visit(node.body)

    def visit_BinOp(self, node):
        left = self.visit(node.left)
        right = self.visit(node.right)
        if isinstance(node.op, ast.Add):
            return left + right
        if isinstance(node.op, ast.Sub):
            return left - right
        if isinstance(node.op, ast.Mult):
            return left * right
        if isinstance(node.op, ast.Div):
            if right == 0:
                raise EvalError("division by zero")
            if isinstance(left, int) and isinstance(right, int):
                return _int_div(left, right)
            return left / right
        raise EvalError(f"unsupported operator {type(node.op).__name__}")

    def visit_UnaryOp(self, node):
        operand = self.visit(node.operand)
        if isinstance(node.op, ast.UAdd):
            return +operand
        if isinstance(node.op, ast.USub):
            return -operand
        raise EvalError(f"unsupported unary operator {type(node.op).__name__}")

    def visit_Constant(self, node):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise EvalError(f"non-numeric literal {node.value!r}")
        return node.value

    def visit_Name(self, node):
        value = self.store.get(node.id)
        if value is None:
            raise EvalError(f"undefined variable '{node.id}'")
        if not value.is_numeric():
            raise EvalError(f"'{node.id}' is not numeric")
        if value.kind is ValueKind.INTEGER:
            return int(value.data)
        return float(value.data)

    def generic_visit(self, node):
        raise EvalError(f"unsupported expression element: {type(node).__name__}")


def eval_arithmetic(expression: str, store: Mapping[str, Value]) -> Value:
    """Evaluate `expression` as integer-truncated arithmetic.

    Raises:
        ExecutionError: if the text does not parse, uses anything outside
            the supported subset, divides by zero, or produces a result
            that is not a finite 64-bit integer.
    """
    failure = f"Cannot evaluate arithmetic expression: {expression}"
    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except SyntaxError as e:
        raise ExecutionError(failure) from e

    try:
        result: Union[int, float] = ArithmeticEvaluator(store).visit(tree)
    except EvalError as e:
        raise ExecutionError(failure) from e

    try:
        truncated = int(result)
    except (OverflowError, ValueError) as e:
        # inf / nan from float operands
        raise ExecutionError(failure) from e
    if not fits_int64(truncated):
        raise ExecutionError(failure)
    return int_val(truncated)


def interpolate(text: str, store: Mapping[str, Value]) -> str:
    r"""Replace `\(name)` markers with the display form of bound values.

    Markers are bare variable names, not expressions. A name that is not in
    the store leaves its marker untouched. Markers are rewritten right to
    left so earlier offsets stay valid.
    """
    result = text
    for match in reversed(list(_INTERPOLATION.finditer(text))):
        value = store.get(match.group(1))
        if value is None:
            continue
        result = result[: match.start()] + value.display() + result[match.end():]
    return result


def parse_int_literal(text: str) -> Optional[int]:
    """Return the int for a 64-bit integer literal, or None."""
    if not _INT_LITERAL.fullmatch(text):
        return None
    n = int(text)
    return n if fits_int64(n) else None


def parse_float_literal(text: str) -> Optional[float]:
    if not _FLOAT_LITERAL.fullmatch(text):
        return None
    return float(text)


def evaluate(expression: str, store: Mapping[str, Value]) -> Value:
    """Resolve a single expression against `store`.

    Args:
        expression: raw expression text; surrounding whitespace is ignored.
        store: mapping of variable names to values for the current run.

    Returns:
        A freshly built Value, or the stored Value itself for a bare name.

    Raises:
        ExecutionError: if nothing matches or arithmetic fails.
    """
    trimmed = expression.strip()

    if trimmed.startswith('"') and trimmed.endswith('"'):
        return string_val(interpolate(trimmed[1:-1], store))

    if trimmed == "true":
        return bool_val(True)
    if trimmed == "false":
        return bool_val(False)

    as_int = parse_int_literal(trimmed)
    if as_int is not None:
        return int_val(as_int)
    as_float = parse_float_literal(trimmed)
    if as_float is not None:
        return float_val(as_float)

    if trimmed in store:
        return store[trimmed]

    if any(op in trimmed for op in _ARITHMETIC_OPERATORS):
        return eval_arithmetic(trimmed, store)

    raise ExecutionError(f"Unknown expression: {trimmed}")
