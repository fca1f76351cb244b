"""Runtime values for the Swiftlet interpreter.

A `Value` is a closed tagged union over the four kinds the language knows
about: Integer, Float, Boolean and String. Values are immutable; evaluator
functions always build a fresh one through the constructors below.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class ValueKind(Enum):
    INTEGER = "Integer"
    FLOAT = "Float"
    BOOLEAN = "Boolean"
    STRING = "String"


@dataclass(frozen=True)
class Value:
    """A runtime value tagged with its kind.

    `data` holds the Python object (int, float, bool or str) and `kind`
    says which of the four variants it is. Consumers switch on `kind`
    rather than on the Python type, since `bool` is a subclass of `int`.
    """

    kind: ValueKind
    data: Union[int, float, bool, str]

    def __repr__(self) -> str:
        return f"Value({self.kind.value}, {self.data!r})"

    def is_numeric(self) -> bool:
        return self.kind in (ValueKind.INTEGER, ValueKind.FLOAT)

    def display(self) -> str:
        """Return the text a `print` or an interpolation shows for this value."""
        if self.kind is ValueKind.INTEGER:
            return str(self.data)
        if self.kind is ValueKind.FLOAT:
            return repr(float(self.data))
        if self.kind is ValueKind.BOOLEAN:
            return "true" if self.data else "false"
        if self.kind is ValueKind.STRING:
            return str(self.data)
        raise TypeError(f"unhandled value kind {self.kind!r}")


def fits_int64(n: int) -> bool:
    return INT64_MIN <= n <= INT64_MAX


def int_val(n: int) -> Value:
    """Create an Integer value. Raises OverflowError outside the 64-bit range."""
    n = int(n)
    if not fits_int64(n):
        raise OverflowError(f"{n} does not fit in a 64-bit integer")
    return Value(ValueKind.INTEGER, n)


def float_val(x: float) -> Value:
    return Value(ValueKind.FLOAT, float(x))


def bool_val(b: bool) -> Value:
    return Value(ValueKind.BOOLEAN, bool(b))


def string_val(s: str) -> Value:
    return Value(ValueKind.STRING, str(s))
