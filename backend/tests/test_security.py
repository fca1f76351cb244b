"""Security-oriented tests ensuring arithmetic never reaches Python evaluation."""

import pytest

from backend.swiftlet.errors import ExecutionError
from backend.swiftlet.expressions import evaluate
from backend.swiftlet.interpreter import Interpreter


@pytest.mark.parametrize("expr", [
    '__import__("os").system("true") + 1',
    "(1).__class__ + 1",
    "[1] * 2",
    "2 ** 3",
    "1 // 2",
    "lambda: 1 - 1",
])
def test_disallowed_arithmetic_constructs(expr):
    with pytest.raises(ExecutionError):
        evaluate(expr, {})


def test_disallowed_construct_in_program():
    it = Interpreter()
    res = it.run('print(__import__("os") + 1)')
    assert res.error is not None
    assert res.error.code == "RUNTIME_ERROR"


def test_subprocess_worker_reports_program_errors():
    from backend.swiftlet._subprocess_worker import run_payload

    reply = run_payload({"code": "print(open)"})
    assert reply["output"] is None
    assert reply["error"]["code"] == "RUNTIME_ERROR"
