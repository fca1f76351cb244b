"""Unit tests for server-side caps and the subprocess worker contract.

- `test_cap_settings_clamps`: client-provided values are clamped to the
  Interpreter defaults.
- The subprocess tests check the JSON-over-stdin/stdout contract and that
  results (including structured errors) survive the process boundary.
"""

import json

from backend.app.main import MAX_SUBPROCESS_TIMEOUT_S, _cap_settings
from backend.swiftlet.errors import CompilationError
from backend.swiftlet.interpreter import Interpreter
from backend.swiftlet.subprocess_runner import run_source_in_subprocess


def test_cap_settings_clamps():
    requested = {
        "max_steps": 10_000_000,
        "max_output_chars": 10_000_000,
        "max_factorial_arg": 1000,
        "use_subprocess": True,
        "timeout_s": 10_000.0,
    }

    capped = _cap_settings(requested)
    defaults = Interpreter()

    assert capped["max_steps"] <= defaults.max_steps
    assert capped["max_output_chars"] <= defaults.max_output_chars
    assert capped["max_factorial_arg"] <= defaults.max_factorial_arg
    assert capped["use_subprocess"] is True
    assert capped["timeout_s"] == MAX_SUBPROCESS_TIMEOUT_S


def test_cap_settings_allows_lower_limits():
    capped = _cap_settings({"max_steps": 3})
    assert capped["max_steps"] == 3
    assert "use_subprocess" not in capped


def test_subprocess_worker_contract():
    rc, out, err = run_source_in_subprocess('let x = 2\nprint(x * 21)', timeout_s=10)
    assert rc == 0, f"subprocess returned non-zero rc: {rc}, stderr: {err}"

    j = json.loads(out)
    assert "output" in j and "error" in j
    assert j["error"] is None
    assert j["output"] == "42\n"


def test_interpreter_subprocess_mode_keeps_error_kind():
    it = Interpreter()
    res = it.run("print(1)\nadd(1)", settings={"use_subprocess": True, "timeout_s": 10})
    assert isinstance(res.error, CompilationError)
    assert res.error.line == 2
    assert res.error.line_text == "add(1)"


def test_interpreter_subprocess_mode_no_output():
    it = Interpreter()
    res = it.run("// nothing", settings={"use_subprocess": True, "timeout_s": 10})
    assert res.output == "Code executed successfully (no output)"
