"""Subprocess worker that runs one Swiftlet program.

This module is executed as `python -m backend.swiftlet._subprocess_worker`
by `subprocess_runner`. It reads a single JSON object from stdin with shape
{"code": "...", "limits": {...}}, runs the program with a fresh
`Interpreter`, and writes {"output": ..., "error": ...} to stdout, where
`error` is the error's `to_dict()` payload or null.

The calling process enforces wall-clock timeouts and resource caps.
"""

import json
import sys
from typing import Any, Dict

from .interpreter import Interpreter


def run_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Run the program described by `payload` and return the reply dict."""
    limits = {k: v for k, v in (payload.get("limits") or {}).items() if k != "use_subprocess"}
    result = Interpreter().run(str(payload.get("code", "")), settings=limits)
    return {
        "output": result.output,
        "error": result.error.to_dict() if result.error is not None else None,
    }


def main() -> None:
    raw = sys.stdin.read()
    try:
        payload = json.loads(raw)
    except ValueError as e:
        print(json.dumps({"output": None, "error": {"code": "RUNTIME_ERROR", "message": f"bad_payload: {e}"}}))
        sys.exit(1)
    print(json.dumps(run_payload(payload)))


if __name__ == "__main__":
    main()
