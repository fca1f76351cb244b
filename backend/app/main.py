"""FastAPI application entrypoints for the Swiftlet code runner.

This module is the presentation layer: it exposes the code-file store and
a `/run` endpoint over HTTP. Handlers stay small. Every run goes through
the shared `CodeRunner`, which executes programs on a worker thread with a
fresh interpreter per run, so requests never share variable state and the
event loop is never blocked. Server-side caps stop clients from raising
resource limits.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI
from pydantic import BaseModel

from .. import db
from ..swiftlet.execution import CodeRunner
from ..swiftlet.interpreter import Interpreter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the database schema and seed the sample programs on startup."""
    db.init_db()
    db.create_sample_files()
    yield


app = FastAPI(title="Swiftlet Runner API", version="0.1", lifespan=lifespan)

runner = CodeRunner()

MAX_SUBPROCESS_TIMEOUT_S = 5.0


def _cap_settings(settings: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Enforce server-side safe caps for runtime tunables.

    Clients may send a `settings` object with per-run tunables. The ceiling
    is taken from a fresh `Interpreter()`'s defaults; requested values are
    applied up to that ceiling, never above it.

    Returns a dict suitable for passing to `CodeRunner.execute`.
    """
    defaults = Interpreter()
    safe: Dict[str, Any] = {
        "max_steps": defaults.max_steps,
        "max_output_chars": defaults.max_output_chars,
        "max_factorial_arg": defaults.max_factorial_arg,
    }
    if not settings:
        return safe
    caps: Dict[str, Any] = {}
    for key, ceiling in safe.items():
        caps[key] = min(int(settings.get(key, ceiling)), ceiling)
    if settings.get("use_subprocess"):
        caps["use_subprocess"] = True
        caps["timeout_s"] = min(float(settings.get("timeout_s", 2.0)), MAX_SUBPROCESS_TIMEOUT_S)
    return caps


class RunRequest(BaseModel):
    """Body for `/run`.

    Fields:
        code: program source text.
        settings: optional runtime tunables; capped server-side.
        file_name: optional saved file this run belongs to (for stats).
    """
    code: str
    settings: Optional[Dict[str, Any]] = None
    file_name: Optional[str] = None


@app.post("/run")
async def run_code(req: RunRequest):
    """Run a program and return its output or error.

    The response always has `output`, `errors`, `rendered`, `warnings` and
    `duration_ms`. Recording the run in the stats table is best effort; a
    failure there adds a warning instead of failing the request.
    """
    start = time.time()
    try:
        capped = _cap_settings(req.settings or {})
        result = await runner.execute(req.code, settings=capped)
    except Exception as e:
        logger.exception("run request failed")
        return {
            "output": "",
            "errors": {"code": "SERVER_ERROR", "message": str(e)},
            "rendered": f"Error: {e}",
            "warnings": [],
            "duration_ms": int((time.time() - start) * 1000),
        }

    body: Dict[str, Any] = result.to_dict()
    body["rendered"] = result.rendered()
    body["warnings"] = []
    body["duration_ms"] = int((time.time() - start) * 1000)

    try:
        db.save_run(
            db.normalize_name(req.file_name) if req.file_name else None,
            "ok" if result.ok else "error",
            result.error.code if result.error is not None else None,
            len(result.output or ""),
            body["duration_ms"],
        )
    except Exception as e:
        logger.warning("failed to persist run: %s", e)
        body["warnings"].append(f"Failed to persist run: {e}")

    return body


class SaveFileRequest(BaseModel):
    name: str
    content: str


@app.post('/files')
async def save_file(req: SaveFileRequest):
    try:
        name = db.save_code_file(req.name, req.content)
    except ValueError as e:
        return {'error': str(e)}
    return {'name': name}


@app.get('/files')
async def list_files():
    return db.load_code_files()


@app.get('/files/{name}')
async def get_file(name: str):
    try:
        f = db.get_code_file(name)
    except ValueError as e:
        return {'error': str(e)}
    if not f:
        return {'error': 'not found'}
    return f


@app.delete('/files/{name}')
async def delete_file(name: str):
    try:
        deleted = db.delete_code_file(name)
    except ValueError as e:
        return {'error': str(e)}
    return {'deleted': deleted}


@app.get('/stats')
async def list_stats(file_name: Optional[str] = None):
    return db.list_runs(file_name)
