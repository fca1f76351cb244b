"""Asynchronous entry point for running Swiftlet programs.

`CodeRunner` is what presentation code talks to. A run is synchronous,
CPU-only work, so it is pushed onto a thread pool and the caller's event
loop (the interactive thread) is never blocked. Each run builds its own
`Interpreter`, so concurrent runs never share a variable store.

Delivery contract for `execute_async`: the completion callback fires on
the event loop thread exactly once per call, whether the run succeeded or
failed. Runs cannot be cancelled; cancelling the returned future only
stops the caller from awaiting it.
"""

import asyncio
import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

from .errors import ExecutionError
from .interpreter import Interpreter, RunResult

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[RunResult], None]


def _default_workers() -> int:
    return int(os.environ.get("SWIFTLET_WORKERS", "4"))


class CodeRunner:
    """Run programs off the event loop and hand results back on it.

    Args:
        settings: interpreter tunables applied to every run (see
            `Interpreter.run`).
        max_workers: thread pool size; defaults to `SWIFTLET_WORKERS` or 4.
    """

    def __init__(self, settings: Optional[Dict[str, Any]] = None, max_workers: Optional[int] = None):
        self.settings: Dict[str, Any] = dict(settings or {})
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or _default_workers(),
            thread_name_prefix="swiftlet-run",
        )

    def run_sync(self, source: str, settings: Optional[Dict[str, Any]] = None) -> RunResult:
        """Run `source` on the calling thread with a fresh Interpreter.

        `settings` are merged over the runner-wide settings for this run only.
        """
        merged = {**self.settings, **(settings or {})}
        try:
            return Interpreter().run(source, settings=merged)
        except Exception as e:
            # Interpreter.run reports program errors itself; this only sees
            # failures in the runner machinery.
            logger.exception("interpreter crashed")
            return RunResult(error=ExecutionError(str(e) or type(e).__name__))

    def execute_async(
        self,
        source: str,
        on_complete: Optional[CompletionCallback] = None,
        settings: Optional[Dict[str, Any]] = None,
    ) -> "asyncio.Future[RunResult]":
        """Start a run and return a future resolved on the running loop.

        `on_complete`, if given, is called with the RunResult on the loop
        thread before the future resolves. Must be called from a coroutine
        or callback running on an event loop.
        """
        loop = asyncio.get_running_loop()
        delivered: "asyncio.Future[RunResult]" = loop.create_future()

        def deliver(result: RunResult) -> None:
            try:
                if on_complete is not None:
                    on_complete(result)
            finally:
                if not delivered.done():
                    delivered.set_result(result)

        def finished(work: "Future[RunResult]") -> None:
            result = work.result()
            logger.debug("run complete (ok=%s)", result.ok)
            loop.call_soon_threadsafe(deliver, result)

        self._executor.submit(self.run_sync, source, settings).add_done_callback(finished)
        return delivered

    async def execute(self, source: str, settings: Optional[Dict[str, Any]] = None) -> RunResult:
        """Awaitable form of `execute_async` without a callback."""
        return await self.execute_async(source, settings=settings)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "CodeRunner":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
