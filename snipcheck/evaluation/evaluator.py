"""Snippet evaluation in isolated sandboxes.

V8 contexts are only ever created inside worker processes. Each worker runs
one snippet at a time, so no process hosts more than one live context while
the pipeline's threads evaluate snippets concurrently.
"""

import json
import multiprocessing
import threading
import time
from concurrent.futures import ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from typing import Any, Optional

from snipcheck.comparison.values import render_console_arg, render_value, replace_surrogates
from snipcheck.evaluation.sandbox import JsSandbox, decode_value
from snipcheck.exceptions import RuntimeFault, SandboxError, Timeout
from snipcheck.models import BindingsAnnotation, ErrorResult, EvaluationResult, Snippet, ValueResult
from snipcheck.utils.logging_config import get_logger

logger = get_logger()


def prepare_source(snippet: Snippet) -> str:
    """Source actually run for a snippet.

    For bindings annotations an object of the named bindings is appended so
    it becomes the completion value of the same evaluation.
    """
    annotation = snippet.annotation
    if not isinstance(annotation, BindingsAnnotation):
        return snippet.code

    reader = ", ".join(f"{json.dumps(name)}: {name}" for name in annotation.bindings)
    return f"{snippet.code}\n;\n({{{reader}}})"


def run_isolated(code: str, timeout: float, max_memory: Optional[int]) -> tuple[str, Any]:
    """Run ``code`` in a fresh sandbox. Executed inside a worker process.

    Faults come back as tagged tuples rather than exceptions so they survive
    the trip back to the parent unchanged.
    """
    try:
        with JsSandbox(timeout, max_memory=max_memory) as sandbox:
            return "ok", sandbox.run(code)
    except Timeout as e:
        return "timeout", str(e)
    except RuntimeFault as e:
        return "fault", (e.kind, e.message)
    except SandboxError as e:
        return "sandbox", str(e)


class Evaluator:
    """Runs each snippet in a fresh sandbox with a bounded execution time.

    Sandboxes live in a pool of ``workers`` spawned processes, started on
    first use. Use as a context manager (or call :meth:`close`) to stop them.
    """

    def __init__(self, timeout: float = 2.0, max_memory: Optional[int] = None, workers: int = 1):
        self.timeout = timeout
        self.max_memory = max_memory
        self.workers = workers
        self._executor: Optional[ProcessPoolExecutor] = None
        self._lock = threading.Lock()

    def __enter__(self) -> "Evaluator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _get_executor(self) -> ProcessPoolExecutor:
        with self._lock:
            if self._executor is None:
                logger.debug(f"Starting {self.workers} sandbox worker processes")
                self._executor = ProcessPoolExecutor(
                    max_workers=self.workers,
                    mp_context=multiprocessing.get_context("spawn"),
                )
            return self._executor

    def close(self) -> None:
        """Stop the sandbox worker processes. The pool restarts on next use."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True, cancel_futures=True)

    def _run(self, code: str) -> tuple[str, Any]:
        try:
            future = self._get_executor().submit(run_isolated, code, self.timeout, self.max_memory)
            return future.result()
        except BrokenProcessPool as e:
            self.close()
            raise SandboxError(f"Sandbox worker process died: {e}") from e

    def evaluate(self, snippet: Snippet) -> EvaluationResult:
        """Evaluate one snippet.

        Timeouts and engine failures are returned as ``ErrorResult`` and
        never raised.

        Raises:
            SandboxError: If the sandbox could not be started or its worker died
        """
        logger.debug(f"Evaluating {snippet.id}")
        started = time.perf_counter()

        status, payload = self._run(prepare_source(snippet))
        elapsed = time.perf_counter() - started

        if status == "timeout":
            logger.info(f"{snippet.id}: timed out after {self.timeout:g}s", extra={"snippet": snippet.id})
            return ErrorResult(fault="timeout", kind="Timeout", message=payload, elapsed=elapsed)
        if status == "fault":
            kind, message = payload
            logger.warning(f"{snippet.id}: engine fault: {kind}: {message}", extra={"snippet": snippet.id})
            return ErrorResult(fault="runtime_fault", kind=kind, message=message, elapsed=elapsed)
        if status == "sandbox":
            raise SandboxError(payload)

        outcome = payload
        console = [
            replace_surrogates(" ".join(render_console_arg(decode_value(arg)) for arg in line))
            for line in outcome.get("console", [])
        ]

        if outcome["ok"]:
            return ValueResult(
                value=decode_value(outcome["value"]),
                console=console,
                elapsed=elapsed,
            )

        if "thrown" in outcome:
            message = render_value(decode_value(outcome["thrown"]))
        else:
            message = replace_surrogates(outcome.get("message", ""))

        logger.debug(f"{snippet.id}: {outcome['kind']}: {message}")
        return ErrorResult(
            fault="runtime_fault",
            kind=replace_surrogates(outcome["kind"]),
            message=message,
            console=console,
            elapsed=elapsed,
        )
