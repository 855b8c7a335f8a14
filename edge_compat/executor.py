"""Executors that run the rule set against a single file.

``InProcessExecutor`` evaluates rules on the event loop thread with no
timeout. ``IsolatedExecutor`` evaluates each file in a freshly spawned
process, terminating it once the timeout expires; timeouts, crashes and
non-zero exits come back as a per-file error instead of findings.
"""

from __future__ import annotations

import asyncio
import logging
import multiprocessing
from dataclasses import dataclass
from multiprocessing.connection import Connection
from typing import List, Optional, Protocol, Tuple

from .config import EdgeTarget
from .errors import ExecutionError
from .result import Finding
from .rules import Rule, RuleContext
from .syntax import parse_source

logger = logging.getLogger(__name__)

WORKER_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class FileTask:
    """Everything needed to evaluate one file; picklable for worker processes."""

    file_path: str
    content: str
    edge_target: EdgeTarget
    strict: bool
    rules: Tuple[Rule, ...]


@dataclass(frozen=True)
class TaskOutcome:
    file_path: str
    findings: Tuple[Finding, ...] = ()
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_file_task(task: FileTask) -> List[Finding]:
    """Parse the file, build its ``RuleContext`` and concatenate rule findings."""

    context = RuleContext(
        file_path=task.file_path,
        file_content=task.content,
        edge_target=task.edge_target,
        strict=task.strict,
        ast=parse_source(task.file_path, task.content),
    )
    findings: List[Finding] = []
    for rule in task.rules:
        findings.extend(rule.detect(context))
    return findings


class Executor(Protocol):
    async def execute(self, task: FileTask, timeout: Optional[float] = None) -> TaskOutcome:
        """Evaluate ``task`` and return its findings or a per-file error."""


class InProcessExecutor:
    """Cooperative default: rules run to completion without suspending."""

    async def execute(self, task: FileTask, timeout: Optional[float] = None) -> TaskOutcome:
        try:
            findings = run_file_task(task)
        except Exception as exc:  # pylint: disable=broad-except
            logger.debug("Rule evaluation failed for %s", task.file_path, exc_info=True)
            return TaskOutcome(file_path=task.file_path, error=f"{type(exc).__name__}: {exc}")
        return TaskOutcome(file_path=task.file_path, findings=tuple(findings))


def _worker_main(connection: Connection, task: FileTask) -> None:
    try:
        findings = run_file_task(task)
    except Exception as exc:  # pylint: disable=broad-except
        connection.send(("error", f"{type(exc).__name__}: {exc}"))
    else:
        connection.send(("ok", tuple(findings)))
    finally:
        connection.close()


class IsolatedExecutor:
    """Run each file in a separate process with a hard timeout."""

    def __init__(self, timeout: float = WORKER_TIMEOUT_SECONDS, start_method: str = "spawn") -> None:
        self.timeout = timeout
        self._context = multiprocessing.get_context(start_method)

    async def execute(self, task: FileTask, timeout: Optional[float] = None) -> TaskOutcome:
        limit = self.timeout if timeout is None else timeout
        try:
            findings = await asyncio.to_thread(self._run, task, limit)
        except ExecutionError as exc:
            return TaskOutcome(file_path=task.file_path, error=str(exc))
        return TaskOutcome(file_path=task.file_path, findings=findings)

    def _run(self, task: FileTask, timeout: float) -> Tuple[Finding, ...]:
        try:
            receiver, sender = self._context.Pipe(duplex=False)
        except OSError as exc:
            raise ExecutionError(f"Failed to start worker for {task.file_path}: {exc}") from exc
        process = self._context.Process(target=_worker_main, args=(sender, task), daemon=True)
        try:
            process.start()
        except Exception as exc:  # pylint: disable=broad-except
            receiver.close()
            sender.close()
            raise ExecutionError(f"Failed to start worker for {task.file_path}: {exc}") from exc
        sender.close()
        try:
            if not receiver.poll(timeout):
                process.terminate()
                process.join()
                raise ExecutionError(f"Worker timeout for {task.file_path} after {timeout:g}s")
            try:
                status, payload = receiver.recv()
            except EOFError as exc:
                process.join()
                raise ExecutionError(f"Worker stopped with exit code {process.exitcode}") from exc
            process.join(timeout)
        finally:
            receiver.close()
            if process.is_alive():
                process.kill()
                process.join()

        if process.exitcode not in (0, None):
            raise ExecutionError(f"Worker stopped with exit code {process.exitcode}")
        if status == "error":
            raise ExecutionError(payload)
        return payload
