"""Cancellable, progress-reporting background work.

Long operations (dictionary preprocessing and loading, full-grid fills, word
ranking) run on a worker thread while the caller polls. Cancellation is
cooperative: work functions receive a :class:`TaskContext` and check
``context.stopping`` inside their loops.

Typical owner usage::

    runner = TaskRunner("filler")
    runner.start(work, on_finished=handle_status)
    while runner.is_processing:
        progress = runner.check_progress()
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from ..core.exceptions import TaskCancelled
from .logger import get_logger


LOGGER = get_logger(__name__)


class TaskState(str, Enum):
    """Lifecycle of a background task as seen by a polling caller."""

    IDLE = "IDLE"
    RUNNING = "RUNNING"
    DONE = "DONE"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class TaskStatus:
    state: TaskState
    progress: float = 0.0
    result: Any = None
    error: Optional[BaseException] = None

    @property
    def finished(self) -> bool:
        return self.state in {TaskState.DONE, TaskState.FAILED, TaskState.CANCELLED}


class TaskContext:
    """Stop flag and progress value shared between a task and its owner."""

    def __init__(self) -> None:
        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        self._progress = 0.0

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    def request_stop(self) -> None:
        self._stop_event.set()

    def raise_if_stopping(self) -> None:
        if self._stop_event.is_set():
            raise TaskCancelled("Task stopped on request")

    @property
    def progress(self) -> float:
        with self._lock:
            return self._progress

    def report(self, progress: float) -> None:
        """Record progress in [0, 1]; values never move backwards."""

        clamped = min(1.0, max(0.0, progress))
        with self._lock:
            if clamped > self._progress:
                self._progress = clamped


WorkFunction = Callable[[TaskContext], Any]
FinishedCallback = Callable[[TaskStatus], None]


class BackgroundTask:
    """One unit of work submitted to an executor."""

    def __init__(self, name: str, work: WorkFunction, executor: ThreadPoolExecutor) -> None:
        self.name = name
        self.context = TaskContext()
        self._work = work
        self._executor = executor
        self._future: Optional[Future] = None

    def start(self) -> None:
        if self._future is not None:
            raise RuntimeError(f"Task {self.name} already started")
        self._future = self._executor.submit(self._run)

    def _run(self) -> Any:
        LOGGER.debug("Task %s started", self.name)
        started = time.perf_counter()
        try:
            return self._work(self.context)
        finally:
            LOGGER.debug("Task %s stopped after %.2fs", self.name, time.perf_counter() - started)

    def stop(self) -> None:
        self.context.request_stop()

    @property
    def stopped(self) -> bool:
        return self._future is not None and self._future.done()

    def poll(self) -> TaskStatus:
        """Non-blocking status snapshot."""

        if self._future is None:
            return TaskStatus(TaskState.IDLE)
        if not self._future.done():
            return TaskStatus(TaskState.RUNNING, progress=self.context.progress)
        error = self._future.exception()
        if isinstance(error, TaskCancelled):
            return TaskStatus(TaskState.CANCELLED, progress=self.context.progress)
        if error is not None:
            return TaskStatus(TaskState.FAILED, progress=self.context.progress, error=error)
        return TaskStatus(TaskState.DONE, progress=1.0, result=self._future.result())

    def wait(self, timeout: Optional[float] = None) -> TaskStatus:
        if self._future is not None:
            wait_futures([self._future], timeout=timeout)
        return self.poll()


class TaskRunner:
    """Runs at most one task at a time for its owner.

    Starting new work while a task is active asks the active task to stop and
    defers the new work; :meth:`check_progress` launches it once the old task
    reports stopped. Finished tasks are finalised, and their callbacks run,
    inside :meth:`check_progress` on the polling thread.
    """

    def __init__(self, name: str, executor: Optional[ThreadPoolExecutor] = None) -> None:
        self.name = name
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)
        self._active: Optional[BackgroundTask] = None
        self._active_callback: Optional[FinishedCallback] = None
        self._pending: Optional[tuple[WorkFunction, Optional[FinishedCallback]]] = None
        self._launch_count = 0
        self.last_status = TaskStatus(TaskState.IDLE)

    @property
    def is_processing(self) -> bool:
        return self._active is not None

    @property
    def waiting_for_stop(self) -> bool:
        return self._pending is not None

    def start(self, work: WorkFunction, on_finished: Optional[FinishedCallback] = None) -> None:
        if self._active is not None:
            LOGGER.debug("Runner %s busy; deferring new work until the active task stops", self.name)
            self._pending = (work, on_finished)
            self._active.stop()
            return
        self._launch(work, on_finished)

    def stop(self) -> None:
        """Request cancellation of the active task and drop any deferred work."""

        self._pending = None
        if self._active is not None:
            self._active.stop()

    def check_progress(self) -> float:
        """Poll the active task; finalises it and starts deferred work when stopped."""

        if self._active is None:
            return 0.0

        status = self._active.poll()
        if status.state == TaskState.RUNNING:
            return 0.0 if self._pending is not None else status.progress

        callback = self._active_callback
        self._active = None
        self._active_callback = None
        self.last_status = status

        if self._pending is not None:
            work, on_finished = self._pending
            self._pending = None
            if status.state == TaskState.FAILED:
                LOGGER.warning("Superseded task on %s failed: %s", self.name, status.error)
            if callback is not None:
                callback(status)
            self._launch(work, on_finished)
            return 0.0

        if callback is not None:
            callback(status)
        if status.state == TaskState.FAILED:
            LOGGER.error("Task on %s failed: %s", self.name, status.error)
            raise status.error  # type: ignore[misc]
        return 1.0

    def join(self, poll_interval: float = 0.01, timeout: Optional[float] = None) -> TaskStatus:
        """Block, polling, until no task is active or ``timeout`` elapses."""

        deadline = None if timeout is None else time.monotonic() + timeout
        while self.is_processing:
            self.check_progress()
            if not self.is_processing:
                break
            if deadline is not None and time.monotonic() >= deadline:
                break
            time.sleep(poll_interval)
        return self.last_status

    def shutdown(self) -> None:
        self.stop()
        if self._owns_executor:
            self._executor.shutdown(wait=True)
        self.check_progress()

    def _launch(self, work: WorkFunction, on_finished: Optional[FinishedCallback]) -> None:
        self._launch_count += 1
        task = BackgroundTask(f"{self.name}-{self._launch_count}", work, self._executor)
        self._active = task
        self._active_callback = on_finished
        self.last_status = TaskStatus(TaskState.RUNNING)
        task.start()


__all__ = [
    "BackgroundTask",
    "TaskContext",
    "TaskRunner",
    "TaskState",
    "TaskStatus",
]
