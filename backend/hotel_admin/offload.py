"""Background offload of CPU-bound work to a worker pool.

``AnalyticsOffloader.submit`` hands a picklable callable to a process (or
thread) pool and returns an ``OffloadTask`` handle. Each task carries a
generated id and is awaited with a bounded timeout. A timed-out task stops
being awaited; the worker itself may still run to completion.
"""

import asyncio
import logging
import time
import uuid
from collections.abc import Callable
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Any, Literal

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class OffloadError(Exception):
    """Base class for offload failures. Callers should compute directly instead."""


class OffloadUnavailableError(OffloadError):
    """The worker pool is not running."""


class OffloadTimeoutError(OffloadError):
    """No result arrived within the task's timeout."""


class OffloadTaskError(OffloadError):
    """The offloaded callable raised."""


class OffloadTask:
    """Handle for a submitted task, correlated by ``task_id``."""

    def __init__(
        self,
        task_id: str,
        task_type: str,
        future: asyncio.Future,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.task_id = task_id
        self.task_type = task_type
        self.timeout = timeout
        self.submitted_at = time.time()
        self._future = future

    def __repr__(self) -> str:
        return f"<OffloadTask(id={self.task_id!r}, type={self.task_type!r}, done={self.done()})>"

    def done(self) -> bool:
        return self._future.done()

    def cancel(self) -> bool:
        """Stop waiting for the task. Work already running is not interrupted."""
        return self._future.cancel()

    async def result(self, timeout: float | None = None) -> Any:
        """Wait for the task's result.

        Raises:
            OffloadTimeoutError: no result within ``timeout`` (defaults to the
                task's own timeout).
            OffloadTaskError: the callable raised in the worker.
            asyncio.CancelledError: the task was cancelled via ``cancel()``.
        """
        timeout = self.timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(self._future, timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise OffloadTimeoutError(
                f"Task {self.task_id} ({self.task_type}) timed out after {timeout:g}s"
            ) from exc
        except Exception as exc:
            raise OffloadTaskError(f"Task {self.task_id} ({self.task_type}) failed: {exc}") from exc


class AnalyticsOffloader:
    """Owns a worker pool and tracks in-flight tasks by id."""

    def __init__(
        self,
        max_workers: int = 2,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        mode: Literal["process", "thread"] = "process",
    ) -> None:
        self.max_workers = max_workers
        self.timeout = timeout
        self.mode = mode
        self._executor: Executor | None = None
        self._pending: dict[str, OffloadTask] = {}

    @property
    def available(self) -> bool:
        return self._executor is not None

    @property
    def pending(self) -> dict[str, OffloadTask]:
        """In-flight tasks keyed by task id."""
        return dict(self._pending)

    def start(self) -> None:
        if self._executor is not None:
            return
        if self.mode == "process":
            self._executor = ProcessPoolExecutor(max_workers=self.max_workers)
        else:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="offload"
            )
        logger.info("Offload pool started (%s, %d workers)", self.mode, self.max_workers)

    def shutdown(self, wait: bool = False) -> None:
        executor, self._executor = self._executor, None
        if executor is None:
            return
        executor.shutdown(wait=wait, cancel_futures=True)
        for task in self._pending.values():
            task.cancel()
        self._pending.clear()
        logger.info("Offload pool stopped")

    @staticmethod
    def _new_task_id() -> str:
        return f"{int(time.time() * 1000)}_{uuid.uuid4().hex}"

    def submit(
        self,
        task_type: str,
        fn: Callable[..., Any],
        *args: Any,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> OffloadTask:
        """Submit ``fn(*args, **kwargs)`` to the pool and return its handle.

        Must be called from a running event loop.
        """
        if self._executor is None:
            raise OffloadUnavailableError("Offload pool is not running")

        loop = asyncio.get_running_loop()
        try:
            concurrent_future = self._executor.submit(fn, *args, **kwargs)
        except RuntimeError as exc:
            # Pool shut down or broken underneath us.
            raise OffloadUnavailableError(str(exc)) from exc

        task = OffloadTask(
            task_id=self._new_task_id(),
            task_type=task_type,
            future=asyncio.wrap_future(concurrent_future, loop=loop),
            timeout=self.timeout if timeout is None else timeout,
        )
        self._pending[task.task_id] = task
        task._future.add_done_callback(lambda _: self._pending.pop(task.task_id, None))
        logger.debug("Submitted offload task %s (%s)", task.task_id, task_type)
        return task

    async def run(
        self,
        task_type: str,
        fn: Callable[..., Any],
        *args: Any,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> Any:
        """Submit a task and wait for its result."""
        task = self.submit(task_type, fn, *args, timeout=timeout, **kwargs)
        return await task.result()
