"""Progress reporting for long-running image processing tasks.

A task owns a ``ProgressState`` that only the algorithm writes to. Readers on
other threads take snapshots without locking: the position only ever grows,
so a stale value is still a valid lower bound.

Execution is kept apart from progress reporting. ``run_task`` runs a task on
the calling thread, ``submit_task`` hands it to a worker thread and
``wait_with_progress`` watches a submitted task until it is done.
"""
from abc import ABC, abstractmethod
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Optional
import logging
import threading
import time

from tqdm import tqdm

from apexseg.types import Progress, TaskStateError

logger = logging.getLogger(__name__)


class ProgressState:
    """Mutable (size, position, finished) triple written by one algorithm."""

    def __init__(self, size: int):
        self._size = int(size)
        self._position = 0
        self._finished = False

    @property
    def size(self) -> int:
        return self._size

    @property
    def position(self) -> int:
        return self._position

    @property
    def finished(self) -> bool:
        return self._finished

    def advance(self, steps: int = 1) -> None:
        if steps < 0:
            raise ValueError(f"Progress cannot move backwards (steps={steps})")
        self._position += steps

    def complete(self, position: Optional[int] = None) -> None:
        """Mark the work as done, optionally moving to a final position."""
        if position is not None and position > self._position:
            self._position = position
        self._finished = True

    def snapshot(self) -> Progress:
        return Progress(size=self._size, position=self._position, finished=self._finished)


class ProgressableTask(ABC):
    """
    A unit of long-running work with an estimated size and a position.

    ``size`` is fixed before execution starts. ``finished`` is reported by the
    algorithm itself rather than derived from ``position == size``, since the
    size may only be an estimate.
    """

    def __init__(self, size: int):
        self._state = ProgressState(size)
        self._start_lock = threading.Lock()
        self._started = False

    @property
    def size(self) -> int:
        return self._state.size

    @property
    def position(self) -> int:
        return self._state.position

    @property
    def finished(self) -> bool:
        return self._state.finished

    @property
    def progress(self) -> Progress:
        return self._state.snapshot()

    def run(self) -> None:
        """Execute the task to completion. Only one call per instance is allowed."""
        with self._start_lock:
            if self._started:
                raise TaskStateError(f"{type(self).__name__} has already been run")
            self._started = True
        self._execute()

    @abstractmethod
    def _execute(self) -> None:
        """Do the actual work, updating ``self._state`` along the way."""


def run_task(task: ProgressableTask) -> ProgressableTask:
    """Run a task synchronously on the calling thread and return it."""
    task.run()
    return task


def submit_task(task: ProgressableTask, executor: Optional[Executor] = None) -> Future:
    """
    Dispatch a task to a worker thread.

    Args:
        task: Task to execute
        executor: Executor to submit to. When omitted a single-worker
            ThreadPoolExecutor is created and shut down once the task ends.

    Returns:
        Future resolving to the task itself
    """
    if executor is not None:
        return executor.submit(run_task, task)

    own_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="apexseg")
    future = own_executor.submit(run_task, task)
    future.add_done_callback(lambda _: own_executor.shutdown(wait=False))
    return future


def wait_with_progress(
    task: ProgressableTask,
    future: Future,
    interval: float = 0.1,
    desc: Optional[str] = None,
    disable: bool = False
) -> ProgressableTask:
    """
    Poll a submitted task and render a progress bar until it completes.

    Args:
        task: The task that was submitted
        future: Future returned by ``submit_task``
        interval: Seconds between polls
        desc: Progress bar label (defaults to the task class name)
        disable: Suppress the bar but still wait

    Returns:
        The finished task

    Raises:
        Any exception raised by the task on the worker thread
    """
    desc = desc or type(task).__name__
    with tqdm(total=task.size, desc=desc, unit="px", disable=disable) as bar:
        while not future.done():
            snapshot = task.progress
            bar.update(max(0, min(snapshot.position, snapshot.size) - bar.n))
            time.sleep(interval)
        result = future.result()
        bar.update(max(0, task.size - bar.n))

    logger.debug(f"{desc} finished at position {task.position}/{task.size}")
    return result
