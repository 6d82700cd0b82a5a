"""Job processor — runs queued jobs once each on background worker threads."""

from __future__ import annotations

import itertools
import logging
import queue
import threading
from collections.abc import Callable

from ikecmd.daemon.base import JobPriority

logger = logging.getLogger(__name__)

# Sorts after every real priority, so stop() lets queued jobs finish first
_STOP = len(JobPriority)


class JobProcessor:
    """Priority job queue drained by a fixed pool of daemon threads.

    Jobs with a lower priority value run first; equal priorities run in
    queueing order. Each queued job runs exactly once and is never requeued.
    Exceptions raised by a job are logged and do not stop the worker.
    """

    def __init__(self, threads: int = 1) -> None:
        self._queue: queue.PriorityQueue[tuple[int, int, Callable[[], object] | None]] = (
            queue.PriorityQueue()
        )
        self._seq = itertools.count()
        self._threads = threads
        self._workers: list[threading.Thread] = []
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return any(w.is_alive() for w in self._workers)

    def start(self) -> None:
        """Spawn the worker threads."""
        with self._lock:
            if self._workers:
                return
            for i in range(self._threads):
                worker = threading.Thread(
                    target=self._worker_loop,
                    name=f"ikecmd-worker-{i}",
                    daemon=True,
                )
                worker.start()
                self._workers.append(worker)
        logger.debug("Started %d job worker(s)", self._threads)

    def queue_job(self, job: Callable[[], object], priority: JobPriority) -> None:
        self._queue.put((int(priority), next(self._seq), job))
        logger.debug("Queued job %s with priority %s", _job_name(job), priority.name)

    def stop(self, timeout: float | None = None) -> None:
        """Let queued jobs finish, then stop the workers."""
        with self._lock:
            workers = list(self._workers)
            self._workers.clear()
        for _ in workers:
            self._queue.put((_STOP, next(self._seq), None))
        for worker in workers:
            worker.join(timeout=timeout)

    def _worker_loop(self) -> None:
        while True:
            _, _, job = self._queue.get()
            try:
                if job is None:
                    return
                job()
            except Exception:
                logger.exception("Job %s raised", _job_name(job))
            finally:
                self._queue.task_done()


def _job_name(job: Callable[[], object] | None) -> str:
    return getattr(job, "__qualname__", repr(job))
