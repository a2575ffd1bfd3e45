"""Worker pool running operational jobs such as fungible vault initialisation."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

log = logging.getLogger(__name__)

InitFungibleVaultsFunc = Callable[[str, list[str]], None]

_STOP = object()


@dataclass
class InitFungibleVaultsJob:
    """Initialise the vaults of the listed tokens for one account."""

    func: Optional[InitFungibleVaultsFunc]
    address: str
    token_list: list[str] = field(default_factory=list)


class OpsWorkerPool:
    """A fixed number of threads consuming a bounded queue of jobs."""

    def __init__(self, num_workers: int, capacity: int) -> None:
        self.num_workers = num_workers
        self.capacity = capacity
        # An unbuffered queue is approximated by room for a single job.
        self._jobs: queue.Queue = queue.Queue(maxsize=max(capacity, 1))
        self._threads: list[threading.Thread] = []
        self._lock = threading.Lock()
        self._closed = False

    def _work(self) -> None:
        while True:
            job = self._jobs.get()
            if job is _STOP or job.func is None:
                return
            try:
                job.func(job.address, job.token_list)
            except Exception as exc:  # noqa: BLE001 - a failed job must not stop the worker
                log.warning("Error running ops job: %s", exc)

    def start(self) -> None:
        """Start the worker threads."""
        for _ in range(self.num_workers):
            thread = threading.Thread(target=self._work, daemon=True)
            thread.start()
            self._threads.append(thread)

    def stop(self) -> None:
        """Close the pool and wait until the workers have drained the queue."""
        with self._lock:
            if self._closed:
                raise RuntimeError("ops worker pool already stopped")
            self._closed = True
        for thread in self._threads:
            if thread.is_alive():
                self._jobs.put(_STOP)
        for thread in self._threads:
            thread.join()

    def add_fungible_init_job(self, job: InitFungibleVaultsJob) -> None:
        """Queue a job, blocking while the queue is full."""
        with self._lock:
            if self._closed:
                raise RuntimeError("ops worker pool is stopped")
        self._jobs.put(job)