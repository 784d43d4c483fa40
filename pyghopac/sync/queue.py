"""Dispatch queue shared between the job producer and the workers."""

import logging
import threading
from collections import deque
from typing import Optional

from ..exceptions import QueueClosedError
from .job import SyncJob

logger = logging.getLogger(__name__)


class DispatchQueue:
    """Single-producer, multiple-consumer job queue with explicit closing.

    Consumers block in :meth:`dequeue` until a job arrives. Once the
    producer has called :meth:`close` and every job has been handed out,
    ``dequeue`` returns ``None`` to each consumer. An empty queue on its
    own never ends a consumer.
    """

    def __init__(self, maxsize: int = 0):
        """Initialize the queue.

        Args:
            maxsize: Maximum number of pending jobs before ``enqueue``
                blocks (0 for unbounded)
        """
        if maxsize < 0:
            raise ValueError("maxsize must not be negative")
        self.maxsize = maxsize
        self._jobs: deque[SyncJob] = deque()
        self._closed = False
        self._enqueued = 0
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._not_full = threading.Condition(self._lock)

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def enqueued(self) -> int:
        """Total number of jobs ever enqueued."""
        with self._lock:
            return self._enqueued

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def enqueue(self, job: SyncJob) -> None:
        """Offer a job to the workers.

        Blocks while a bounded queue is full.

        Raises:
            QueueClosedError: If the queue was already closed
        """
        with self._not_full:
            if self.maxsize > 0:
                while len(self._jobs) >= self.maxsize and not self._closed:
                    self._not_full.wait()
            if self._closed:
                raise QueueClosedError(
                    f"Cannot enqueue {job.target_path}: queue closed"
                )
            self._jobs.append(job)
            self._enqueued += 1
            self._not_empty.notify()

    def dequeue(self) -> Optional[SyncJob]:
        """Take the next job, blocking until one is available.

        Returns:
            The next job, or None once the queue is closed and drained
        """
        with self._not_empty:
            while not self._jobs:
                if self._closed:
                    return None
                self._not_empty.wait()
            job = self._jobs.popleft()
            self._not_full.notify()
            return job

    def close(self) -> None:
        """Signal that no more jobs will be enqueued.

        Raises:
            QueueClosedError: If the queue was already closed
        """
        with self._lock:
            if self._closed:
                raise QueueClosedError("Queue closed twice")
            self._closed = True
            logger.debug(f"Dispatch queue closed after {self._enqueued} job(s)")
            self._not_empty.notify_all()
            self._not_full.notify_all()
