"""Worker pool draining the dispatch queue and aggregating failures."""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Optional

from .executor import SyncExecutor
from .queue import DispatchQueue

logger = logging.getLogger(__name__)

# Largest value that survives as a process exit status
MAX_EXIT_STATUS: int = 255


def exit_status(failures: int) -> int:
    """Clamp a failure count to a usable process exit status.

    Examples:
        >>> exit_status(0)
        0
        >>> exit_status(2)
        2
        >>> exit_status(1000)
        255
    """
    return min(MAX_EXIT_STATUS, max(0, failures))


@dataclass
class WorkerReport:
    """What a single worker did before the queue ran dry."""

    worker_id: int
    processed: int = 0
    failures: int = 0


@dataclass
class PoolResult:
    """Aggregated result of all workers."""

    reports: list[WorkerReport] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return sum(r.processed for r in self.reports)

    @property
    def failures(self) -> int:
        return sum(r.failures for r in self.reports)

    @property
    def exit_status(self) -> int:
        return exit_status(self.failures)


class WorkerPool:
    """Fixed number of workers consuming sync jobs from one queue.

    Each worker keeps its own failure count. Counts are only combined after
    every worker has finished, so workers never share a counter.
    """

    def __init__(
        self,
        executor: SyncExecutor,
        concurrency: int,
        queue: Optional[DispatchQueue] = None,
    ):
        """Initialize the pool.

        Args:
            executor: Executor run by every worker
            concurrency: Number of workers, at least 1
            queue: Queue to drain (a new unbounded queue if not given)
        """
        if concurrency < 1:
            raise ValueError(f"Concurrency must be at least 1, got {concurrency}")
        self.executor = executor
        self.concurrency = concurrency
        self.queue = queue if queue is not None else DispatchQueue()
        self._threads: Optional[ThreadPoolExecutor] = None
        self._futures: list[Future] = []

    def start(self) -> None:
        """Start all workers. They block until jobs are enqueued."""
        if self._threads is not None:
            raise RuntimeError("Worker pool already started")
        self._threads = ThreadPoolExecutor(
            max_workers=self.concurrency, thread_name_prefix="ghopac-worker"
        )
        self._futures = [
            self._threads.submit(self._worker_loop, worker_id)
            for worker_id in range(self.concurrency)
        ]
        logger.debug(f"Started {self.concurrency} worker(s)")

    def join(self) -> PoolResult:
        """Wait for every worker to finish and sum their reports.

        The queue must have been closed, otherwise this blocks forever.
        """
        if self._threads is None:
            raise RuntimeError("Worker pool was never started")
        reports = [future.result() for future in self._futures]
        self._threads.shutdown(wait=True)
        self._threads = None
        self._futures = []
        result = PoolResult(reports=reports)
        logger.debug(
            f"All workers finished: {result.processed} job(s), "
            f"{result.failures} failure(s)"
        )
        return result

    def run(self, producer: Callable[[DispatchQueue], object]) -> PoolResult:
        """Start workers, let ``producer`` fill the queue, then drain it.

        The queue is closed after the producer returns. If the producer
        raises, the queue is still closed and the workers finish the jobs
        already enqueued before the exception propagates.

        Args:
            producer: Callable that enqueues jobs on the given queue

        Returns:
            Aggregated result of all workers
        """
        self.start()
        try:
            producer(self.queue)
        finally:
            self.queue.close()
            result = self.join()
        return result

    def _worker_loop(self, worker_id: int) -> WorkerReport:
        report = WorkerReport(worker_id=worker_id)
        while True:
            job = self.queue.dequeue()
            if job is None:
                break
            report.processed += 1
            start = time.time()
            try:
                result = self.executor.execute(job)
            except Exception as e:
                # One broken job must not stop the worker
                logger.exception(f"Worker {worker_id} crashed on {job.target_path}")
                self.executor.output.error(
                    f"[FAILED]\tunexpected error syncing {job.target_path}: {e}"
                )
                report.failures += 1
                continue
            if result.failed:
                report.failures += 1
            logger.debug(
                f"Worker {worker_id}: {job.target_path} -> {result.outcome.value} "
                f"in {time.time() - start:.2f}s"
            )
        logger.debug(
            f"Worker {worker_id} done: {report.processed} job(s), "
            f"{report.failures} failure(s)"
        )
        return report
