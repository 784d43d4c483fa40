"""Core sync engine wiring the job source to the worker pool."""

import logging
import time
from typing import Optional

from ..api import GitHubClient
from ..config import Config
from ..output import OutputFormatter
from .executor import SyncExecutor
from .job import SyncAction, SyncJob, plan_action
from .pool import PoolResult, WorkerPool
from .queue import DispatchQueue
from .source import JobSource

logger = logging.getLogger(__name__)

# Pending jobs before the producer waits for workers to catch up
DEFAULT_QUEUE_SIZE = 1000


class SyncEngine:
    """Runs a full synchronization pass for a configuration."""

    def __init__(
        self,
        config: Config,
        client: Optional[GitHubClient] = None,
        output: Optional[OutputFormatter] = None,
        git_binary: str = "git",
        timeout: Optional[float] = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ):
        """Initialize sync engine.

        Args:
            config: Configuration snapshot, never modified
            client: GitHub client for organization listings
            output: Output formatter for displaying progress/status
            git_binary: git executable to run
            timeout: Optional time limit in seconds per git command
            queue_size: Bound of the dispatch queue (0 for unbounded)
        """
        self.config = config
        self.client = client
        self.output = output or OutputFormatter()
        self.git_binary = git_binary
        self.timeout = timeout
        self.queue_size = queue_size
        self.source = JobSource(config, client=client, output=self.output)

    def sync(self) -> PoolResult:
        """Synchronize every configured target.

        Workers are started before the first job is enqueued and drain the
        queue while organizations are still being listed.

        Returns:
            Aggregated result; ``exit_status`` is the process exit code
        """
        start_time = time.time()
        concurrency = self.config.effective_concurrency
        executor = SyncExecutor(
            output=self.output,
            verbose=self.config.verbose,
            git_binary=self.git_binary,
            timeout=self.timeout,
        )
        pool = WorkerPool(
            executor, concurrency, queue=DispatchQueue(maxsize=self.queue_size)
        )
        logger.debug(f"Starting sync with {concurrency} worker(s)")

        result = pool.run(self.source.produce)

        elapsed = time.time() - start_time
        logger.debug(f"Sync took {elapsed:.2f}s")
        if self.config.verbose:
            self._display_summary(result, elapsed)
        return result

    def plan(self) -> list[tuple[SyncJob, SyncAction]]:
        """List every job with the action a sync would take, running nothing."""
        return [(job, plan_action(job)) for job in self.source.collect()]

    def _display_summary(self, result: PoolResult, elapsed: float) -> None:
        self.output.print("")
        if result.failures == 0:
            self.output.success(
                f"Sync complete: {result.processed} repositories in {elapsed:.1f}s"
            )
        else:
            self.output.warning(
                f"Sync finished with {result.failures} failure(s) out of "
                f"{result.processed} repositories in {elapsed:.1f}s"
            )
