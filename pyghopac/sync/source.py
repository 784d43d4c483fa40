"""Produces sync jobs from the configuration and the GitHub API."""

import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Optional

from rich.progress import Progress, SpinnerColumn, TextColumn

from ..api import GitHubClient
from ..config import Config, OrgConfig
from ..exceptions import APIError
from ..output import OutputFormatter
from .job import SyncJob
from .queue import DispatchQueue

logger = logging.getLogger(__name__)


def syncpoint_jobs(paths: Iterable[str]) -> Iterator[SyncJob]:
    """Jobs for configured paths that are only ever refreshed, never cloned."""
    for path in paths:
        yield SyncJob(target_path=Path(os.path.expanduser(path)))


def organization_jobs(client: GitHubClient, org: OrgConfig) -> Iterator[SyncJob]:
    """Jobs for every repository of an organization.

    Each repository maps to ``<org.path>/<repo name>`` and is cloned over
    SSH when missing. A repository without a usable SSH URL gets no
    source URL and can only be refreshed.

    Raises:
        APIError: If the repository list cannot be fetched
    """
    for repo in client.iter_org_repos(org.org):
        yield SyncJob.for_repository(org.path, repo.name, repo.ssh_url)


class JobSource:
    """Enumerates all jobs: organization repositories first, then syncpoints."""

    def __init__(
        self,
        config: Config,
        client: Optional[GitHubClient] = None,
        output: Optional[OutputFormatter] = None,
    ):
        """Initialize the job source.

        Args:
            config: Configuration snapshot
            client: GitHub client; organizations are skipped without one
            output: Output formatter for warnings
        """
        self.config = config
        self.client = client
        self.output = output or OutputFormatter()

    def iter_jobs(self) -> Iterator[SyncJob]:
        """Yield every job in enqueue order.

        An organization whose repository list cannot be fetched is
        reported and skipped. Jobs already yielded for it are kept.
        """
        if self.config.orgs and self.client is None:
            self.output.warning(
                "[WARNING] No GitHub access token configured, "
                "skipping organization repositories"
            )
        elif self.client is not None:
            for org in self.config.orgs:
                count = 0
                try:
                    for job in organization_jobs(self.client, org):
                        count += 1
                        yield job
                except APIError as e:
                    self.output.warning(
                        f"[WARNING] Problem accessing org `{org.org}` "
                        f"repository list: {e}"
                    )
                logger.debug(f"Org {org.org}: {count} job(s)")

        yield from syncpoint_jobs(self.config.syncpoints)

    def produce(self, queue: DispatchQueue) -> int:
        """Enqueue every job. Closing the queue is left to the caller.

        Returns:
            Number of jobs enqueued
        """
        count = 0
        for job in self.iter_jobs():
            queue.enqueue(job)
            count += 1
        logger.debug(f"Enqueued {count} job(s)")
        return count

    def collect(self) -> list[SyncJob]:
        """Gather every job into a list, showing a spinner while fetching."""
        if self.output.quiet:
            return list(self.iter_jobs())
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            task = progress.add_task("Fetching repository lists...", total=None)
            jobs = list(self.iter_jobs())
            progress.update(task, description=f"Found {len(jobs)} job(s)")
        return jobs
