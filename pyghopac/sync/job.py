"""Sync jobs and the decisions made for them."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union


class SyncAction(str, Enum):
    """What has to happen to a job's target path."""

    UPDATE = "update"
    """Target is an existing directory: pull with remote-branch pruning"""

    CLONE = "clone"
    """Target is missing and a clone URL is known"""

    SKIP_COLLISION = "skip_collision"
    """Target exists but is not a directory"""

    SKIP_MISSING_SOURCE = "skip_missing_source"
    """Target is missing and there is nothing to clone it from"""

    @property
    def runs_command(self) -> bool:
        """Whether this action spawns a git process."""
        return self in (SyncAction.UPDATE, SyncAction.CLONE)


class JobOutcome(str, Enum):
    """Classified result of executing a single job."""

    SYNCED = "synced"
    SKIPPED = "skipped"
    COMMAND_FAILED = "command_failed"
    EXECUTION_ERROR = "execution_error"

    @property
    def is_failure(self) -> bool:
        """Every outcome except SYNCED counts against the exit status.

        Skipped jobs are counted too: there is no separate signal for a
        deliberate skip.
        """
        return self is not JobOutcome.SYNCED


@dataclass(frozen=True)
class SyncJob:
    """One directory to synchronize.

    A job with a ``source_url`` may be cloned if its target does not exist
    yet. A job without one can only be refreshed.
    """

    target_path: Path
    source_url: Optional[str] = None

    def __post_init__(self) -> None:
        # frozen dataclass, so normalize through object.__setattr__
        if not isinstance(self.target_path, Path):
            object.__setattr__(self, "target_path", Path(self.target_path))
        if self.source_url is not None and not self.source_url.strip():
            object.__setattr__(self, "source_url", None)

    @classmethod
    def for_repository(
        cls, parent: Union[str, Path], name: str, source_url: Optional[str]
    ) -> "SyncJob":
        """Create a job for a repository cloned below ``parent``."""
        return cls(target_path=Path(parent) / name, source_url=source_url)

    def describe(self) -> str:
        """Human readable form used in log lines."""
        if self.source_url:
            return f"{self.source_url} - {self.target_path}"
        return str(self.target_path)


@dataclass
class JobResult:
    """What happened when a job was executed."""

    job: SyncJob
    action: SyncAction
    outcome: JobOutcome
    returncode: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    message: str = ""

    @property
    def failed(self) -> bool:
        return self.outcome.is_failure


def plan_action(job: SyncJob) -> SyncAction:
    """Decide what to do with a job before anything is spawned.

    Args:
        job: Job to inspect

    Returns:
        The action for the job's current filesystem state
    """
    path = job.target_path
    if path.exists():
        if path.is_dir():
            return SyncAction.UPDATE
        return SyncAction.SKIP_COLLISION
    if job.source_url:
        return SyncAction.CLONE
    return SyncAction.SKIP_MISSING_SOURCE


def git_arguments(action: SyncAction, job: SyncJob) -> list[str]:
    """Build the git arguments for an action.

    Raises:
        ValueError: If the action does not run a command
    """
    if action is SyncAction.UPDATE:
        return ["pull", "--prune"]
    if action is SyncAction.CLONE and job.source_url:
        # git resolves a relative destination against its own working directory
        return ["clone", job.source_url, str(job.target_path.absolute())]
    raise ValueError(f"Action {action.value} does not run a git command")
