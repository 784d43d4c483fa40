"""Runs git for a single sync job and classifies the result."""

import logging
import subprocess
import time
from pathlib import Path
from typing import Optional

from ..exceptions import NoAncestorError
from ..output import OutputFormatter
from .job import (
    JobOutcome,
    JobResult,
    SyncAction,
    SyncJob,
    git_arguments,
    plan_action,
)
from .resolver import closest_existing_directory

logger = logging.getLogger(__name__)


class SyncExecutor:
    """Executes sync jobs one at a time.

    A worker owns the job it passes to :meth:`execute`; the executor itself
    holds only read-only settings and can be shared by all workers.
    """

    def __init__(
        self,
        output: Optional[OutputFormatter] = None,
        verbose: bool = False,
        git_binary: str = "git",
        timeout: Optional[float] = None,
    ):
        """Initialize the executor.

        Args:
            output: Output formatter for [OK]/[FAILED] lines
            verbose: If True, report successful jobs too
            git_binary: git executable to run
            timeout: Optional time limit in seconds for a single git command
        """
        self.output = output or OutputFormatter()
        self.verbose = verbose
        self.git_binary = git_binary
        self.timeout = timeout

    def execute(self, job: SyncJob) -> JobResult:
        """Synchronize a single job.

        Args:
            job: Job to run

        Returns:
            The classified result. Errors are reported and returned, never
            raised.
        """
        action = plan_action(job)

        if action is SyncAction.SKIP_COLLISION:
            return self._skipped(
                job, action, f"{job.target_path} exists but is not a directory"
            )
        if action is SyncAction.SKIP_MISSING_SOURCE:
            return self._skipped(
                job, action, f"{job.target_path} doesn't exist and no clone URL defined"
            )

        try:
            cwd = self._working_directory(job, action)
        except NoAncestorError as e:
            return self._execution_error(job, action, str(e))

        command = [self.git_binary, *git_arguments(action, job)]
        logger.debug(f"Running {' '.join(command)} in {cwd}")
        start = time.time()
        try:
            completed = subprocess.run(
                command,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as e:
            return self._execution_error(
                job, action, f"unable to run git command for {job.target_path}: {e}"
            )
        elapsed = time.time() - start
        logger.debug(f"git {action.value} of {job.target_path} took {elapsed:.2f}s")

        return self._classify(job, action, completed)

    def _working_directory(self, job: SyncJob, action: SyncAction) -> Path:
        """Pick the directory git runs in.

        Pulls run inside the target. Clones run in the nearest existing
        directory above it, since the target does not exist yet.
        """
        if action is SyncAction.UPDATE:
            return job.target_path
        return closest_existing_directory(job.target_path)

    def _classify(
        self,
        job: SyncJob,
        action: SyncAction,
        completed: "subprocess.CompletedProcess[bytes]",
    ) -> JobResult:
        stdout = _decode(completed.stdout)
        stderr = _decode(completed.stderr)
        code = completed.returncode

        if code == 0:
            if self.verbose:
                if action is SyncAction.CLONE:
                    described = job.describe()
                else:
                    described = str(job.target_path)
                self.output.success(f"[OK]\t{described}")
            return JobResult(
                job=job,
                action=action,
                outcome=JobOutcome.SYNCED,
                returncode=code,
                stdout=stdout,
                stderr=stderr,
            )

        if code < 0:
            # POSIX reports termination by signal N as -N. The process did run,
            # so this is a command failure rather than an execution error.
            message = (
                f"git command for {job.target_path} was killed with signal {-code}"
            )
        else:
            message = f"git command for {job.target_path} failed with status {code}"
        self.output.error(
            f"[FAILED]\t{message}:\n----> stdout [{stdout}]\n----> stderr [{stderr}]"
        )
        return JobResult(
            job=job,
            action=action,
            outcome=JobOutcome.COMMAND_FAILED,
            returncode=code,
            stdout=stdout,
            stderr=stderr,
            message=message,
        )

    def _skipped(self, job: SyncJob, action: SyncAction, message: str) -> JobResult:
        self.output.error(f"[FAILED]\t{message}")
        return JobResult(
            job=job, action=action, outcome=JobOutcome.SKIPPED, message=message
        )

    def _execution_error(
        self, job: SyncJob, action: SyncAction, message: str
    ) -> JobResult:
        self.output.error(f"[FAILED]\t{message}")
        return JobResult(
            job=job, action=action, outcome=JobOutcome.EXECUTION_ERROR, message=message
        )


def _decode(data: Optional[bytes]) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace").strip()
