"""Unit tests for the sync executor."""

import shutil
import subprocess
import tempfile
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from pyghopac.exceptions import NoAncestorError
from pyghopac.output import OutputFormatter
from pyghopac.sync.executor import SyncExecutor
from pyghopac.sync.job import JobOutcome, SyncAction, SyncJob

CLONE_URL = "git@github.com:myorg/tool.git"


def completed(returncode=0, stdout=b"", stderr=b""):
    return subprocess.CompletedProcess(
        args=["git"], returncode=returncode, stdout=stdout, stderr=stderr
    )


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_output():
    """Create a mock output formatter."""
    output = Mock(spec=OutputFormatter)
    output.quiet = False
    return output


@pytest.fixture
def executor(mock_output):
    return SyncExecutor(output=mock_output)


class TestCommandSelection:
    """Tests for which git command runs for a job."""

    def test_existing_directory_pulls_in_target(self, executor, temp_dir):
        """Test that an existing directory is pulled, never cloned."""
        job = SyncJob(temp_dir, CLONE_URL)
        with patch("pyghopac.sync.executor.subprocess.run") as mock_run:
            mock_run.return_value = completed()
            result = executor.execute(job)

        args, kwargs = mock_run.call_args
        assert args[0] == ["git", "pull", "--prune"]
        assert kwargs["cwd"] == temp_dir
        assert kwargs["stdin"] is subprocess.DEVNULL
        assert kwargs["capture_output"] is True
        assert result.action is SyncAction.UPDATE
        assert result.outcome is JobOutcome.SYNCED

    def test_missing_target_clones_into_exact_path(self, executor, temp_dir):
        """Test that a missing target is cloned from the nearest ancestor."""
        target = temp_dir / "org" / "tool"
        job = SyncJob(target, CLONE_URL)
        with patch("pyghopac.sync.executor.subprocess.run") as mock_run:
            mock_run.return_value = completed()
            result = executor.execute(job)

        args, kwargs = mock_run.call_args
        assert args[0] == ["git", "clone", CLONE_URL, str(target)]
        assert kwargs["cwd"] == temp_dir
        assert result.action is SyncAction.CLONE
        assert result.outcome is JobOutcome.SYNCED

    def test_relative_target_clones_into_exact_path(
        self, executor, temp_dir, monkeypatch
    ):
        """Test that a relative target is not resolved against the ancestor."""
        (temp_dir / "src" / "org").mkdir(parents=True)
        monkeypatch.chdir(temp_dir)
        job = SyncJob("src/org/tool", CLONE_URL)
        with patch("pyghopac.sync.executor.subprocess.run") as mock_run:
            mock_run.return_value = completed()
            executor.execute(job)

        args, kwargs = mock_run.call_args
        expected = Path.cwd() / "src" / "org" / "tool"
        assert args[0] == ["git", "clone", CLONE_URL, str(expected)]
        assert Path(kwargs["cwd"]).resolve() == expected.parent.resolve()

    @pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
    def test_relative_target_real_clone(self, executor, temp_dir, monkeypatch):
        """Test a real clone of a local bare repository into a relative path."""
        bare = temp_dir / "remote.git"
        subprocess.run(
            ["git", "init", "--bare", "-q", str(bare)], check=True, capture_output=True
        )
        work = temp_dir / "work"
        (work / "src" / "org").mkdir(parents=True)
        monkeypatch.chdir(work)

        result = executor.execute(SyncJob("src/org/tool", str(bare)))

        assert result.outcome is JobOutcome.SYNCED
        assert (work / "src" / "org" / "tool").is_dir()
        assert not (work / "src" / "org" / "src").exists()

    def test_custom_git_binary(self, mock_output, temp_dir):
        executor = SyncExecutor(output=mock_output, git_binary="/opt/git/bin/git")
        with patch("pyghopac.sync.executor.subprocess.run") as mock_run:
            mock_run.return_value = completed()
            executor.execute(SyncJob(temp_dir))

        assert mock_run.call_args[0][0][0] == "/opt/git/bin/git"


class TestSkips:
    """Tests for jobs that never spawn a process."""

    def test_file_collision(self, executor, mock_output, temp_dir):
        """Test that a file in place of the repository is skipped as a failure."""
        target = temp_dir / "tool"
        target.write_text("in the way")
        with patch("pyghopac.sync.executor.subprocess.run") as mock_run:
            result = executor.execute(SyncJob(target, CLONE_URL))

        mock_run.assert_not_called()
        assert result.action is SyncAction.SKIP_COLLISION
        assert result.outcome is JobOutcome.SKIPPED
        assert result.failed
        message = mock_output.error.call_args[0][0]
        assert "[FAILED]" in message
        assert "exists but is not a directory" in message

    def test_missing_without_source(self, executor, mock_output, temp_dir):
        """Test that a missing syncpoint is skipped as a failure."""
        with patch("pyghopac.sync.executor.subprocess.run") as mock_run:
            result = executor.execute(SyncJob(temp_dir / "gone"))

        mock_run.assert_not_called()
        assert result.action is SyncAction.SKIP_MISSING_SOURCE
        assert result.outcome is JobOutcome.SKIPPED
        assert result.failed
        assert "no clone URL defined" in mock_output.error.call_args[0][0]


class TestClassification:
    """Tests for classifying process results."""

    def test_success_quiet_when_not_verbose(self, executor, mock_output, temp_dir):
        with patch("pyghopac.sync.executor.subprocess.run") as mock_run:
            mock_run.return_value = completed(0, b"Already up to date.\n")
            result = executor.execute(SyncJob(temp_dir))

        assert result.outcome is JobOutcome.SYNCED
        assert result.stdout == "Already up to date."
        mock_output.success.assert_not_called()
        mock_output.error.assert_not_called()

    def test_success_verbose_reports_clone_url(self, mock_output, temp_dir):
        executor = SyncExecutor(output=mock_output, verbose=True)
        target = temp_dir / "tool"
        with patch("pyghopac.sync.executor.subprocess.run") as mock_run:
            mock_run.return_value = completed()
            executor.execute(SyncJob(target, CLONE_URL))

        message = mock_output.success.call_args[0][0]
        assert message == f"[OK]\t{CLONE_URL} - {target}"

    def test_success_verbose_reports_path_only(self, mock_output, temp_dir):
        executor = SyncExecutor(output=mock_output, verbose=True)
        with patch("pyghopac.sync.executor.subprocess.run") as mock_run:
            mock_run.return_value = completed()
            executor.execute(SyncJob(temp_dir))

        assert mock_output.success.call_args[0][0] == f"[OK]\t{temp_dir}"

    def test_success_verbose_update_omits_url(self, mock_output, temp_dir):
        """Test that a pulled repository is reported by path even with a URL."""
        executor = SyncExecutor(output=mock_output, verbose=True)
        with patch("pyghopac.sync.executor.subprocess.run") as mock_run:
            mock_run.return_value = completed()
            result = executor.execute(SyncJob(temp_dir, CLONE_URL))

        assert result.action is SyncAction.UPDATE
        assert mock_output.success.call_args[0][0] == f"[OK]\t{temp_dir}"

    def test_non_zero_exit(self, executor, mock_output, temp_dir):
        """Test that a failing command surfaces code, stdout and stderr."""
        with patch("pyghopac.sync.executor.subprocess.run") as mock_run:
            mock_run.return_value = completed(
                1, b"some output", b"fatal: not a git repository"
            )
            result = executor.execute(SyncJob(temp_dir))

        assert result.outcome is JobOutcome.COMMAND_FAILED
        assert result.returncode == 1
        assert result.stderr == "fatal: not a git repository"
        message = mock_output.error.call_args[0][0]
        assert "failed with status 1" in message
        assert "some output" in message
        assert "fatal: not a git repository" in message

    def test_killed_by_signal(self, executor, mock_output, temp_dir):
        with patch("pyghopac.sync.executor.subprocess.run") as mock_run:
            mock_run.return_value = completed(-9)
            result = executor.execute(SyncJob(temp_dir))

        assert result.outcome is JobOutcome.COMMAND_FAILED
        assert "killed with signal 9" in mock_output.error.call_args[0][0]

    def test_invalid_utf8_output(self, executor, temp_dir):
        with patch("pyghopac.sync.executor.subprocess.run") as mock_run:
            mock_run.return_value = completed(1, b"", b"\xff\xfebroken")
            result = executor.execute(SyncJob(temp_dir))

        assert "broken" in result.stderr

    def test_spawn_failure(self, executor, mock_output, temp_dir):
        """Test that a missing git binary is an execution error."""
        with patch("pyghopac.sync.executor.subprocess.run") as mock_run:
            mock_run.side_effect = FileNotFoundError("git")
            result = executor.execute(SyncJob(temp_dir))

        assert result.outcome is JobOutcome.EXECUTION_ERROR
        assert result.failed
        assert "unable to run git command" in mock_output.error.call_args[0][0]

    def test_timeout(self, mock_output, temp_dir):
        executor = SyncExecutor(output=mock_output, timeout=1.0)
        with patch("pyghopac.sync.executor.subprocess.run") as mock_run:
            mock_run.side_effect = subprocess.TimeoutExpired(["git"], 1.0)
            result = executor.execute(SyncJob(temp_dir))

        assert mock_run.call_args[1]["timeout"] == 1.0
        assert result.outcome is JobOutcome.EXECUTION_ERROR

    def test_no_ancestor_is_execution_error(self, executor, temp_dir):
        """Test that an unresolvable working directory fails only the job."""
        job = SyncJob(temp_dir / "tool", CLONE_URL)
        with patch(
            "pyghopac.sync.executor.closest_existing_directory",
            side_effect=NoAncestorError(job.target_path),
        ), patch("pyghopac.sync.executor.subprocess.run") as mock_run:
            result = executor.execute(job)

        mock_run.assert_not_called()
        assert result.outcome is JobOutcome.EXECUTION_ERROR
