"""Unit tests for job enumeration."""

from pathlib import Path
from unittest.mock import Mock

import httpx
import pytest

from pyghopac.api import GitHubClient, Repository
from pyghopac.config import Config, OrgConfig
from pyghopac.exceptions import APIError, NotFoundError
from pyghopac.output import OutputFormatter
from pyghopac.sync.job import SyncJob
from pyghopac.sync.queue import DispatchQueue
from pyghopac.sync.source import JobSource, organization_jobs, syncpoint_jobs


@pytest.fixture
def mock_client():
    """Create a mock GitHub client."""
    return Mock(spec=GitHubClient)


@pytest.fixture
def mock_output():
    """Create a mock output formatter."""
    output = Mock(spec=OutputFormatter)
    output.quiet = True
    return output


class TestSyncpointJobs:
    """Tests for syncpoint_jobs."""

    def test_one_job_per_path(self):
        jobs = list(syncpoint_jobs(["/src/a", "/src/b"]))
        assert jobs == [SyncJob("/src/a"), SyncJob("/src/b")]
        assert all(job.source_url is None for job in jobs)

    def test_home_expanded(self):
        (job,) = syncpoint_jobs(["~/src/a"])
        assert job.target_path == Path.home() / "src" / "a"


class TestOrganizationJobs:
    """Tests for organization_jobs."""

    def test_paths_and_urls(self, mock_client):
        mock_client.iter_org_repos.return_value = iter(
            [
                Repository(name="tool", ssh_url="git@github.com:myorg/tool.git"),
                Repository(name="docs", ssh_url="  "),
                Repository(name="legacy", ssh_url=None),
            ]
        )
        jobs = list(organization_jobs(mock_client, OrgConfig("myorg", "/src/myorg")))

        mock_client.iter_org_repos.assert_called_once_with("myorg")
        assert jobs == [
            SyncJob(Path("/src/myorg/tool"), "git@github.com:myorg/tool.git"),
            SyncJob(Path("/src/myorg/docs")),
            SyncJob(Path("/src/myorg/legacy")),
        ]


class TestJobSource:
    """Tests for JobSource."""

    def test_orgs_before_syncpoints(self, mock_client, mock_output):
        """Test that organization jobs are enqueued before syncpoints."""
        mock_client.iter_org_repos.side_effect = lambda org: iter(
            [Repository(name=f"{org}-repo", ssh_url=f"git@github.com:{org}/r.git")]
        )
        config = Config(
            github_access_token="token",
            orgs=(OrgConfig("one", "/src/one"), OrgConfig("two", "/src/two")),
            syncpoints=("/src/extra",),
        )
        source = JobSource(config, client=mock_client, output=mock_output)
        queue = DispatchQueue()

        assert source.produce(queue) == 3
        queue.close()
        order = [str(queue.dequeue().target_path) for _ in range(3)]
        assert order == [
            str(Path("/src/one/one-repo")),
            str(Path("/src/two/two-repo")),
            str(Path("/src/extra")),
        ]
        assert queue.dequeue() is None

    def test_org_failure_does_not_stop_others(self, mock_client, mock_output):
        """Test that one unreachable organization is reported and skipped."""

        def repos(org):
            if org == "broken":
                raise NotFoundError("Resource not found")
            return iter([Repository(name="r", ssh_url="url")])

        mock_client.iter_org_repos.side_effect = repos
        config = Config(
            github_access_token="token",
            orgs=(OrgConfig("broken", "/src/b"), OrgConfig("fine", "/src/f")),
            syncpoints=("/src/extra",),
        )
        jobs = list(JobSource(config, mock_client, mock_output).iter_jobs())

        assert [str(j.target_path) for j in jobs] == [
            str(Path("/src/f/r")),
            str(Path("/src/extra")),
        ]
        warning = mock_output.warning.call_args[0][0]
        assert "Problem accessing org `broken`" in warning

    def test_partial_listing_kept(self, mock_client, mock_output):
        """Test that jobs from pages fetched before an error are kept."""

        def repos(org):
            yield Repository(name="first", ssh_url="url")
            raise APIError("API request failed with status 502")

        mock_client.iter_org_repos.side_effect = repos
        config = Config(
            github_access_token="token", orgs=(OrgConfig("org", "/src/org"),)
        )
        jobs = list(JobSource(config, mock_client, mock_output).iter_jobs())

        assert jobs == [SyncJob(Path("/src/org/first"), "url")]
        mock_output.warning.assert_called_once()

    def test_malformed_listing_is_a_warning(self, mock_output):
        """Test that a non-object repository entry skips only that org."""
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json=[42])
        )
        client = GitHubClient(token="token", transport=transport)
        config = Config(
            github_access_token="token",
            orgs=(OrgConfig("org", "/src/org"),),
            syncpoints=("/x",),
        )
        jobs = JobSource(config, client, mock_output).collect()

        assert jobs == [SyncJob("/x")]
        assert "Problem accessing org `org`" in mock_output.warning.call_args[0][0]

    def test_without_client_only_syncpoints(self, mock_output):
        config = Config(orgs=(OrgConfig("org", "/src/org"),), syncpoints=("/a",))
        jobs = list(JobSource(config, None, mock_output).iter_jobs())

        assert jobs == [SyncJob("/a")]
        assert "No GitHub access token" in mock_output.warning.call_args[0][0]

    def test_collect_quiet(self, mock_output):
        config = Config(syncpoints=("/a", "/b"))
        assert JobSource(config, None, mock_output).collect() == [
            SyncJob("/a"),
            SyncJob("/b"),
        ]

    def test_empty_config(self, mock_output):
        assert JobSource(Config(), None, mock_output).collect() == []
        mock_output.warning.assert_not_called()
