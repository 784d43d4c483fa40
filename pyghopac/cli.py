"""CLI interface for ghopac."""

import dataclasses
import logging
from pathlib import Path
from typing import Any, Optional

import click

from . import __version__
from .api import GitHubClient
from .config import Config, config_location, load_config, sample_config_json
from .exceptions import ConfigError
from .output import OutputFormatter
from .sync import SyncEngine

logger = logging.getLogger(__name__)


def _load_or_exit(ctx: Any) -> Config:
    """Load the configuration, or print a sample and exit 1 if there is none."""
    out: OutputFormatter = ctx.obj["out"]
    path: Path = ctx.obj["config_path"] or config_location()

    try:
        config = load_config(path)
    except ConfigError as e:
        out.error(str(e))
        ctx.exit(1)

    if config is None:
        out.warning(f"No config file! Here's a sample you can put into {path}:\n")
        click.echo(sample_config_json(), err=True)
        ctx.exit(1)

    token = ctx.obj["token"]
    if token:
        config = dataclasses.replace(config, github_access_token=token)
    return config


def _make_client(config: Config) -> Optional[GitHubClient]:
    if not config.has_token or not config.orgs:
        return None
    return GitHubClient(token=config.github_access_token)


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (default: $XDG_CONFIG_HOME/ghopac/config.json)",
)
@click.option(
    "--token",
    envvar="GITHUB_TOKEN",
    default=None,
    help="GitHub access token, overrides the configuration file",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--debug", is_flag=True, help="Enable debug logging output")
@click.version_option(version=__version__)
@click.pass_context
def main(
    ctx: Any,
    config_path: Optional[Path],
    token: Optional[str],
    quiet: bool,
    debug: bool,
) -> None:
    """ghopac - clone and update every repository of your GitHub organizations."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["token"] = token
    ctx.obj["out"] = OutputFormatter(quiet=quiet)

    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pyghopac").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.option(
    "--workers",
    "-j",
    type=click.IntRange(min=1),
    default=None,
    help="Number of parallel git processes (overrides 'concurrency')",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Report successful repositories too (overrides 'verbose')",
)
@click.option("--git", "git_binary", default="git", help="git executable to use")
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Time limit in seconds for a single git command",
)
@click.pass_context
def sync(
    ctx: Any,
    workers: Optional[int],
    verbose: bool,
    git_binary: str,
    timeout: Optional[float],
) -> None:
    """Clone missing repositories and pull existing ones.

    Exits with the number of failed repositories (at most 255).
    """
    out: OutputFormatter = ctx.obj["out"]
    config = _load_or_exit(ctx)

    overrides: dict[str, Any] = {}
    if workers is not None:
        overrides["concurrency"] = workers
    if verbose:
        overrides["verbose"] = True
    if overrides:
        config = dataclasses.replace(config, **overrides)

    client = _make_client(config)
    try:
        engine = SyncEngine(
            config,
            client=client,
            output=out,
            git_binary=git_binary,
            timeout=timeout,
        )
        result = engine.sync()
    finally:
        if client is not None:
            client.close()

    ctx.exit(result.exit_status)


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output in JSON format")
@click.pass_context
def plan(ctx: Any, as_json: bool) -> None:
    """Show what a sync would do without running git."""
    out: OutputFormatter = ctx.obj["out"]
    config = _load_or_exit(ctx)

    client = _make_client(config)
    try:
        planned = SyncEngine(config, client=client, output=out).plan()
    finally:
        if client is not None:
            client.close()

    if as_json:
        out.print_json(
            [
                {
                    "path": str(job.target_path),
                    "source_url": job.source_url,
                    "action": action.value,
                }
                for job, action in planned
            ]
        )
        return

    for job, action in planned:
        click.echo(f"{action.value:<20} {job.describe()}")
    out.info(f"\n{len(planned)} job(s)")


@main.command("sample-config")
def sample_config_command() -> None:
    """Print a sample configuration file."""
    click.echo(sample_config_json())


@main.command("config-path")
@click.pass_context
def config_path_command(ctx: Any) -> None:
    """Print where the configuration file is looked up."""
    click.echo(str(ctx.obj["config_path"] or config_location()))


if __name__ == "__main__":
    main()
