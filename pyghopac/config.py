"""Configuration file handling for ghopac.

The configuration is a JSON document found through the XDG Base Directory
Specification under ``ghopac/config.json``::

    {
        "github_access_token": "...",
        "orgs": [{"org": "myorg", "path": "/src/myorg"}],
        "syncpoints": ["/src/other/repo"],
        "concurrency": 4,
        "verbose": true
    }
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

PROGRAM_NAME = "ghopac"
CONFIG_FILE = "config.json"
DEFAULT_CONCURRENCY = 4
TOKEN_PLACEHOLDER = "Replace with a token from https://github.com/settings/tokens"


@dataclass(frozen=True)
class OrgConfig:
    """A GitHub organization and the local directory its repositories live in."""

    org: str
    path: str

    @classmethod
    def from_dict(cls, data: Any) -> "OrgConfig":
        if not isinstance(data, dict):
            raise ConfigError(f"Organization entry must be an object, got {data!r}")
        org = data.get("org")
        path = data.get("path")
        if not isinstance(org, str) or not org.strip():
            raise ConfigError(f"Organization entry is missing 'org': {data!r}")
        if not isinstance(path, str) or not path.strip():
            raise ConfigError(f"Organization '{org}' is missing 'path'")
        return cls(org=org.strip(), path=os.path.expanduser(path))


@dataclass(frozen=True)
class Config:
    """Read-only configuration snapshot shared by all workers."""

    github_access_token: Optional[str] = None
    orgs: tuple[OrgConfig, ...] = field(default_factory=tuple)
    syncpoints: tuple[str, ...] = field(default_factory=tuple)
    concurrency: Optional[int] = None
    verbose: bool = False

    @property
    def effective_concurrency(self) -> int:
        """Configured worker count, or the default when unset or not positive."""
        if self.concurrency is not None and self.concurrency > 0:
            return self.concurrency
        return DEFAULT_CONCURRENCY

    @property
    def has_token(self) -> bool:
        token = self.github_access_token
        return bool(token and token.strip() and token != TOKEN_PLACEHOLDER)

    @classmethod
    def from_dict(cls, data: Any) -> "Config":
        """Build a configuration from parsed JSON.

        Raises:
            ConfigError: If a known key has the wrong type
        """
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a JSON object")

        token = data.get("github_access_token")
        if token is not None and not isinstance(token, str):
            raise ConfigError("'github_access_token' must be a string")

        orgs = data.get("orgs") or []
        if not isinstance(orgs, list):
            raise ConfigError("'orgs' must be a list")

        syncpoints = data.get("syncpoints") or []
        if not isinstance(syncpoints, list) or not all(
            isinstance(p, str) for p in syncpoints
        ):
            raise ConfigError("'syncpoints' must be a list of paths")

        concurrency = data.get("concurrency")
        # bool is an int subclass, reject it explicitly
        if concurrency is not None and (
            isinstance(concurrency, bool) or not isinstance(concurrency, int)
        ):
            raise ConfigError("'concurrency' must be an integer")

        verbose = data.get("verbose", False)
        if not isinstance(verbose, bool):
            raise ConfigError("'verbose' must be true or false")

        return cls(
            github_access_token=token,
            orgs=tuple(OrgConfig.from_dict(o) for o in orgs),
            syncpoints=tuple(os.path.expanduser(p) for p in syncpoints),
            concurrency=concurrency,
            verbose=verbose,
        )

    def to_dict(self) -> dict:
        """Convert to the JSON layout of the configuration file."""
        return {
            "github_access_token": self.github_access_token,
            "orgs": [asdict(o) for o in self.orgs],
            "syncpoints": list(self.syncpoints),
            "concurrency": self.concurrency,
            "verbose": self.verbose,
        }


def _config_path(base: Path) -> Path:
    return base / PROGRAM_NAME / CONFIG_FILE


def config_location() -> Path:
    """Locate the configuration file.

    Looks in ``$XDG_CONFIG_HOME`` (default ``~/.config``) first, then in
    each absolute directory of ``$XDG_CONFIG_DIRS`` (default ``/etc/xdg``).

    Returns:
        The first existing configuration file, or the location in
        ``$XDG_CONFIG_HOME`` where it should be created
    """
    config_home = os.environ.get("XDG_CONFIG_HOME", "").strip()
    home_base = Path(config_home) if config_home else Path.home() / ".config"
    if _config_path(home_base).exists():
        return _config_path(home_base)

    config_dirs = os.environ.get("XDG_CONFIG_DIRS", "").strip()
    search = config_dirs.split(os.pathsep) if config_dirs else ["/etc/xdg"]
    for entry in search:
        if entry and os.path.isabs(entry) and _config_path(Path(entry)).exists():
            return _config_path(Path(entry))

    return _config_path(home_base)


def load_config(path: Optional[Path] = None) -> Optional[Config]:
    """Load the configuration file.

    Args:
        path: Explicit file to read (default: XDG lookup)

    Returns:
        Parsed configuration, or None if the file does not exist

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    path = path or config_location()
    if not path.exists():
        logger.debug(f"No configuration file at {path}")
        return None
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(
            f"Can't parse your config file [{path}]: {e}. "
            "Try removing it and running again."
        ) from e
    except OSError as e:
        raise ConfigError(f"Unable to read your config file [{path}]: {e}") from e
    logger.debug(f"Loaded configuration from {path}")
    return Config.from_dict(data)


def sample_config() -> Config:
    """Configuration shown to first-time users."""
    return Config(
        github_access_token=TOKEN_PLACEHOLDER,
        orgs=(OrgConfig(org="myorg", path="/myorg/source/directory"),),
        syncpoints=("/some/other/directory",),
        concurrency=DEFAULT_CONCURRENCY,
        verbose=True,
    )


def sample_config_json() -> str:
    return json.dumps(sample_config().to_dict(), indent=4)
