"""Working directory resolution for git commands."""

from pathlib import Path
from typing import Union

from ..exceptions import NoAncestorError


def closest_existing_directory(path: Union[str, Path]) -> Path:
    """Find the nearest existing directory at or above ``path``.

    Used to pick a working directory for ``git clone`` when the target
    itself does not exist yet. The walk is bounded by the number of path
    components; a relative path ends at the current directory.

    Args:
        path: Candidate path

    Returns:
        ``path`` itself if it is a directory, otherwise its closest
        existing parent directory

    Raises:
        NoAncestorError: If no component of the path exists as a directory

    Examples:
        >>> closest_existing_directory("/")
        PosixPath('/')
    """
    path = Path(path)
    for candidate in (path, *path.parents):
        if candidate.is_dir():
            return candidate
    raise NoAncestorError(path)
