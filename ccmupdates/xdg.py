"""Helpers for locating files in the user's XDG config and cache directories."""

from pathlib import Path

from xdg.BaseDirectory import load_first_config  # type: ignore
from xdg.BaseDirectory import save_cache_path as x_save_cache_path  # type: ignore

app = "ccmupdates"


def save_cache_path(*args: str) -> Path:
    """Returns a path to a file in the user's cache directory.

    The cache directory is created if it does not exist yet.

    Args:
        *args: The path components to join to the cache directory.

    Returns:
        A `Path` object representing the full path to the file.
    """
    return Path(x_save_cache_path(app)).joinpath(*args)


def user_config_file(name: str = "ccmupdates.cfg") -> Path | None:
    """Returns the user's config file if one exists.

    Args:
        name: The file name inside the application config directory.

    Returns:
        The first existing file in the XDG config search path, or None.
    """
    if found := load_first_config(app, name):
        return Path(found)
    return None
