"""
Cache Location Module for IBIS.

Resolves logical cache keys (e.g. "schema.json") to files inside a per-user
cache directory and provides read and exclusive-create access to them.

Directory resolution order:
    1. Explicit cache_dir argument (or schema.cache_dir from config.yml)
    2. IBIS_CACHE_DIR environment variable
    3. $XDG_CACHE_HOME/ibis
    4. ~/.cache/ibis

Usage:
    >>> from cache import CacheLocation
    >>> location = CacheLocation()
    >>> location.get_path("schema.json")
    PosixPath('/home/user/.cache/ibis/schema.json')
"""
import logging
import os
from pathlib import Path
from typing import BinaryIO, Optional, Union


logger = logging.getLogger(__name__)

CACHE_DIR_ENV = "IBIS_CACHE_DIR"
CACHE_DIR_NAME = "ibis"


def default_cache_dir() -> Path:
    """Return the cache directory from the environment, falling back to XDG defaults."""
    env_dir = os.environ.get(CACHE_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()

    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache:
        return Path(xdg_cache).expanduser() / CACHE_DIR_NAME

    return Path.home() / ".cache" / CACHE_DIR_NAME


class CacheLocation:
    """Filesystem-backed cache directory.

    Attributes:
        cache_dir: Directory holding cached files. Created (mode 0o700) by
            create_file(); reading never creates it.
    """

    def __init__(self, cache_dir: Optional[Union[str, os.PathLike]] = None):
        self.cache_dir = Path(cache_dir).expanduser() if cache_dir else default_cache_dir()

    def get_path(self, name: str) -> Path:
        """Resolve a cache key to a path inside the cache directory.

        Does not create anything on disk.

        Raises:
            ValueError: If the name resolves outside the cache directory
        """
        root = self.cache_dir.resolve()
        path = (root / name).resolve()
        if path.parent != root:
            raise ValueError(f"Cache key escapes cache directory: {name!r}")

        logger.debug(f"Resolved cache key {name!r} to {path}")
        return path

    def exists(self, name: str) -> bool:
        return self.get_path(name).exists()

    def open_file(self, name: str) -> BinaryIO:
        """Open a cached file for binary reading."""
        return open(self.get_path(name), "rb")

    def create_file(self, name: str) -> BinaryIO:
        """Create a cached file for binary writing.

        Uses exclusive creation, so an existing file is never truncated. Creates
        the cache directory (mode 0o700) if needed.

        Raises:
            FileExistsError: If the file already exists
        """
        path = self.get_path(name)
        os.makedirs(path.parent, mode=0o700, exist_ok=True)
        fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_EXCL, 0o600)
        return os.fdopen(fd, "wb")

    def remove(self, name: str) -> bool:
        """Delete a cached file. Returns True if a file was removed."""
        path = self.get_path(name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.info(f"Removed cached file {path}")
        return True
