"""
Remote Schema Source for IBIS.

This module retrieves the canonical schema text over HTTP. It performs a
single GET request against a fixed URL and returns the body as UTF-8 text.
There is no retry policy: any transport error, non-success status or
undecodable body is raised once as RemoteSourceError.

Configuration:
    Configure via config.yml:
    - schema.url: Canonical schema URL (IBIS_SCHEMA_URL overrides it)
    - schema.request_timeout: Request timeout in seconds

Usage:
    >>> from config import load_config
    >>> source = RemoteSource.from_config(load_config())
    >>> text = source.fetch_text()
"""
import logging
from typing import Any, Dict

import requests

from config import DEFAULT_REQUEST_TIMEOUT, DEFAULT_SCHEMA_URL, get_schema_settings


logger = logging.getLogger(__name__)


class RemoteSourceError(Exception):
    """Raised when the schema cannot be retrieved from the remote source."""
    pass


class RemoteSource:
    """HTTP endpoint serving the canonical schema text.

    Attributes:
        url: URL the schema is downloaded from
        timeout: Request timeout in seconds
    """

    def __init__(self, url: str = DEFAULT_SCHEMA_URL, timeout: float = DEFAULT_REQUEST_TIMEOUT):
        self.url = url
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "RemoteSource":
        """Create a RemoteSource from the 'schema' section of config.yml."""
        settings = get_schema_settings(config)
        return cls(url=settings["url"], timeout=settings["request_timeout"])

    def fetch_text(self) -> str:
        """Download the schema and return it as text.

        Returns:
            Response body decoded as UTF-8

        Raises:
            RemoteSourceError: On connection failure, timeout, non-2xx status,
                or a body that is not valid UTF-8
        """
        logger.debug(f"Requesting schema from {self.url}")
        try:
            response = requests.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            content = response.content
        except requests.exceptions.RequestException as e:
            raise RemoteSourceError(f"Could not get schema from {self.url}: {e}") from e

        try:
            return content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise RemoteSourceError(f"Schema from {self.url} is not valid UTF-8: {e}") from e
