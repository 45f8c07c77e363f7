"""
Pytest configuration and shared fixtures for all tests.

This module provides shared fixtures for the test suite, including:
- An isolated cache directory per test
- A fake remote source that serves schema text without network access
- Environment cleanup so a developer's IBIS_* variables never leak in
"""

import pytest

from cache import CacheLocation
from remote import RemoteSource, RemoteSourceError
from schema import SchemaStore


NAME_SCHEMA_TEXT = '{"type":"object","required":["name"]}'


class FakeRemoteSource(RemoteSource):
    """RemoteSource that returns canned text and counts downloads."""

    def __init__(self, text=NAME_SCHEMA_TEXT, error=None):
        super().__init__(url="https://schemas.example.com/schema.min.json", timeout=5)
        self.text = text
        self.error = error
        self.calls = 0

    def fetch_text(self):
        self.calls += 1
        if self.error is not None:
            raise RemoteSourceError(self.error)
        return self.text


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Remove IBIS_* environment variables before each test."""
    monkeypatch.delenv("IBIS_CACHE_DIR", raising=False)
    monkeypatch.delenv("IBIS_SCHEMA_URL", raising=False)


@pytest.fixture
def cache_location(tmp_path):
    """CacheLocation rooted in a per-test temporary directory."""
    return CacheLocation(tmp_path / "cache")


@pytest.fixture
def remote_source():
    return FakeRemoteSource()


@pytest.fixture
def store(cache_location, remote_source):
    """SchemaStore wired to the temporary cache and the fake remote source."""
    return SchemaStore(cache_location=cache_location, remote_source=remote_source)


def write_cached_schema(cache_location, text):
    """Seed the cache with schema text and return its path."""
    path = cache_location.get_path("schema.json")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path
