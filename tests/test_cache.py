"""
Unit Tests for the Cache Location Module.
"""
import os

import pytest

from cache import CacheLocation, default_cache_dir
from conftest import write_cached_schema


class TestDefaultCacheDir:
    """Tests for cache directory resolution."""

    def test_environment_variable(self, monkeypatch, tmp_path):
        monkeypatch.setenv("IBIS_CACHE_DIR", str(tmp_path / "env-cache"))

        assert default_cache_dir() == tmp_path / "env-cache"

    def test_xdg_cache_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg"))

        assert default_cache_dir() == tmp_path / "xdg" / "ibis"

    def test_home_fallback(self, monkeypatch, tmp_path):
        monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))

        assert default_cache_dir() == tmp_path / ".cache" / "ibis"

    def test_explicit_dir_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv("IBIS_CACHE_DIR", str(tmp_path / "env-cache"))

        assert CacheLocation(tmp_path / "explicit").cache_dir == tmp_path / "explicit"


class TestCacheLocation:
    """Tests for CacheLocation file access."""

    def test_get_path_does_not_create_directory(self, tmp_path):
        location = CacheLocation(tmp_path / "nested" / "cache")

        path = location.get_path("schema.json")

        assert path == (tmp_path / "nested" / "cache" / "schema.json").resolve()
        assert not (tmp_path / "nested").exists()

    def test_create_file_creates_directory(self, tmp_path):
        location = CacheLocation(tmp_path / "nested" / "cache")

        with location.create_file("schema.json") as f:
            f.write(b"{}")

        assert (tmp_path / "nested" / "cache").is_dir()
        mode = os.stat(tmp_path / "nested" / "cache").st_mode & 0o777
        assert mode & 0o077 == 0

    def test_get_path_rejects_escape(self, tmp_path):
        location = CacheLocation(tmp_path / "cache")

        with pytest.raises(ValueError):
            location.get_path("../outside.json")
        with pytest.raises(ValueError):
            location.get_path("sub/schema.json")

    def test_exists(self, cache_location):
        assert cache_location.exists("schema.json") is False

        write_cached_schema(cache_location, "{}")

        assert cache_location.exists("schema.json") is True

    def test_create_and_open(self, cache_location):
        with cache_location.create_file("schema.json") as f:
            f.write(b'{"type": "object"}')

        with cache_location.open_file("schema.json") as f:
            assert f.read() == b'{"type": "object"}'

    def test_create_file_is_private(self, cache_location):
        with cache_location.create_file("schema.json") as f:
            f.write(b"{}")

        mode = os.stat(cache_location.get_path("schema.json")).st_mode & 0o777
        assert mode & 0o077 == 0

    def test_create_file_refuses_existing(self, cache_location):
        path = write_cached_schema(cache_location, "original")

        with pytest.raises(FileExistsError):
            cache_location.create_file("schema.json")
        assert path.read_text() == "original"

    def test_remove(self, cache_location):
        write_cached_schema(cache_location, "{}")

        assert cache_location.remove("schema.json") is True
        assert cache_location.remove("schema.json") is False
        assert not cache_location.exists("schema.json")
