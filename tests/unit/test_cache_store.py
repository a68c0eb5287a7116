"""Fingerprinting and staleness decisions of the artifact cache."""

import dataclasses
import hashlib
import os
from pathlib import Path

import pytest

from closure_build.cache import CacheStore, fingerprint
from closure_build.core import BuildRequest, CompilationLevel, WarningLevel
from closure_build.exceptions import ConfigurationError


def base_request(**overrides) -> BuildRequest:
    return BuildRequest(sources=("a.js", "b.js"), **overrides)


@pytest.mark.unit
class TestFingerprint:
    def test_is_deterministic(self):
        assert fingerprint(base_request()) == fingerprint(base_request())

    def test_is_md5_hex(self):
        key = fingerprint(base_request())
        assert len(key) == 32
        int(key, 16)

    def test_hashes_fields_in_fixed_order(self):
        expected = hashlib.md5(
            b"a.js,b.js-WHITESPACE_ONLY-DEFAULT----1---"
        ).hexdigest()
        assert fingerprint(base_request()) == expected

    @pytest.mark.parametrize(
        "change",
        [
            {"sources": ("b.js", "a.js")},
            {"sources": ("a.js",)},
            {"compilation_level": CompilationLevel.ADVANCED},
            {"warning_level": WarningLevel.VERBOSE},
            {"use_closure_library": True},
            {"pretty_print": True},
            {"local_compile": True},
            {"debug": False},
            {"externs": ("ext.js",)},
            {"output_wrapper": "(function(){%output%})();"},
            {"code_url_prefix": "http://x/"},
        ],
    )
    def test_any_field_change_changes_key(self, change):
        original = base_request()
        changed = dataclasses.replace(original, **change)
        assert fingerprint(changed) != fingerprint(original)

    def test_externs_order_does_not_matter(self):
        a = base_request(externs=("x.js", "y.js"))
        b = base_request(externs=("y.js", "x.js"))
        assert fingerprint(a) == fingerprint(b)

    def test_cache_dir_does_not_participate(self, tmp_path):
        assert fingerprint(base_request(cache_dir=tmp_path)) == fingerprint(
            base_request()
        )


@pytest.fixture
def sources(tmp_path) -> list[str]:
    paths = []
    for name in ("a.js", "b.js"):
        path = tmp_path / name
        path.write_text(f"// {name}", encoding="utf-8")
        paths.append(str(path))
    return paths


@pytest.fixture
def cache_dir(tmp_path) -> Path:
    directory = tmp_path / "cache"
    directory.mkdir()
    return directory


def set_mtime(path: str | Path, mtime: float) -> None:
    os.utime(path, (mtime, mtime))


@pytest.mark.unit
class TestNeedsRecompile:
    def test_missing_cache_file(self, sources, cache_dir):
        request = BuildRequest(sources=tuple(sources), cache_dir=cache_dir)
        store = CacheStore(cache_dir)
        assert store.needs_recompile(store.entry_for(request), request)

    def test_fresh_cache_file(self, sources, cache_dir):
        request = BuildRequest(sources=tuple(sources), cache_dir=cache_dir)
        store = CacheStore(cache_dir)
        entry = store.entry_for(request)
        store.write(entry, b"x")
        for src in sources:
            set_mtime(src, 1_000)
        set_mtime(entry.path, 1_000)
        assert not store.needs_recompile(entry, request)

    def test_source_newer_than_cache(self, sources, cache_dir):
        request = BuildRequest(sources=tuple(sources), cache_dir=cache_dir)
        store = CacheStore(cache_dir)
        entry = store.entry_for(request)
        store.write(entry, b"x")
        set_mtime(entry.path, 1_000)
        set_mtime(sources[0], 1_000)
        set_mtime(sources[1], 1_001)
        assert store.needs_recompile(entry, request)

    def test_caller_script_newer_than_cache(self, sources, cache_dir, tmp_path):
        caller = tmp_path / "page.py"
        caller.write_text("", encoding="utf-8")
        request = BuildRequest(sources=tuple(sources), cache_dir=cache_dir)
        store = CacheStore(cache_dir)
        entry = store.entry_for(request)
        store.write(entry, b"x")
        for src in sources:
            set_mtime(src, 1_000)
        set_mtime(entry.path, 1_000)
        set_mtime(caller, 2_000)

        assert not store.needs_recompile(entry, request)
        assert store.needs_recompile(entry, request, caller_script_path=caller)

    def test_missing_source_raises(self, cache_dir, tmp_path):
        request = BuildRequest(sources=(str(tmp_path / "gone.js"),))
        store = CacheStore(cache_dir)
        entry = store.entry_for(request)
        store.write(entry, b"x")
        with pytest.raises(ConfigurationError, match="gone.js"):
            store.needs_recompile(entry, request)


@pytest.mark.unit
class TestReadWrite:
    def test_round_trip_and_validators(self, cache_dir):
        store = CacheStore(cache_dir)
        entry = store.entry_for(base_request())
        store.write(entry, b"var a=1;")

        assert entry.path == cache_dir / f"{entry.fingerprint}.js"
        assert store.read(entry) == b"var a=1;"
        assert store.etag(entry) == hashlib.md5(b"var a=1;").hexdigest()
        assert store.last_modified(entry) == int(entry.path.stat().st_mtime)

    def test_write_replaces_and_leaves_no_temp_files(self, cache_dir):
        store = CacheStore(cache_dir)
        entry = store.entry_for(base_request())
        store.write(entry, b"old")
        store.write(entry, b"new")
        assert store.read(entry) == b"new"
        assert [p.name for p in cache_dir.iterdir()] == [entry.path.name]

    def test_write_to_missing_directory_raises(self, tmp_path):
        store = CacheStore(tmp_path / "missing")
        with pytest.raises(ConfigurationError, match="does not exist"):
            store.write(store.entry_for(base_request()), b"x")

    def test_ensure_writable_accepts_existing_directory(self, cache_dir):
        CacheStore(cache_dir).ensure_writable()

    def test_ensure_writable_rejects_a_file(self, tmp_path):
        not_a_dir = tmp_path / "cache"
        not_a_dir.write_text("", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="does not exist"):
            CacheStore(not_a_dir).ensure_writable()
