"""On-disk artifact cache keyed by a fingerprint of the build request.

One file per fingerprint, ``<cache_dir>/<fingerprint>.js``. There is no index:
the file's existence and modification time are the only metadata. Staleness
is decided from timestamps alone, so a touched-but-unchanged source forces a
recompile and clock skew can hide a change; the cache speeds up serving, it
does not vouch for artifact identity.
"""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
import logging
import os
from pathlib import Path
import tempfile

from closure_build.constants import CACHE_FILE_SUFFIX
from closure_build.core.types import BuildRequest
from closure_build.exceptions import ConfigurationError

log = logging.getLogger(__name__)


def _flag(value: bool) -> str:  # noqa: FBT001
    return "1" if value else ""


def fingerprint(request: BuildRequest) -> str:
    """Compute the cache key for `request`.

    A pure function of the source list (in order), compilation level,
    warning level, closure library flag, pretty-print flag, local-compile
    flag and debug flag, hashed in that order. Externs, output wrapper and
    code URL prefix follow, since they also change the compiled output.
    """
    fields = [
        ",".join(request.sources),
        request.compilation_level.value,
        request.warning_level.value,
        _flag(request.use_closure_library),
        _flag(request.pretty_print),
        _flag(request.local_compile),
        _flag(request.debug),
        ",".join(sorted(request.externs)),
        request.output_wrapper or "",
        request.code_url_prefix or "",
    ]
    digest = hashlib.md5("-".join(fields).encode("utf-8"), usedforsecurity=False)
    return digest.hexdigest()


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Location of the cached artifact for one fingerprint."""

    fingerprint: str
    path: Path

    def exists(self) -> bool:  # noqa: D102
        return self.path.is_file()


class CacheStore:
    """Reads, writes and validates cached artifacts in one directory."""

    def __init__(self, directory: str | os.PathLike[str]) -> None:  # noqa: D107
        self.directory = Path(directory)

    def entry_for(self, request: BuildRequest) -> CacheEntry:
        """Return the cache entry that `request` maps to."""
        key = fingerprint(request)
        return CacheEntry(
            fingerprint=key, path=self.directory / f"{key}{CACHE_FILE_SUFFIX}"
        )

    def needs_recompile(
        self,
        entry: CacheEntry,
        request: BuildRequest,
        caller_script_path: str | os.PathLike[str] | None = None,
    ) -> bool:
        """Decide whether the cached artifact is stale.

        True when the cache file is missing, or when any source, or the
        script that invoked the build, was modified strictly after it.

        Raises:
            ConfigurationError: If a source or the caller script does not exist.
        """
        try:
            cache_mtime = entry.path.stat().st_mtime
        except FileNotFoundError:
            log.debug("Cache miss for %s: no cache file", entry.fingerprint)
            return True

        candidates = list(request.sources)
        if caller_script_path is not None:
            candidates.append(os.fspath(caller_script_path))

        for path in candidates:
            try:
                mtime = Path(path).stat().st_mtime
            except FileNotFoundError as e:
                raise ConfigurationError(f"Source file not found: {path}") from e
            if mtime > cache_mtime:
                log.debug(
                    "Cache stale for %s: %s is newer", entry.fingerprint, path
                )
                return True

        return False

    def read(self, entry: CacheEntry) -> bytes:
        """Return the cached artifact bytes."""
        return entry.path.read_bytes()

    def write(self, entry: CacheEntry, data: bytes) -> None:
        """Replace the cached artifact with `data`.

        The file is written under a temporary name in the same directory and
        renamed into place, so concurrent readers never see a partial file.

        Raises:
            ConfigurationError: If the cache directory is missing or not writable.
        """
        self.ensure_writable()
        fd, tmp_name = tempfile.mkstemp(
            dir=self.directory, prefix=f".{entry.fingerprint}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            Path(tmp_name).replace(entry.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        log.debug("Cached %d bytes as %s", len(data), entry.path)

    def last_modified(self, entry: CacheEntry) -> int:
        """Modification time of the cached artifact, in whole seconds."""
        return int(entry.path.stat().st_mtime)

    def etag(self, entry: CacheEntry) -> str:
        """MD5 hex digest of the cached artifact's contents."""
        with entry.path.open("rb") as f:
            digest = hashlib.file_digest(
                f, lambda: hashlib.md5(usedforsecurity=False)
            )
        return digest.hexdigest()

    def ensure_writable(self) -> None:
        """Raise `ConfigurationError` unless artifacts can be written here."""
        if not self.directory.is_dir():
            raise ConfigurationError(
                f"Cache directory does not exist: {self.directory}"
            )
        if not os.access(self.directory, os.W_OK | os.X_OK):
            raise ConfigurationError(
                f"Cache directory is not writable: {self.directory}"
            )
