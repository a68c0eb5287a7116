"""
Source discovery for directories of scripts and templates
"""  # noqa: D200, D212, D415

from __future__ import annotations

import logging
from pathlib import Path

from closure_build.constants import SCRIPT_EXTENSION, TEMPLATE_EXTENSION
from closure_build.exceptions import ConfigurationError

log = logging.getLogger(__name__)

SOURCE_EXTENSIONS = frozenset({SCRIPT_EXTENSION, TEMPLATE_EXTENSION})
EXTERN_EXTENSIONS = frozenset({SCRIPT_EXTENSION})

# Resource-fork and editor backup files
_HIDDEN_PREFIX = "._"


def file_extension(path: str | Path) -> str:
    """Return the extension of `path` without the dot, or ''."""
    return Path(path).suffix.lstrip(".")


def is_template(path: str | Path) -> bool:
    """True when `path` names a template source."""
    return file_extension(path) == TEMPLATE_EXTENSION


def scan_directory(
    directory: str | Path, extensions: frozenset[str] = SOURCE_EXTENSIONS
) -> list[str]:
    """List files in `directory` whose extension is in `extensions`.

    The scan is not recursive. Names starting with "._" are skipped. Results
    are sorted by name so that the compile order is reproducible.

    Raises:
        ConfigurationError: If `directory` does not exist or is not a directory.
    """
    root = Path(directory)
    if not root.is_dir():
        raise ConfigurationError(f"Not a directory: {root}")

    found = [
        str(entry)
        for entry in sorted(root.iterdir(), key=lambda p: p.name)
        if entry.is_file()
        and not entry.name.startswith(_HIDDEN_PREFIX)
        and file_extension(entry) in extensions
    ]
    log.debug("Scanned %s: %d matching files", root, len(found))
    return found
