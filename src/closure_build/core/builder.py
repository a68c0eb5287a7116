"""Fluent construction of build requests.

`BuildRequestBuilder` accumulates options through chained calls and produces
an immutable `BuildRequest` at the point of use::

    request = (
        BuildRequestBuilder()
        .add("my-app.js")
        .add("popup.js")
        .add("popup.soy")
        .advanced_mode()
        .cache_dir("/tmp/js-cache/")
        .local_compile()
        .build()
    )
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Self

from closure_build.constants import DEFAULT_OUTPUT_WRAPPER
from closure_build.exceptions import ConfigurationError

from .sources import EXTERN_EXTENSIONS, SOURCE_EXTENSIONS, scan_directory
from .types import BuildRequest, CompilationLevel, WarningLevel


class BuildRequestBuilder:
    """Mutable accumulator for a `BuildRequest`.

    Sources are compiled in the order they are added. The builder may be
    reused; each call to `build()` returns an independent snapshot.
    """

    def __init__(self) -> None:  # noqa: D107
        self._sources: list[str] = []
        self._externs: list[str] = []
        self._compilation_level = CompilationLevel.WHITESPACE_ONLY
        self._warning_level = WarningLevel.DEFAULT
        self._use_closure_library = False
        self._pretty_print = False
        self._local_compile = False
        self._debug = True
        self._cache_dir: Path | None = None
        self._code_url_prefix: str | None = None
        self._output_wrapper: str | None = None

    # --- Inputs ---

    def add(self, path: str | os.PathLike[str]) -> Self:
        """Add a source file; files are concatenated in the order added."""
        self._sources.append(os.fspath(path))
        return self

    def add_dir(self, directory: str | os.PathLike[str]) -> Self:
        """Add every .js and .soy file in `directory` (not recursive)."""
        self._sources.extend(scan_directory(directory, SOURCE_EXTENSIONS))
        return self

    def add_externs(self, path: str | os.PathLike[str]) -> Self:
        """Add an externs file declaring symbols the compiler must keep."""
        self._externs.append(os.fspath(path))
        return self

    def add_externs_dir(self, directory: str | os.PathLike[str]) -> Self:
        """Add every .js file in `directory` as externs (not recursive)."""
        self._externs.extend(scan_directory(directory, EXTERN_EXTENSIONS))
        return self

    # --- Output handling ---

    def cache_dir(self, directory: str | os.PathLike[str]) -> Self:
        """Cache compiled output in `directory`.

        Without a cache directory every request invokes the compiler, which
        quickly runs into the compiler service's rate limits.
        """
        self._cache_dir = Path(directory)
        return self

    def use_closure_library(self) -> Self:
        """Let the compiler service resolve goog.require() calls."""
        self._use_closure_library = True
        return self

    def use_code_url(self, prefix: str) -> Self:
        """Have the compiler service fetch sources from `prefix` + path.

        Posting source text is subject to the service's request size limit;
        with a code URL prefix only the URLs are sent. Added paths must then
        be relative to `prefix`.
        """
        self._code_url_prefix = prefix
        return self

    def wrap_output(self, wrapper: str = DEFAULT_OUTPUT_WRAPPER) -> Self:
        """Wrap compiled output; `wrapper` must contain %output%."""
        self._output_wrapper = wrapper
        return self

    def pretty_print(self) -> Self:
        """Ask the compiler to pretty print its output."""
        self._pretty_print = True
        return self

    def local_compile(self) -> Self:
        """Compile with the local compiler jars instead of the service."""
        self._local_compile = True
        return self

    def hide_debug_info(self) -> Self:
        """Stop embedding statistics, warnings and errors in the output."""
        self._debug = False
        return self

    # --- Compilation level ---

    def whitespace_only(self) -> Self:  # noqa: D102
        self._compilation_level = CompilationLevel.WHITESPACE_ONLY
        return self

    def simple_mode(self) -> Self:  # noqa: D102
        self._compilation_level = CompilationLevel.SIMPLE
        return self

    def advanced_mode(self) -> Self:
        """Use advanced optimizations (recommended)."""
        self._compilation_level = CompilationLevel.ADVANCED
        return self

    def mode_from_code(self, code: str | None) -> Self:
        """Set the level from a one-letter code: 'w', 's' or 'a'.

        Typically fed from a query parameter by the caller.
        """
        self._compilation_level = CompilationLevel.from_code(code)
        return self

    # --- Warning level ---

    def quiet(self) -> Self:  # noqa: D102
        self._warning_level = WarningLevel.QUIET
        return self

    def default_warnings(self) -> Self:  # noqa: D102
        self._warning_level = WarningLevel.DEFAULT
        return self

    def verbose(self) -> Self:  # noqa: D102
        self._warning_level = WarningLevel.VERBOSE
        return self

    def build(self) -> BuildRequest:
        """Finalize the accumulated options.

        Raises:
            ConfigurationError: If no sources have been added.
        """
        if not self._sources:
            raise ConfigurationError("At least one source file must be added")
        return BuildRequest(
            sources=tuple(self._sources),
            externs=tuple(self._externs),
            compilation_level=self._compilation_level,
            warning_level=self._warning_level,
            use_closure_library=self._use_closure_library,
            pretty_print=self._pretty_print,
            local_compile=self._local_compile,
            debug=self._debug,
            cache_dir=self._cache_dir,
            code_url_prefix=self._code_url_prefix,
            output_wrapper=self._output_wrapper,
        )
