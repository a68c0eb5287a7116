"""BuildRequest validation, the fluent builder and directory scanning."""

from pathlib import Path

import pytest

from closure_build.core import (
    BuildRequest,
    BuildRequestBuilder,
    CompilationLevel,
    WarningLevel,
)
from closure_build.core.sources import is_template, scan_directory
from closure_build.exceptions import ConfigurationError


@pytest.mark.unit
class TestBuildRequest:
    def test_defaults(self):
        request = BuildRequest(sources=("a.js",))
        assert request.compilation_level is CompilationLevel.WHITESPACE_ONLY
        assert request.warning_level is WarningLevel.DEFAULT
        assert request.debug is True
        assert not request.caching_enabled

    def test_is_immutable(self):
        request = BuildRequest(sources=("a.js",))
        with pytest.raises(AttributeError):
            request.debug = False  # type: ignore[misc]

    def test_sources_must_be_a_tuple(self):
        with pytest.raises(TypeError, match="sources"):
            BuildRequest(sources=["a.js"])  # type: ignore[arg-type]

    def test_output_wrapper_requires_placeholder(self):
        with pytest.raises(ValueError, match="%output%"):
            BuildRequest(sources=("a.js",), output_wrapper="(function(){})();")

    @pytest.mark.parametrize(
        ("code", "level"),
        [
            ("w", CompilationLevel.WHITESPACE_ONLY),
            ("s", CompilationLevel.SIMPLE),
            ("a", CompilationLevel.ADVANCED),
            ("x", CompilationLevel.WHITESPACE_ONLY),
            (None, CompilationLevel.WHITESPACE_ONLY),
        ],
    )
    def test_level_from_code(self, code, level):
        assert CompilationLevel.from_code(code) is level


@pytest.mark.unit
class TestBuilder:
    def test_accumulates_in_order(self, tmp_path):
        request = (
            BuildRequestBuilder()
            .add("b.js")
            .add(Path("a.js"))
            .add("view.soy")
            .add_externs("ext.js")
            .advanced_mode()
            .verbose()
            .pretty_print()
            .use_closure_library()
            .local_compile()
            .hide_debug_info()
            .cache_dir(tmp_path)
            .use_code_url("http://static/")
            .wrap_output()
            .build()
        )
        assert request.sources == ("b.js", "a.js", "view.soy")
        assert request.externs == ("ext.js",)
        assert request.compilation_level is CompilationLevel.ADVANCED
        assert request.warning_level is WarningLevel.VERBOSE
        assert request.pretty_print
        assert request.use_closure_library
        assert request.local_compile
        assert not request.debug
        assert request.cache_dir == tmp_path
        assert request.code_url_prefix == "http://static/"
        assert request.output_wrapper == "(function(){%output%})();"

    def test_build_snapshots_are_independent(self):
        builder = BuildRequestBuilder().add("a.js")
        first = builder.build()
        second = builder.add("b.js").build()
        assert first.sources == ("a.js",)
        assert second.sources == ("a.js", "b.js")

    def test_build_without_sources_raises(self):
        with pytest.raises(ConfigurationError):
            BuildRequestBuilder().simple_mode().build()

    def test_add_dir_and_externs_dir(self, tmp_path):
        for name in ("b.js", "a.soy", "._a.js", "notes.txt"):
            (tmp_path / name).write_text("", encoding="utf-8")
        (tmp_path / "nested").mkdir()
        (tmp_path / "nested" / "c.js").write_text("", encoding="utf-8")

        request = (
            BuildRequestBuilder()
            .add_dir(tmp_path)
            .add_externs_dir(tmp_path)
            .build()
        )
        assert [Path(s).name for s in request.sources] == ["a.soy", "b.js"]
        assert [Path(s).name for s in request.externs] == ["b.js"]


@pytest.mark.unit
class TestSources:
    def test_is_template(self):
        assert is_template("views/popup.soy")
        assert not is_template("popup.js")
        assert not is_template("soy")

    def test_scan_missing_directory_raises(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Not a directory"):
            scan_directory(tmp_path / "missing")

    def test_scan_is_sorted_by_name(self, tmp_path):
        for name in ("z.js", "m.js", "a.js"):
            (tmp_path / name).write_text("", encoding="utf-8")
        names = [Path(p).name for p in scan_directory(tmp_path)]
        assert names == ["a.js", "m.js", "z.js"]
