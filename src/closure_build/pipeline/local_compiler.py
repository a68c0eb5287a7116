"""Local compilation with the template compiler and Closure Compiler jars.

Template sources (.soy) are compiled to JavaScript first; the generated file
and the template runtime are then compiled together with the script sources.
Any output on stderr fails a stage, even when the exit status is zero.
"""

from __future__ import annotations

from collections.abc import Sequence
import logging
import os
from pathlib import Path
import tempfile
import uuid

from closure_build.config import FrozenConfig
from closure_build.constants import FALLBACK_ARTIFACT, TEMPLATE_OUTPUT_PREFIX
from closure_build.core.sources import is_template
from closure_build.core.types import BuildRequest, Failure, Result, Success
from closure_build.exceptions import (
    ClosureBuildError,
    ConfigurationError,
    SubprocessError,
)

from .diagnostics import CompileDiagnostic
from .process import ProcessOutput, ProcessRunner, run_process

log = logging.getLogger(__name__)


def partition_sources(sources: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split sources into (template sources, script sources), keeping order."""
    templates = [s for s in sources if is_template(s)]
    scripts = [s for s in sources if not is_template(s)]
    return templates, scripts


def build_template_compiler_command(
    config: FrozenConfig,
    template_sources: Sequence[str],
    output_path: str | os.PathLike[str],
) -> list[str]:
    """Arguments for the template compiler writing to `output_path`."""
    return [
        config.java_binary,
        "-jar",
        os.fspath(config.template_compiler_jar),
        "--outputPathFormat",
        os.fspath(output_path),
        *template_sources,
    ]


def build_script_compiler_command(
    config: FrozenConfig, request: BuildRequest, script_sources: Sequence[str]
) -> list[str]:
    """Arguments for the script compiler.

    Options come first, then one ``--js`` per source in compile order, then
    one ``--externs`` per externs file.
    """
    argv = [
        config.java_binary,
        "-jar",
        os.fspath(config.compiler_jar),
        "--compilation_level",
        request.compilation_level.value,
        "--warning_level",
        request.warning_level.value,
    ]
    if request.pretty_print:
        argv += ["--formatting", "pretty_print"]
    if request.output_wrapper:
        argv += ["--output_wrapper", request.output_wrapper]
    for src in script_sources:
        argv += ["--js", src]
    for ext in request.externs:
        argv += ["--externs", ext]
    return argv


class LocalCompileHandler:
    """Runs the local two-stage compile for a build request.

    Outside debug mode a failed compile yields a fallback artifact that only
    logs a generic console error, so a page loading the artifact keeps
    working. In debug mode the failure is returned with its diagnostic.
    """

    stage_name = "compile.local"

    def __init__(
        self, config: FrozenConfig, *, runner: ProcessRunner | None = None
    ) -> None:  # noqa: D107
        self.config = config
        self._run = runner or run_process

    async def handle(self, request: BuildRequest) -> Result[bytes, ClosureBuildError]:
        """Compile `request` locally and return the artifact bytes."""
        if not request.sources:
            return Failure(ConfigurationError("No sources to compile"))

        template_sources, script_sources = partition_sources(request.sources)
        generated: Path | None = None
        try:
            if template_sources:
                generated = self._template_output_path(request)
                await self._run_checked(
                    "Template compiler",
                    build_template_compiler_command(
                        self.config, template_sources, generated
                    ),
                )
                script_sources += [
                    os.fspath(self.config.template_runtime),
                    os.fspath(generated),
                ]

            output = await self._run_checked(
                "Script compiler",
                build_script_compiler_command(self.config, request, script_sources),
            )
        except SubprocessError as e:
            if request.debug:
                return Failure(e)
            return Success(FALLBACK_ARTIFACT)
        finally:
            if generated is not None:
                generated.unlink(missing_ok=True)

        return Success(output.stdout)

    def _template_output_path(self, request: BuildRequest) -> Path:
        # Unique per run: several builds may share the cache directory.
        directory = request.cache_dir or Path(tempfile.gettempdir())
        return directory / f"{TEMPLATE_OUTPUT_PREFIX}{uuid.uuid4().hex}.js"

    async def _run_checked(self, name: str, argv: list[str]) -> ProcessOutput:
        try:
            output = await self._run(argv, timeout=self.config.subprocess_timeout)
        except SubprocessError as e:
            diagnostic = CompileDiagnostic(command=tuple(argv), stderr_lines=(str(e),))
            log.error("%s could not run: %s\n%s", name, e, diagnostic.command_line)
            raise SubprocessError(str(e), diagnostic) from e

        if output.stderr or output.returncode != 0:
            diagnostic = CompileDiagnostic.from_output(
                argv, output.stderr, output.returncode
            )
            log.error(
                "%s failed (exit %s): %s\n%s",
                name,
                output.returncode,
                diagnostic.command_line,
                output.stderr.decode("utf-8", errors="replace"),
            )
            raise SubprocessError(
                f"{name} failed with exit status {output.returncode}", diagnostic
            )
        return output
