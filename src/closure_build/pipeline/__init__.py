"""Compilation pipeline: local subprocess compile and remote service compile."""

from .base import CompileHandler
from .compiler import CompileResult, CompilerPipeline
from .diagnostics import CompileDiagnostic, compose_artifact, escape_js_string
from .local_compiler import (
    LocalCompileHandler,
    build_script_compiler_command,
    build_template_compiler_command,
    partition_sources,
)
from .process import ProcessOutput, ProcessRunner, run_process
from .remote_compiler import (
    RemoteCompileHandler,
    build_parameters,
    encode_parameters,
    extract_report,
)

__all__ = [  # noqa: RUF022
    "CompilerPipeline",
    "CompileResult",
    "CompileHandler",
    "LocalCompileHandler",
    "RemoteCompileHandler",
    "CompileDiagnostic",
    "ProcessOutput",
    "ProcessRunner",
    "run_process",
    "partition_sources",
    "build_script_compiler_command",
    "build_template_compiler_command",
    "build_parameters",
    "encode_parameters",
    "extract_report",
    "compose_artifact",
    "escape_js_string",
]
