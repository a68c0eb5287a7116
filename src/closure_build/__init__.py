"""closure-build: a build-time front end for the Closure Compiler.

Compiles JavaScript and Closure Templates either with local compiler jars or
through the Closure Compiler web service, caches the result on disk and
serves it with HTTP cache validators.
"""

import importlib.metadata
import logging

from closure_build.cache import CacheStore, fingerprint
from closure_build.config import (
    FrozenConfig,
    ResolvedConfig,
    config_scope,
    resolve_config,
)
from closure_build.core import (
    ArtifactResponse,
    BuildRequest,
    BuildRequestBuilder,
    CompilationLevel,
    Failure,
    Result,
    Success,
    WarningLevel,
)
from closure_build.exceptions import (
    ClosureBuildError,
    ConfigurationError,
    NetworkError,
    PipelineError,
    ProtocolError,
    RemoteCompileError,
    SubprocessError,
)
from closure_build.pipeline import CompilerPipeline
from closure_build.server import ArtifactServer
from closure_build.telemetry import TelemetryContext, TelemetryReporter
from closure_build.transport import RawHttpClient

# Version handling
try:
    __version__ = importlib.metadata.version("closure-build")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Library logging stays silent unless the application configures handlers.
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Public API
__all__ = [  # noqa: RUF022
    # Entry points
    "ArtifactServer",
    "CompilerPipeline",
    "BuildRequestBuilder",
    # Configuration
    "resolve_config",
    "config_scope",
    "ResolvedConfig",
    "FrozenConfig",
    # Telemetry (extension points)
    "TelemetryContext",
    "TelemetryReporter",
    # Core types
    "BuildRequest",
    "CompilationLevel",
    "WarningLevel",
    "ArtifactResponse",
    "Result",
    "Success",
    "Failure",
    # Building blocks
    "CacheStore",
    "fingerprint",
    "RawHttpClient",
    # Exceptions
    "ClosureBuildError",
    "ConfigurationError",
    "SubprocessError",
    "NetworkError",
    "ProtocolError",
    "RemoteCompileError",
    "PipelineError",
]
