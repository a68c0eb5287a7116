"""
Project-wide constants for closure-build
"""  # noqa: D200, D212, D415

# ==============================================================================
# Compiler Service
# ==============================================================================

DEFAULT_SERVICE_HOST = "closure-compiler.appspot.com"
DEFAULT_SERVICE_PORT = 80
DEFAULT_SERVICE_PATH = "/compile"

# Output selectors, in the order the service expects them.
OUTPUT_INFO_FIELDS = ("compiled_code", "statistics", "warnings", "errors")

# Parameter names the service accepts more than once.
REPEATABLE_PARAMETERS = ("code_url", "output_info")

# ==============================================================================
# Timeouts and Limits
# ==============================================================================

SUBPROCESS_TIMEOUT = 120.0  # seconds
NETWORK_TIMEOUT = 30.0  # seconds
READ_BUFFER_SIZE = 4096  # bytes per socket read
_MB = 1024 * 1024
MAX_RESPONSE_BYTES = 16 * _MB

# ==============================================================================
# Local Toolchain
# ==============================================================================

DEFAULT_JAVA_BINARY = "java"
DEFAULT_COMPILER_JAR = "lib/third-party/compiler.jar"
DEFAULT_TEMPLATE_COMPILER_JAR = "lib/third-party/SoyToJsSrcCompiler.jar"
DEFAULT_TEMPLATE_RUNTIME = "lib/third-party/soyutils.js"

SCRIPT_EXTENSION = "js"
TEMPLATE_EXTENSION = "soy"
TEMPLATE_OUTPUT_PREFIX = "soy-"

# ==============================================================================
# Artifacts
# ==============================================================================

CACHE_FILE_SUFFIX = ".js"
CONTENT_TYPE = "text/javascript"
OUTPUT_PLACEHOLDER = "%output%"
DEFAULT_OUTPUT_WRAPPER = "(function(){%output%})();"

# Served instead of a broken compile when debug info is hidden.
FALLBACK_ARTIFACT = b"window.console.error('Unexpected error');"
