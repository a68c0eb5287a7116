"""Rendering of compiler diagnostics into JavaScript.

Everything here ends up inside single-quoted JavaScript string literals in a
served artifact, so every interpolated value goes through `escape_js_string`.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
import shlex

from closure_build.core.types import CompilerMessage, CompilerReport

_JS_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\0": "\\0",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}

_CRLF = "\r\n"


def escape_js_string(value: object) -> str:
    """Escape `value` for embedding in a quoted JavaScript string literal."""
    escaped = "".join(_JS_ESCAPES.get(ch, ch) for ch in str(value))
    # Keep a literal from closing an enclosing <script> element.
    return escaped.replace("</", "<\\/")


def console_call(level: str, message: str) -> str:
    """Render ``window.console.<level>('<message>');`` with `message` escaped."""
    return f"window.console.{level}('{escape_js_string(message)}');"


@dataclass(frozen=True, slots=True)
class CompileDiagnostic:
    """What a failed compiler process left behind."""

    command: tuple[str, ...]
    stderr_lines: tuple[str, ...]
    returncode: int | None = None

    @classmethod
    def from_output(
        cls, command: Sequence[str], stderr: bytes, returncode: int | None
    ) -> CompileDiagnostic:
        """Build a diagnostic from raw process output."""
        text = stderr.decode("utf-8", errors="replace")
        return cls(
            command=tuple(command),
            stderr_lines=tuple(text.splitlines()),
            returncode=returncode,
        )

    @property
    def command_line(self) -> str:  # noqa: D102
        return shlex.join(self.command)

    def to_script(self) -> str:
        """One ``console.error`` call per non-blank stderr line."""
        return "".join(
            f"{_CRLF}{console_call('error', line.strip())}"
            for line in self.stderr_lines
            if line.strip()
        )


def render_messages(messages: Iterable[CompilerMessage], level: str) -> str:
    """Render compiler warnings or errors as console calls, one per line."""
    out = []
    for m in messages:
        # Escaped as a unit; the \n separators are JavaScript escapes.
        body = "\\n".join(
            (
                f"{escape_js_string(m.type)}: {escape_js_string(m.description)}",
                f"Line: {escape_js_string(m.lineno)}",
                f"Char: {escape_js_string(m.charno)}",
                f"Line: {escape_js_string(m.line)}",
            )
        )
        out.append(f"window.console.{level}('{body}');{_CRLF}")
    return "".join(out)


def render_debug_preamble(report: CompilerReport, generated_at: datetime) -> str:
    """Render the console-guarded block with statistics, errors and warnings."""
    stats = report.statistics
    generated = generated_at.strftime("%Y/%m/%d %H:%M:%S %Z")
    stats_text = "\\n".join(
        (
            "Closure Compiler Stats:",
            "-----------------------",
            f"Original Size: {escape_js_string(stats.original_size)}",
            f"Original Gzip Size: {escape_js_string(stats.original_gzip_size)}",
            f"Compressed Size: {escape_js_string(stats.compressed_size)}",
            f"Compressed Gzip Size: {escape_js_string(stats.compressed_gzip_size)}",
            f"Compile Time: {escape_js_string(stats.compile_time)}",
            f"Generated: {escape_js_string(generated)}",
        )
    )
    return (
        f"if(window.console&&window.console.log){{{_CRLF}"
        f"window.console.log('{stats_text}');{_CRLF}"
        f"{render_messages(report.errors, 'error')}"
        f"{render_messages(report.warnings, 'warn')}"
        f"}}{_CRLF}{_CRLF}"
    )


def compose_artifact(
    report: CompilerReport, *, debug: bool, generated_at: datetime
) -> str:
    """Return the compiled code, preceded by the debug block in debug mode."""
    if not debug:
        return report.compiled_code
    return render_debug_preamble(report, generated_at) + report.compiled_code
