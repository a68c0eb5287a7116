"""Fakes and builders shared across test modules."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from closure_build.pipeline import ProcessOutput
from closure_build.transport import RawHttpResponse


@dataclass
class FakeRunner:
    """Process runner that records commands and answers from a script.

    `responses` maps the jar name (argv[2] basename) to the output to return.
    When no response is scripted, the script compiler concatenates the
    contents of its --js inputs, which is close enough to whitespace mode.
    """

    responses: dict[str, ProcessOutput] = field(default_factory=dict)
    calls: list[list[str]] = field(default_factory=list)

    async def __call__(self, argv: Sequence[str], *, timeout: float) -> ProcessOutput:  # noqa: ARG002
        argv = list(argv)
        self.calls.append(argv)
        jar = Path(argv[2]).name
        if jar in self.responses:
            return self.responses[jar]
        if jar == "SoyToJsSrcCompiler.jar":
            out = argv[argv.index("--outputPathFormat") + 1]
            Path(out).write_text("var soy_generated = 1;", encoding="utf-8")
            return ProcessOutput(returncode=0, stdout=b"", stderr=b"")
        inputs = [argv[i + 1] for i, arg in enumerate(argv) if arg == "--js"]
        code = b"".join(Path(p).read_bytes() for p in inputs if Path(p).exists())
        return ProcessOutput(returncode=0, stdout=code, stderr=b"")


@dataclass
class FakeHttpClient:
    """HTTP client that returns a canned response and records requests."""

    response: RawHttpResponse
    requests: list[dict] = field(default_factory=list)

    async def post(
        self,
        host: str,
        path: str,
        headers: Mapping[str, str] | None,
        body: bytes,
        *,
        port: int = 80,
    ) -> RawHttpResponse:
        self.requests.append(
            {
                "host": host,
                "path": path,
                "headers": dict(headers or {}),
                "body": body,
                "port": port,
            }
        )
        return self.response


def xml_reply(
    code: str = "var a=1;",
    *,
    warnings: str = "",
    errors: str = "",
    extra: str = "",
) -> bytes:
    """Build a compiler service XML reply."""
    return (
        "<compilationResult>"
        f"<compiledCode>{code}</compiledCode>"
        f"{warnings}{errors}"
        "<statistics>"
        "<originalSize>100</originalSize>"
        "<originalGzipSize>80</originalGzipSize>"
        "<compressedSize>50</compressedSize>"
        "<compressedGzipSize>40</compressedGzipSize>"
        "<compileTime>1</compileTime>"
        "</statistics>"
        f"{extra}"
        "</compilationResult>"
    ).encode()
