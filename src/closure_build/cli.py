"""Command line front door.

Usage:
    closure-build app.js popup.soy --mode advanced --local --cache-dir build/
    python -m closure_build --dir static/js --output app.min.js
"""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
import logging
from pathlib import Path
import sys

from closure_build.config import ConfigFileError, resolve_frozen_config
from closure_build.constants import DEFAULT_OUTPUT_WRAPPER
from closure_build.core import BuildRequestBuilder
from closure_build.exceptions import ClosureBuildError, SubprocessError
from closure_build.server import ArtifactServer
from closure_build.telemetry import InMemoryReporter, TelemetryContext

_MODES = {"whitespace": "w", "simple": "s", "advanced": "a"}


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the ``closure-build`` command."""
    parser = argparse.ArgumentParser(
        description="Compile JavaScript and Soy sources with Closure Compiler",
        prog="closure-build",
    )
    parser.add_argument("sources", nargs="*", help="Source files, in compile order")
    parser.add_argument(
        "--dir",
        action="append",
        default=[],
        metavar="DIR",
        help="Add every .js and .soy file in DIR (repeatable)",
    )
    parser.add_argument(
        "--externs", action="append", default=[], metavar="FILE", help="Externs file"
    )
    parser.add_argument(
        "--externs-dir",
        action="append",
        default=[],
        metavar="DIR",
        help="Add every .js file in DIR as externs",
    )
    parser.add_argument("--mode", choices=sorted(_MODES), default="whitespace")
    parser.add_argument(
        "--warnings", choices=["quiet", "default", "verbose"], default="default"
    )
    parser.add_argument("--pretty-print", action="store_true")
    parser.add_argument("--use-closure-library", action="store_true")
    parser.add_argument(
        "--local",
        action="store_true",
        help="Compile with the local jars instead of the web service",
    )
    parser.add_argument(
        "--hide-debug-info",
        action="store_true",
        help="Omit stats and messages from the output",
    )
    parser.add_argument("--cache-dir", metavar="DIR", help="Cache compiled output")
    parser.add_argument(
        "--code-url",
        metavar="PREFIX",
        help="Let the service fetch sources from PREFIX + path",
    )
    parser.add_argument(
        "--wrap-output",
        nargs="?",
        const=DEFAULT_OUTPUT_WRAPPER,
        metavar="TEMPLATE",
        help="Wrap the output; TEMPLATE must contain %%output%%",
    )
    parser.add_argument(
        "--output", metavar="FILE", help="Write to FILE instead of stdout"
    )
    parser.add_argument("--profile", help="Configuration profile to use")
    return parser


def builder_from_args(args: argparse.Namespace) -> BuildRequestBuilder:
    """Translate parsed arguments into a request builder."""
    builder = BuildRequestBuilder()
    for src in args.sources:
        builder.add(src)
    for directory in args.dir:
        builder.add_dir(directory)
    for ext in args.externs:
        builder.add_externs(ext)
    for directory in args.externs_dir:
        builder.add_externs_dir(directory)

    builder.mode_from_code(_MODES[args.mode])
    match args.warnings:
        case "quiet":
            builder.quiet()
        case "verbose":
            builder.verbose()
        case _:
            builder.default_warnings()

    if args.pretty_print:
        builder.pretty_print()
    if args.use_closure_library:
        builder.use_closure_library()
    if args.local:
        builder.local_compile()
    if args.hide_debug_info:
        builder.hide_debug_info()
    if args.cache_dir:
        builder.cache_dir(args.cache_dir)
    if args.code_url:
        builder.use_code_url(args.code_url)
    if args.wrap_output:
        builder.wrap_output(args.wrap_output)
    return builder


async def _run(args: argparse.Namespace, reporter: InMemoryReporter) -> bytes:
    request = builder_from_args(args).build()
    config = resolve_frozen_config(profile=args.profile)
    server = ArtifactServer(config, telemetry=TelemetryContext(reporter))
    response = await server.write(request)
    return response.body


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point; exits with status 1 when the build fails."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s"
    )

    # Only filled when CLOSURE_BUILD_TELEMETRY=1
    reporter = InMemoryReporter()
    try:
        artifact = asyncio.run(_run(args, reporter))
    except (ClosureBuildError, ConfigFileError, ValueError) as e:
        cause = e.__cause__
        if isinstance(cause, SubprocessError) and cause.diagnostic is not None:
            diagnostic = cause.diagnostic
            sys.stderr.write(
                "\n".join((diagnostic.command_line, *diagnostic.stderr_lines)) + "\n"
            )
            # The page loading --output reports the errors in its console
            if args.output:
                Path(args.output).write_text(diagnostic.to_script(), encoding="utf-8")
        parser.exit(1, f"{parser.prog}: error: {e}\n")
    finally:
        if reporter.timings:
            sys.stderr.write(reporter.get_report() + "\n")

    if args.output:
        Path(args.output).write_bytes(artifact)
    else:
        sys.stdout.buffer.write(artifact)
        sys.stdout.flush()


if __name__ == "__main__":
    main()
