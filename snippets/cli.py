"""CLI entrypoint for the snippets tool."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Mapping

from .config import (
    DEFAULT_SAMPLE_TYPE,
    SAMPLE_TYPES,
    ConfigError,
    build_invocation_context,
    load_config,
    locate_config,
)
from .generator import DartFormatter, SnippetGenerator
from .git.channel import ChannelResolver
from .identity import MissingIdentityError
from .logging import configure_logging, get_logger
from .orchestrator import Orchestrator

_TYPE_HELP = (
    "The type of snippet to produce. "
    "'dartpad': a code sample application for embedding in DartPad. "
    "'sample': a code sample application. "
    "'snippet': a nicely formatted piece of sample code, not embedded in an application."
)


def _build_parser(environ: Mapping[str, str] | None = None) -> argparse.ArgumentParser:
    environ = os.environ if environ is None else environ
    parser = argparse.ArgumentParser(
        prog="snippets",
        description=(
            "Generate sample code and HTML previews from a dartdoc {@tool} block, "
            "writing the result to a deterministic output location."
        ),
    )
    parser.add_argument(
        "--type",
        default=DEFAULT_SAMPLE_TYPE,
        choices=SAMPLE_TYPES,
        help=_TYPE_HELP,
    )
    parser.add_argument(
        "--template",
        help="Deprecated and ignored. Kept so older pipelines keep working.",
    )
    parser.add_argument(
        "--output",
        help=(
            "The output name for the generated sample application. Overrides the naming "
            "generated by the --package/--library/--element arguments. Metadata will be "
            "written alongside in a .json file. The basename of this argument is used as "
            "the ID. If this is a relative path, it is placed under --output-directory."
        ),
    )
    parser.add_argument(
        "--output-directory",
        default=None,
        help="The output path for the generated sample application (defaults to '.').",
    )
    parser.add_argument(
        "--input",
        default=environ.get("INPUT"),
        help="The input file containing the sample code to inject (env: INPUT).",
    )
    parser.add_argument(
        "--package",
        default=environ.get("PACKAGE_NAME"),
        help="The name of the package that this sample belongs to (env: PACKAGE_NAME).",
    )
    parser.add_argument(
        "--library",
        default=environ.get("LIBRARY_NAME"),
        help="The name of the library that this sample belongs to (env: LIBRARY_NAME).",
    )
    parser.add_argument(
        "--element",
        default=environ.get("ELEMENT_NAME"),
        help="The name of the element that this sample belongs to (env: ELEMENT_NAME).",
    )
    parser.add_argument(
        "--serial",
        default=environ.get("INVOCATION_INDEX"),
        help="A unique serial number for this snippet tool invocation (env: INVOCATION_INDEX).",
    )
    parser.add_argument(
        "--format-output",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Apply the Dart formatter to the extracted sample code (default: on).",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a .snippets.yml file or its directory (env: SNIPPETS_CONFIG).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log records, with timestamps, to this file.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    return parser


def main(
    argv: list[str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    orchestrator: Orchestrator | None = None,
) -> None:
    """CLI entrypoint for the snippets tool."""
    environ = os.environ if environ is None else environ
    parser = _build_parser(environ)
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    logger = get_logger("cli")

    if args.template is not None:
        logger.warning("--template is no longer used and will be ignored")

    if args.input is None:
        parser.print_help(sys.stderr)
        parser.exit(
            1,
            "The --input option must be specified, either on the command line, "
            "or in the INPUT environment variable.\n",
        )

    input_path = Path(args.input)
    if not input_path.is_file():
        parser.exit(1, f"The input file {input_path} does not exist.\n")

    try:
        config = load_config(locate_config(args.config, environ))
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    ctx = build_invocation_context(args, environ=environ, config=config)

    if orchestrator is None:
        orchestrator = Orchestrator(
            generator=SnippetGenerator(
                formatter=DartFormatter(config.formatter.executable),
                templates_dir=config.templates_dir,
            ),
            channel_resolver=ChannelResolver(environ),
            max_attempts=config.channel.max_attempts,
        )

    try:
        orchestrator.run(ctx)
    except MissingIdentityError as exc:
        parser.exit(1, f"{exc}\n")


if __name__ == "__main__":
    main(sys.argv[1:])
