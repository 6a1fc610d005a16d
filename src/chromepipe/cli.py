"""Command-line interface for chromepipe."""

import argparse
import logging
import sys

from chromepipe import __version__
from chromepipe.arguments import shell_command
from chromepipe.config import ChromePipeConfig, load_config
from chromepipe.errors import ChromePipeError
from chromepipe.flags import DEBUGGING_PIPE_ARGS, FLAG_SETS
from chromepipe.launcher import warm_up
from chromepipe.version import chrome_version

log = logging.getLogger("chromepipe")


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level parser and its subcommands."""
    parser = argparse.ArgumentParser(
        prog="chromepipe",
        description="Inspect and prepare the headless browser used over the debugging pipe",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--chrome-executable", help="Browser executable name or path")
    parser.add_argument(
        "--chrome-args",
        help="Extra browser flags, appended verbatim to the command line",
    )
    parser.add_argument(
        "--no-sandbox",
        action="store_true",
        help="Disable the browser sandbox (needed when running as root)",
    )
    parser.add_argument(
        "--keep-stderr",
        action="store_true",
        help="Do not discard the browser's stderr",
    )
    parser.add_argument(
        "--flag-set",
        choices=sorted(FLAG_SETS),
        help="Baseline flag set to launch with",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    version_parser = subparsers.add_parser("version", help="Print the browser version")
    version_parser.add_argument(
        "--chrome-version",
        help='Skip probing and parse this string instead (e.g. "Google Chrome 120.0.6099.71")',
    )
    command_parser = subparsers.add_parser("command", help="Print the launch command line")
    command_parser.add_argument(
        "--dump-dom",
        metavar="URL",
        help="Print the one-shot --dump-dom command for URL instead of the pipe session",
    )
    subparsers.add_parser("warm-up", help="Run the browser once against a blank page")
    return parser


def _apply_overrides(config: ChromePipeConfig, args: argparse.Namespace) -> ChromePipeConfig:
    updates = {}
    if args.chrome_executable is not None:
        updates["chrome_executable"] = args.chrome_executable
    if args.chrome_args is not None:
        updates["chrome_args"] = args.chrome_args
    if args.no_sandbox:
        updates["no_sandbox"] = True
    if args.keep_stderr:
        updates["discard_stderr"] = False
    if args.flag_set is not None:
        updates["flag_set"] = args.flag_set
    if getattr(args, "chrome_version", None) is not None:
        updates["chrome_version"] = args.chrome_version
    if not updates:
        return config
    return ChromePipeConfig.from_mapping({**config.model_dump(), **updates})


def _run_command(args: argparse.Namespace, config: ChromePipeConfig) -> str:
    if args.command == "version":
        return chrome_version(config.chrome_version, config.chrome_executable)
    if args.command == "command":
        extra = ["--dump-dom", args.dump_dom] if args.dump_dom else list(DEBUGGING_PIPE_ARGS)
        return shell_command(config, extra)
    return warm_up(config)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(name)s %(levelname)s: %(message)s",
    )

    try:
        config = _apply_overrides(load_config(), args)
        output = _run_command(args, config)
    except ChromePipeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    log.debug("%s finished", args.command)
    if output:
        print(output.rstrip("\n"))
    return 0


def entrypoint() -> None:
    """Console script entrypoint."""
    raise SystemExit(main())
