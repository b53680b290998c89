"""closeapps - Command-line entry point."""

import argparse
import logging
import os
import sys
from collections.abc import Sequence

from closeapps.bridge import CloseAppsError, MacOSBridge, ensure_supported_platform
from closeapps.config import Settings
from closeapps.models import RunConfig
from closeapps.terminator import Terminator

PROG = "close"

DESCRIPTION = (
    "Quit/kill visible GUI apps on macOS, with options for force, "
    "immediate kill, browser exclusion, and dry-run."
)

EPILOG = f"""\
Short flags can be chained, e.g.:
  {PROG} -fb   (same as -f -b)
  {PROG} -nF   (same as -n -F)
"""

EXIT_INTERRUPTED = 130


def expand_short_flags(tokens: Sequence[str]) -> list[str]:
    """
    Split grouped short flags into separate tokens.

    ``-fb`` becomes ``-f -b``. Long options, single short flags and
    everything from ``--`` onward pass through unchanged.
    """
    expanded: list[str] = []
    for index, token in enumerate(tokens):
        if token == "--":
            expanded.extend(tokens[index:])
            break
        if token.startswith("-") and not token.startswith("--") and len(token) > 2:
            expanded.extend(f"-{letter}" for letter in token[1:])
        else:
            expanded.append(token)
    return expanded


def leading_flags(tokens: Sequence[str]) -> list[str]:
    """Keep tokens up to ``--`` or the first word that is not a flag."""
    flags: list[str] = []
    for token in tokens:
        if token == "--" or not token.startswith("-"):
            break
        flags.append(token)
    return flags


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog=PROG,
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Show which GUI apps would be targeted; do not quit/kill.",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Ask apps to quit politely, then force-kill any that remain.",
    )
    parser.add_argument(
        "-F",
        "--immediate",
        action="store_true",
        help="Immediately SIGKILL targeted apps (skips graceful quit) except Finder, "
        "which is quit normally.",
    )
    parser.add_argument(
        "-b",
        "--no-browser",
        dest="exclude_browsers",
        action="store_true",
        help="Exclude common web browsers from being closed.",
    )
    return parser


def parse_args(argv: Sequence[str] | None = None) -> RunConfig:
    """
    Parse command-line arguments into a RunConfig.

    Exits 0 after printing help, or 2 on an unrecognized flag.
    """
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    namespace, unknown = parser.parse_known_args(leading_flags(expand_short_flags(argv)))
    if unknown:
        print(f"Unknown option: {unknown[0]}", file=sys.stderr)
        parser.print_help(sys.stderr)
        parser.exit(2)
    return RunConfig(
        dry_run=namespace.dry_run,
        force=namespace.force,
        immediate=namespace.immediate,
        exclude_browsers=namespace.exclude_browsers,
    )


def configure_logging() -> None:
    """Send diagnostics to stderr at the level named by CLOSEAPPS_LOG_LEVEL."""
    level = os.environ.get("CLOSEAPPS_LOG_LEVEL", "WARNING").strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        level = "WARNING"
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the close command."""
    config = parse_args(argv)
    configure_logging()

    try:
        ensure_supported_platform()
        settings = Settings.from_env()
        terminator = Terminator(MacOSBridge(settings.osascript_timeout), settings)
        terminator.run(config)
    except CloseAppsError as e:
        print(e, file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED

    return 0


if __name__ == "__main__":
    sys.exit(main())
