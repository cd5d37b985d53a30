"""
Command-line driver for gpconfig.

Usage:
    python -m gpconfig defaults.cfg debug.cfg
    python -m gpconfig defaults.cfg --get database.dbname
    python -m gpconfig defaults.cfg --section database
    python -m gpconfig --help

Files are loaded in order; later files override options of earlier ones.
"""

import argparse
import sys

from . import __version__
from .configuration import Configuration
from .const import APP_NAME
from .errors import ConfigError
from .logging import LogConfig, get_logger, setup_logging
from .writer import format_value


logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Load, merge and query configuration files",
    )

    parser.add_argument(
        "files",
        nargs="+",
        metavar="FILE",
        help="Configuration files, loaded in order (later files override earlier ones)",
    )

    query = parser.add_mutually_exclusive_group()
    query.add_argument(
        "--get",
        metavar="PATH",
        help="Print a single option, e.g. database.dbname",
    )
    query.add_argument(
        "--section",
        metavar="NAME",
        help="Print the options of one section",
    )

    parser.add_argument(
        "--strict",
        action="store_true",
        help="Reject options defined twice in the same file",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging (INFO level)",
    )

    parser.add_argument(
        "-d", "--debug",
        action="store_true",
        help="Enable debug logging (DEBUG level)",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet mode (only errors)",
    )

    parser.add_argument(
        "--log-file",
        metavar="PATH",
        help="Write logs to file",
    )

    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    log_config = LogConfig()

    if args.debug:
        log_config.console_level = "debug"
    elif args.verbose:
        log_config.console_level = "info"
    elif args.quiet:
        log_config.console_level = "error"

    if args.no_color:
        log_config.console_colors = False

    if args.log_file:
        log_config.file_enabled = True
        log_config.file_path = args.log_file

    setup_logging(log_config)

    config = Configuration(strict=args.strict)

    try:
        for path in args.files:
            config.load_file(path)
            logger.info("Loaded %s", path)

        if args.get:
            print(format_value(config.get(args.get)))
        elif args.section is not None:
            section = config.section(args.section)
            if section is None:
                print(f"Unknown section: {args.section}", file=sys.stderr)
                return 1
            for name, option in section.options.items():
                print(f"{name} = {format_value(option.value)}")
        else:
            print(config.dumps(), end="")

    except ConfigError as e:
        logger.debug("Configuration error", exc_info=True)
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
