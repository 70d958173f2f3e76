"""Command-line interface for Runtime Mirror.

Usage:
    runtime-mirror SOURCE TARGET FILTERS [BLACKLIST] [options]

SOURCE and TARGET are resolved against the version-control root of the
current directory, FILTERS and BLACKLIST are semicolon-separated lists.
"""

import argparse
import logging
import logging.handlers
import sys

from runtime_mirror import __app_name__, __version__
from runtime_mirror.config import (
    DEFAULT_QUEUE_SIZE,
    DEFAULT_RETRY_COUNT,
    DEFAULT_RETRY_DELAY,
    WATCH_PER_DIRECTORY,
    WATCH_RECURSIVE,
    ConfigurationError,
    MirrorConfig,
    PreconditionError,
    build_config,
    resolve_root,
)
from runtime_mirror.platform_utils import get_log_path
from runtime_mirror.service import Supervisor, run_foreground

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 1

_LOG_MAX_BYTES = 10 * 1024 * 1024
_LOG_BACKUP_COUNT = 3

USAGE_LINES = (
    "First argument: source project, relative to repository root, example: 'src/SourceProject/'",
    "Second argument: target project, relative to repository root, example: 'src/TargetProject/'",
    "Third argument: filters, semicolon separated list of extensions, example: *.cshtml;*.pdf",
    "Fourth argument: optional black-listed directory names, semicolon separated, example: bin;obj;node_modules",
)

# (attribute, message printed when it is missing)
_REQUIRED = (
    ("source", "Missing first argument source project, relative to repository root"),
    ("target", "Missing second argument target project, relative to repository root"),
    ("filters", "Missing third argument filter, semicolon separated list of extensions, example: *.cshtml;*.pdf"),
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="runtime-mirror",
        description="Mirror files matching glob patterns from one directory tree to another.",
    )
    # Positionals are optional here so missing ones get our own message and exit code
    parser.add_argument("source", nargs="?", help="source directory, relative to the repository root")
    parser.add_argument("target", nargs="?", help="target directory, relative to the repository root")
    parser.add_argument(
        "filters", nargs="?", help="semicolon separated globs, e.g. '*.json;*.pdf' ('*.*' matches every file)"
    )
    parser.add_argument("blacklist", nargs="?", help="extra black-listed directory names, e.g. 'dist;.git'")
    parser.add_argument("--root", help="resolve SOURCE and TARGET against this directory instead of the VCS root")
    parser.add_argument("--exclude-ext", dest="exclude_ext", help="extra black-listed file extensions, e.g. '.bak;.swp'")
    parser.add_argument(
        "--per-directory",
        dest="watch_mode",
        action="store_const",
        const=WATCH_PER_DIRECTORY,
        default=WATCH_RECURSIVE,
        help="install one watch per existing directory instead of one recursive watch",
    )
    parser.add_argument("--retries", type=int, default=DEFAULT_RETRY_COUNT, help="retries for a failed copy/delete")
    parser.add_argument("--retry-delay", type=float, default=DEFAULT_RETRY_DELAY, help="seconds between retries")
    parser.add_argument("--queue-size", type=int, default=DEFAULT_QUEUE_SIZE, help="pending events per pattern")
    parser.add_argument("--log-level", default="INFO", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument(
        "--log-file",
        nargs="?",
        const="",
        default=None,
        help="also write a rotating log file (default location if no path is given)",
    )
    parser.add_argument("--version", action="version", version=f"{__app_name__} {__version__}")
    return parser


def validate(args: argparse.Namespace) -> int:
    """Print the usage lines and return a non-zero exit code if an argument is missing."""
    for line in USAGE_LINES:
        print(line)
    for attr, message in _REQUIRED:
        if not getattr(args, attr):
            print(message)
            return EXIT_USAGE
    return EXIT_OK


def setup_logging(level_name: str = "INFO", log_file: str | None = None) -> None:
    """Send log records to stdout and, optionally, to a rotating log file."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    sh = logging.StreamHandler(sys.stdout)
    sh.setLevel(level)
    sh.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(sh)

    if log_file is not None:
        path = log_file or str(get_log_path())
        fh = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=_LOG_MAX_BYTES,
            backupCount=_LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        root_logger.addHandler(fh)


def print_banner(config: MirrorConfig) -> None:
    """Echo the resolved directories and the effective filter sets."""
    print(f"Using source directory '{config.source_root}'")
    print(f"Using target directory '{config.target_root}'")

    sections = (
        ("[Black-listed]", sorted(config.blacklisted_dir_names)),
        ("[Filters]", config.patterns),
        ("[Black-listed file extensions]", sorted(config.blacklisted_extensions)),
    )
    for title, items in sections:
        print()
        print(title)
        for item in items:
            print(f"\t* '{item}'")


def main(argv: list[str] | None = None) -> int:
    """Parse *argv*, start mirroring and return the process exit code."""
    args = build_parser().parse_args(argv)

    code = validate(args)
    if code != EXIT_OK:
        return code

    setup_logging(args.log_level, args.log_file)
    logger.debug("%s %s starting.", __app_name__, __version__)

    try:
        config = build_config(
            args.source,
            args.target,
            args.filters,
            args.blacklist,
            root=resolve_root(args.root),
            excluded_extensions=args.exclude_ext,
            watch_mode=args.watch_mode,
            queue_size=args.queue_size,
            retry_count=args.retries,
            retry_delay=args.retry_delay,
        )
    except ConfigurationError as exc:
        print(exc)
        return EXIT_USAGE

    supervisor = Supervisor(config)
    try:
        supervisor.check_preconditions()
    except PreconditionError as exc:
        print(exc)
        return EXIT_OK

    print_banner(config)
    run_foreground(supervisor)

    return EXIT_OK
