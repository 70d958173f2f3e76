"""Entry point for Runtime Mirror.

Usage:
    python -m runtime_mirror SOURCE TARGET FILTERS [BLACKLIST] [options]
"""

import sys


def main() -> None:
    """Run the command-line interface and exit with its status."""
    from runtime_mirror.cli import main as cli_main

    sys.exit(cli_main())


if __name__ == "__main__":
    main()
