"""Entry point for python -m rssh."""

import sys


def main():
    from rssh.cli import main as cli_main

    sys.exit(cli_main())


if __name__ == "__main__":
    main()
