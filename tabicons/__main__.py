"""Entry point for `python -m tabicons`."""

import sys


def main():
    from tabicons.app import run_app
    sys.exit(run_app())


if __name__ == "__main__":
    main()
