"""Project root entry point for translating the configured language files."""

import sys

from autotranslator.cli import main


if __name__ == "__main__":
    sys.exit(main())
