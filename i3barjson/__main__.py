"""Entry point for the status generator when run as a module."""

import sys

from .generator import main

if __name__ == "__main__":
    sys.exit(main())
