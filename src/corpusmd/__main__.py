"""Allow ``python -m corpusmd``."""

import sys

from corpusmd.cli import main

if __name__ == "__main__":
    sys.exit(main())
