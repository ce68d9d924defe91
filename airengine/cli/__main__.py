"""Allow ``python -m airengine.cli``."""

import sys

from . import main

if __name__ == "__main__":
    sys.exit(main())
