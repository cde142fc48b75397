"""Entry point for ``python -m tabular_i18n``."""

import sys

from tabular_i18n.cli import main

if __name__ == "__main__":
    sys.exit(main())
