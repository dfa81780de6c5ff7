"""
Allow running as: python -m option_calculator.run
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
