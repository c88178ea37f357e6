"""
Headhunter snapshot engine - python -m headhunter entry point.
"""

import sys

from headhunter.cli import main

if __name__ == "__main__":
    sys.exit(main())
