"""
Module execution entry point.

Allows running with: python -m ptt_cli
"""

import sys
from ptt_cli.main import main

if __name__ == "__main__":
    sys.exit(main())
