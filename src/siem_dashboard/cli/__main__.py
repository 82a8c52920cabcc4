"""
Allow running triagectl as a module: python -m siem_dashboard.cli
"""

import sys
from .triagectl import main

if __name__ == "__main__":
    sys.exit(main())
