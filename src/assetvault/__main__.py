"""Entry point for python -m assetvault."""

import sys

from assetvault.cli import main

sys.exit(main())
