"""Entry point for ``python -m choreo``."""

import sys

from .cli import main

sys.exit(main())
