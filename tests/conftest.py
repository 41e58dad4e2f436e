"""Pytest configuration for the choreo test suite."""

import sys
from pathlib import Path

# Add the repository root to path so tests run without installing the package
sys.path.insert(0, str(Path(__file__).parent.parent))
