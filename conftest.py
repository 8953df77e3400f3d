"""Pytest configuration.

Ensures the local package imports without installation and keeps the
Flask host's log file out of the working tree during test runs.
"""

import os
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

os.environ.setdefault("LOG_FILE", os.devnull)
