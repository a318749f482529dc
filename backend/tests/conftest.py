# ruff: noqa: INP001
"""Pytest configuration shared across backend tests."""

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings are read at import time; pin deterministic defaults regardless of
# the shell env so no test touches a database file on disk.
os.environ["ENVIRONMENT"] = "test"
os.environ["TASK_STORE_BACKEND"] = "memory"
os.environ["DB_AUTO_MIGRATE"] = "false"
os.environ["REJECT_PAST_DEADLINES"] = "true"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
