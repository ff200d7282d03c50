"""
Application-wide settings and environment configuration
"""

from __future__ import annotations

import os
from pathlib import Path

# Project paths
ACTIONQ_ROOT = Path(__file__).parent.parent

# Environment
ENV = os.getenv("ACTIONQ_ENV", "development")

# Default data directory (SQLite database lives here unless ACTIONQ_DB_PATH is set)
DATA_DIR = ACTIONQ_ROOT / "data"
