"""
Environment loader for ActionQ entry points.

Entry points call ensure_env_loaded() before building senders so SMTP_* and
webhook settings from a project .env file are visible to SmtpConfig.from_env().

Usage:
    from actionq.infrastructure.env import ensure_env_loaded

    ensure_env_loaded()
"""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv

from actionq.observability.logging import get_logger

logger = get_logger(__name__)

_ENV_LOADED = False


def _find_env_file(start: Path) -> Path | None:
    current = start
    while current != current.parent:
        candidate = current / ".env"
        if candidate.exists():
            return candidate
        current = current.parent
    return None


def ensure_env_loaded(env_path: Path | None = None) -> None:
    """
    Load the .env file exactly once.

    Args:
        env_path: Optional path to .env file. If None, searches upward from the
            current working directory, then from the package directory.

    Side Effects:
        - Populates os.environ from the .env file (existing values win)
        - Sets module-level flag to prevent double-loading
    """
    global _ENV_LOADED
    if _ENV_LOADED:
        return

    if env_path is None:
        env_path = _find_env_file(Path.cwd()) or _find_env_file(Path(__file__).parent)

    if env_path and env_path.exists():
        load_dotenv(env_path)
        logger.debug("Loaded environment from %s", env_path)
    else:
        load_dotenv()

    _ENV_LOADED = True
