"""Configuration management for the Agent Feedback service."""

import os
import logging
from pathlib import Path
from typing import Dict, Optional, Tuple
from dotenv import load_dotenv

# Repository root (directory containing the agent_feedback/ package)
REPO_ROOT = Path(__file__).resolve().parents[1]

# Load .env from the per-user config directory only.
#
# Location: ~/.agent_feedback/.env
#
# Setup:
#   mkdir -p ~/.agent_feedback
#   cp .env.example ~/.agent_feedback/.env
#   chmod 600 ~/.agent_feedback/.env

_env_loaded_from: Optional[str] = None


def _load_env_file() -> Optional[str]:
    """Load .env from the per-user config directory."""
    env_path = Path.home() / '.agent_feedback' / '.env'

    if env_path.exists():
        load_dotenv(env_path)
        return str(env_path)

    return None


_env_loaded_from = _load_env_file()

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing required values."""
    pass


STORE_BACKENDS = ('file', 'sql')

# action -> (window_ms, max_requests)
DEFAULT_RATE_LIMITS: Dict[str, Tuple[int, int]] = {
    'comments:post': (60_000, 20),
    'ratings:post': (60_000, 30),
    'comments:upvote': (60_000, 30),
    'reads': (60_000, 120),
}


def get_log_level() -> str:
    """Get log level from environment, default to INFO."""
    level = os.getenv('LOG_LEVEL', 'INFO').upper()
    valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

    if level not in valid_levels:
        logger.warning("Invalid log level '%s', defaulting to INFO", level)
        return 'INFO'

    return level


def get_store_backend() -> str:
    """Get the durable store backend name (``file`` or ``sql``).

    Raises:
        ConfigurationError: If the configured backend is unknown
    """
    backend = os.getenv('FEEDBACK_STORE_BACKEND', 'file').strip().lower()
    if backend not in STORE_BACKENDS:
        raise ConfigurationError(
            f"Invalid FEEDBACK_STORE_BACKEND '{backend}'. "
            f"Must be one of: {', '.join(STORE_BACKENDS)}"
        )
    return backend


def get_data_dir() -> Path:
    """Return the directory holding the file-backed JSON collections."""
    raw_path = os.getenv('FEEDBACK_DATA_DIR', 'data')
    path = Path(raw_path)

    if path.is_absolute():
        return path

    # Resolve relative to repository root
    return (REPO_ROOT / path).resolve()


def get_database_url() -> str:
    """Get the relational store URL (used when the backend is ``sql``)."""
    return os.getenv('DATABASE_URL', 'sqlite:///./agent_feedback.db')


def _optional_path(env_name: str) -> Optional[Path]:
    raw_path = os.getenv(env_name)
    if not raw_path:
        return None
    path = Path(raw_path)
    if path.is_absolute():
        return path
    return (REPO_ROOT / path).resolve()


def get_agent_tokens_path() -> Optional[Path]:
    """Return the YAML file mapping bearer tokens to agent identities."""
    return _optional_path('FEEDBACK_AGENT_TOKENS_PATH')


def get_catalog_path() -> Optional[Path]:
    """Return the YAML file listing known artifacts and skills."""
    return _optional_path('FEEDBACK_CATALOG_PATH')


def _env_suffix(action: str) -> str:
    return action.replace(':', '_').upper()


def get_rate_limit(action: str) -> Tuple[int, int]:
    """Get ``(window_ms, max_requests)`` for a rate-limited action.

    Overridable per action, e.g. ``RATE_LIMIT_COMMENTS_POST_MAX=5`` and
    ``RATE_LIMIT_COMMENTS_POST_WINDOW_MS=1000``.
    """
    default_window, default_max = DEFAULT_RATE_LIMITS.get(action, DEFAULT_RATE_LIMITS['reads'])
    suffix = _env_suffix(action)

    try:
        window_ms = int(os.getenv(f'RATE_LIMIT_{suffix}_WINDOW_MS', str(default_window)))
    except ValueError:
        logger.warning("Invalid RATE_LIMIT_%s_WINDOW_MS, using default %s", suffix, default_window)
        window_ms = default_window

    try:
        max_requests = int(os.getenv(f'RATE_LIMIT_{suffix}_MAX', str(default_max)))
    except ValueError:
        logger.warning("Invalid RATE_LIMIT_%s_MAX, using default %s", suffix, default_max)
        max_requests = default_max

    if window_ms <= 0 or max_requests <= 0:
        logger.warning("Non-positive rate limit for %s, using defaults", action)
        return default_window, default_max

    return window_ms, max_requests


def get_env_source() -> Optional[str]:
    """Get the path from which .env was loaded, or None."""
    return _env_loaded_from
