"""Platform-aware settings location and environment overrides."""

import json
import logging
import os
import sys
from pathlib import Path

from .core import Settings

logger = logging.getLogger(__name__)

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_MODEL = "gpt-4"

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1000

# The generator is asked for <= 280 chars; allow some slack before truncating.
MAIN_MESSAGE_BUDGET = 280
MAIN_MESSAGE_SLACK = 72
MAX_MAIN_LENGTH = MAIN_MESSAGE_BUDGET + MAIN_MESSAGE_SLACK

DEFAULT_SESSION_MINUTES = 2
VISIBLE_SUGGESTIONS = 2


def get_settings_path() -> Path:
    """Return the path to the persisted settings file."""
    env = os.environ.get("VIBECHECK_SETTINGS_PATH")
    if env:
        return Path(env)

    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "vibecheck" / "settings.json"
    elif sys.platform == "win32":
        return Path(os.environ.get("APPDATA", "")) / "vibecheck" / "settings.json"
    else:  # Linux
        return Path.home() / ".config" / "vibecheck" / "settings.json"


def get_openrouter_url() -> str:
    return os.environ.get("VIBECHECK_OPENROUTER_URL") or OPENROUTER_URL


def get_env_api_key() -> str | None:
    """Return the server-side OpenRouter key, if any."""
    return os.environ.get("OPENROUTER_API_KEY") or None


def get_default_model() -> str:
    return os.environ.get("VIBECHECK_DEFAULT_MODEL") or DEFAULT_MODEL


def get_timeout() -> float:
    raw = os.environ.get("VIBECHECK_TIMEOUT")
    if not raw:
        return 60.0
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid VIBECHECK_TIMEOUT=%r", raw)
        return 60.0


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from disk, falling back to defaults.

    A missing or unreadable file is not an error: the user simply has not
    saved anything yet.
    """
    path = path or get_settings_path()
    defaults = Settings(default_model=get_default_model())
    if not path.exists():
        return defaults

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (ValueError, RecursionError, OSError) as e:
        logger.warning("Failed to read settings from %s: %s", path, e)
        return defaults

    if not isinstance(data, dict):
        logger.warning("Ignoring malformed settings file %s", path)
        return defaults

    settings = Settings.from_dict(data)
    if not data.get("defaultModel"):
        settings.default_model = defaults.default_model
    return settings


def save_settings(settings: Settings, path: Path | None = None) -> Path:
    """Write settings to disk and return the path written."""
    path = path or get_settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(settings.to_dict(), indent=2), encoding="utf-8")
    tmp.replace(path)
    return path


def get_backfill_music() -> bool:
    """Whether replies without suggestions get a catalog track attached."""
    return os.environ.get("VIBECHECK_BACKFILL_MUSIC", "").lower() in ("1", "true", "yes")
