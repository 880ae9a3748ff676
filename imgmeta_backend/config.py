"""
Configuration for the imgmeta extractor.

Every knob is an environment variable read once at import time.
"""
import logging
import os

from .utils import env_bool

logger = logging.getLogger(__name__)


def _env_raw(name: str) -> str | None:
    val = os.getenv(name)
    if val is not None and val.strip() != "":
        return val.strip()
    return None


def _env_int(default: int, name: str, min_value: int | None = None, max_value: int | None = None) -> int:
    raw = _env_raw(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s=%r, using default=%s", name, raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", name, value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", name, value, max_value)
        value = max_value
    return value


# Upper bound for a single `prompt` / `workflow` text before it is decoded.
MAX_METADATA_JSON_SIZE = _env_int(
    10 * 1024 * 1024,
    "IMGMETA_MAX_METADATA_JSON_SIZE",
    min_value=1024,
)

# Chained text nodes followed while extracting prompt text.
MAX_PROMPT_DEPTH = _env_int(100, "IMGMETA_MAX_PROMPT_DEPTH", min_value=1, max_value=10_000)

# Raises every imgmeta logger to DEBUG for CLI runs
DEBUG = env_bool("IMGMETA_DEBUG", False)
