# backend/config.py
import os
import logging
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", name, raw, default)
        return default


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./app.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Blank-space markers
BLANK_MIN_LENGTH = _int_env("BLANK_MIN_LENGTH", 3)
BLANK_LENGTH_CAP = _int_env("BLANK_LENGTH_CAP", 50)
BLANK_DISPLAY_WIDTH = _int_env("BLANK_DISPLAY_WIDTH", 10)
DEFAULT_BLANK_LENGTH = _int_env("DEFAULT_BLANK_LENGTH", 10)

# Characters inspected on each side of a placeholder when guessing its category
CONTEXT_WINDOW = _int_env("CONTEXT_WINDOW", 100)

# Uploads
MAX_UPLOAD_BYTES = _int_env("MAX_UPLOAD_BYTES", 10 * 1024 * 1024)
MIN_UPLOAD_BYTES = _int_env("MIN_UPLOAD_BYTES", 100)


def setup_logging() -> None:
    """
    Configure the root logger once. Safe to call repeatedly; handlers
    are only attached the first time.
    """
    root = logging.getLogger()
    level = getattr(logging, LOG_LEVEL, logging.INFO)
    root.setLevel(level)
    if root.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root.addHandler(handler)
