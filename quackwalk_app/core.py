import logging
import os
import sys
from pathlib import Path
from typing import Any

# Core application constants
PROJECT_VERSION = "0.3.0"
APP_NAME = "QuackWalk"
SETTINGS_ORGANIZATION = "quackwalk"

LOG_FILE = os.path.join(os.path.expanduser("~"), "quackwalk.log")
CRASH_LOG_FILE = os.path.join(os.path.expanduser("~"), "quackwalk_crash.log")


def configure_logging() -> None:
    """
    Configure application logging once. Subsequent calls are no-ops.
    """
    if getattr(configure_logging, "_configured", False):
        return

    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)s:%(message)s",
        handlers=[
            logging.FileHandler(LOG_FILE, encoding="utf-8"),
            logging.StreamHandler(sys.stdout),
        ],
    )
    configure_logging._configured = True


def resource_path(relative_path: str) -> str:
    """
    Return an absolute path to a bundled resource, working both in dev mode and after packaging.
    """
    try:
        if getattr(sys, "frozen", False):
            base_path = Path(sys.executable).parent
        else:
            base_path = Path(__file__).resolve().parent.parent
        return str(base_path.joinpath(relative_path))
    except Exception as exc:  # pragma: no cover - defensive fallback
        logging.error("Error calculating path for %s: %s", relative_path, exc)
        return relative_path


def safe_int(value: Any, default: int = 0) -> int:
    """
    Utility conversion helper for stray settings values.
    """
    try:
        return int(value)
    except Exception:
        return default


def safe_float(value: Any, default: float = 0.0) -> float:
    try:
        result = float(value)
    except Exception:
        return default
    if result != result or result in (float("inf"), float("-inf")):
        return default
    return result


def parse_bool(value: Any, default: bool = False) -> bool:
    """
    Host attributes arrive as strings; an empty string means the flag is present.
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    text = str(value).strip().lower()
    if text in ("", "1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    return default
