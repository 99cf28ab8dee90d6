import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

# Executable override, usually set in .env
GNUPLOT_PATH = os.getenv("GNUPLOT_PATH")

# User config: loaded from ~/.gnuplot-bridge/config.json (primary)
# or project-root config.json (fallback).
CONFIG_PATH = Path.home() / ".gnuplot-bridge" / "config.json"
_LOCAL_CONFIG_PATH = Path(__file__).resolve().parent / "config.json"
_user_config: dict = {}


def _load_config() -> dict:
    # Project-local config.json as base, user home config overlaid on top
    merged: dict = {}
    for path in (_LOCAL_CONFIG_PATH, CONFIG_PATH):
        if path is not None and path.exists():
            try:
                with open(path, "r", encoding="utf-8") as f:
                    merged.update(json.load(f))
            except (json.JSONDecodeError, OSError):
                pass
    return merged


def get(key: str, default=None):
    """Get a config value by dot-separated key. E.g. get('session.close_timeout', 5.0)"""
    keys = key.split(".")
    val = _user_config
    for k in keys:
        if isinstance(val, dict):
            val = val.get(k)
        else:
            return default
    return val if val is not None else default


_user_config = _load_config()


# ---- Data directory -----------------------------------------------------------
# Base directory for logs.
# Priority: GNUPLOT_BRIDGE_DIR env var > "data_dir" config key > ~/.gnuplot-bridge

_data_dir: Optional[Path] = None


def get_data_dir() -> Path:
    """Return the resolved base data directory.

    Resolution order:
    1. ``GNUPLOT_BRIDGE_DIR`` environment variable (highest)
    2. ``"data_dir"`` key in config.json
    3. ``~/.gnuplot-bridge`` (default)
    """
    global _data_dir
    if _data_dir is not None:
        return _data_dir
    env_val = os.environ.get("GNUPLOT_BRIDGE_DIR")
    if env_val:
        _data_dir = Path(env_val).expanduser().resolve()
    else:
        configured = get("data_dir")
        if configured:
            _data_dir = Path(configured).expanduser().resolve()
        else:
            _data_dir = Path.home() / ".gnuplot-bridge"
    return _data_dir


def _reset_data_dir() -> None:
    """Reset the cached data directory (for testing only)."""
    global _data_dir
    _data_dir = None


# ---- gnuplot executable -------------------------------------------------------

def get_gnuplot_path() -> str:
    """Return the gnuplot executable to launch.

    Resolution order: GNUPLOT_PATH env var > "gnuplot_path" config key >
    ``gnuplot`` found on PATH > bare ``"gnuplot"`` (left to the OS to resolve).
    """
    if GNUPLOT_PATH:
        return GNUPLOT_PATH
    configured = get("gnuplot_path")
    if configured:
        return str(Path(configured).expanduser())
    return shutil.which("gnuplot") or "gnuplot"


def get_temp_dir() -> str:
    """Directory where data files are staged for gnuplot."""
    configured = get("temp_dir")
    if configured:
        return str(Path(configured).expanduser())
    return tempfile.gettempdir()


# Flat aliases, read once at import
TEMP_PREFIX = get("temp_prefix", "gnuplot-bridge-")
DEFAULT_STYLE = get("default_style", "points")
DEFAULT_FORMAT = get("default_format", "png")
CLOSE_TIMEOUT = float(get("close_timeout", 5.0))
