"""Persistent settings for Yacht.

Stores user preferences in ~/.yacht_settings.json.
No frontend dependency — follows the same pattern as score_history.py.
"""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULTS = {
    "colorblind_mode": False,
    "dark_mode": False,
    "pace": "normal",
    "show_best_hint": True,
    "hold_before_roll": True,
}


def _default_path():
    """Return the default path for the settings file."""
    return Path.home() / ".yacht_settings.json"


def load_settings(path=None):
    """Load settings from JSON file. Returns DEFAULTS on missing/corrupt.

    Merges with DEFAULTS so missing keys get default values.
    Unknown keys are ignored.
    """
    if path is None:
        path = _default_path()
    path = Path(path)
    try:
        data = json.loads(path.read_text())
        if not isinstance(data, dict):
            return dict(DEFAULTS)
        # Merge: only keep known keys, fill missing from defaults
        result = dict(DEFAULTS)
        for key in DEFAULTS:
            if key in data:
                result[key] = data[key]
        return result
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return dict(DEFAULTS)


def save_settings(settings, path=None):
    """Write settings dict to JSON. Write errors are logged, not raised."""
    if path is None:
        path = _default_path()
    path = Path(path)
    try:
        path.write_text(json.dumps(settings, indent=2))
    except OSError:
        logger.warning("Could not save settings to %s", path)
