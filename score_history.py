"""Score history persistence for Yacht.

Stores finished game totals in ~/.yacht_scores.json as a JSON list,
capped at 1000 entries. No frontend dependency.
"""

import json
from datetime import datetime
from pathlib import Path

MAX_ENTRIES = 1000


def _default_path():
    """Return the default path for the scores file."""
    return Path.home() / ".yacht_scores.json"


def _load_scores(path=None):
    """Load scores from the JSON file. Returns empty list on missing/corrupt."""
    if path is None:
        path = _default_path()
    path = Path(path)
    try:
        data = json.loads(path.read_text())
        if isinstance(data, list):
            return [e for e in data if isinstance(e, dict)]
        return []
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return []


def _save_scores(entries, path=None):
    """Write score entries to the JSON file."""
    if path is None:
        path = _default_path()
    path = Path(path)
    path.write_text(json.dumps(entries, indent=2))


def record_score(score, scores=None, path=None):
    """Record a finished game.

    Creates an entry with the total, the date (ISO format) and, if given,
    the per-category scores keyed by category name. Appends to the scores
    file, dropping oldest entries if the list exceeds MAX_ENTRIES.
    """
    entries = _load_scores(path)
    entry = {
        "score": score,
        "date": datetime.now().isoformat(),
    }
    if scores is not None:
        entry["scores"] = dict(scores)
    entries.append(entry)
    if len(entries) > MAX_ENTRIES:
        entries = entries[-MAX_ENTRIES:]
    _save_scores(entries, path)


def get_high_scores(limit=10, path=None):
    """Return top scores sorted descending.

    Args:
        limit: maximum number of entries to return (default 10).

    Returns:
        List of score entry dicts, highest scores first.
    """
    entries = _load_scores(path)
    entries.sort(key=lambda e: e.get("score", 0), reverse=True)
    return entries[:limit]


def get_recent_scores(limit=20, path=None):
    """Return the most recent entries, newest first."""
    entries = _load_scores(path)
    return list(reversed(entries[-limit:])) if limit > 0 else []


def get_all_scores(path=None):
    """Return all score entries."""
    return _load_scores(path)
