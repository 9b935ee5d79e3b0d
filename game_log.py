"""Game log for Yacht — records every action for the post-game replay.

Pure Python, no frontend dependency. Captures rolls, hold changes, and
commits for each round.
"""
from __future__ import annotations

from dataclasses import dataclass

from game_engine import Category


@dataclass
class LogEntry:
    """A single logged game event."""
    turn: int                                   # round number
    event_type: str                             # "roll", "hold", "score"
    dice_values: tuple[int, ...]
    held_indices: tuple[int, ...] | None = None
    category: Category | None = None
    score: int | None = None
    roll_number: int = 0                        # 1-3 for rolls


class GameLog:
    """Accumulates LogEntry records during a game."""

    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    def log_roll(self, turn: int, roll_number: int, dice_values: list[int]) -> None:
        """Record a dice roll."""
        self.entries.append(LogEntry(
            turn=turn,
            event_type="roll",
            dice_values=tuple(dice_values),
            roll_number=roll_number,
        ))

    def log_hold_change(self, turn: int, held_indices: list[int], dice_values: list[int]) -> None:
        """Record a hold/unhold change."""
        self.entries.append(LogEntry(
            turn=turn,
            event_type="hold",
            dice_values=tuple(dice_values),
            held_indices=tuple(held_indices),
        ))

    def log_score(self, turn: int, category: Category, score: int, dice_values: list[int]) -> None:
        """Record a commit."""
        self.entries.append(LogEntry(
            turn=turn,
            event_type="score",
            dice_values=tuple(dice_values),
            category=category,
            score=score,
        ))

    def get_turn_entries(self, turn: int) -> list[LogEntry]:
        """Return all entries for a specific round."""
        return [e for e in self.entries if e.turn == turn]

    def get_score_entries(self) -> list[LogEntry]:
        """Return only commit entries."""
        return [e for e in self.entries if e.event_type == "score"]

    def last_score_entry(self) -> LogEntry | None:
        scores = self.get_score_entries()
        return scores[-1] if scores else None

    def clear(self) -> None:
        """Remove all entries."""
        self.entries = []
