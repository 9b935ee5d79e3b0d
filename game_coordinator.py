"""
GameCoordinator — All non-frontend game coordination logic.

Owns the current game state, the deferred round reset after a commit, the
game log, and autosave through an injected Storage. Frontends (tui.py, web.py)
delegate to this and only handle rendering + input.
"""
from __future__ import annotations

import argparse
import logging

from game_engine import (
    MAX_ROLLS,
    NUM_DICE,
    Category,
    DieState,
    GameState,
    ScoreSheet,
    best_category,
    calculate_score,
    can_roll,
    can_select_category,
    start_new_round,
)
from game_engine import (
    clear_holds as engine_clear_holds,
)
from game_engine import (
    reset_game as engine_reset_game,
)
from game_engine import (
    roll_dice as engine_roll_dice,
)
from game_engine import (
    select_category as engine_select_category,
)
from game_engine import (
    toggle_die_hold as engine_toggle_die,
)
from game_log import GameLog
from storage import Storage

logger = logging.getLogger(__name__)

# Pace presets: frames the committed dice stay on screen before the board resets
PACE_PRESETS = {
    "slow":   30,
    "normal": 15,
    "fast":   5,
}
PACE_NAMES = ["slow", "normal", "fast"]

DEFAULT_STORAGE_KEY = "yacht_state"


class GameCoordinator:
    """Coordinates game state, the post-commit pause, and persistence.

    The frontend reads coordinator properties to decide what to render, and
    calls coordinator action methods in response to user input. Action
    methods return True when the action was applied and False when it was
    rejected; a rejected action never changes state.
    """

    def __init__(self, storage: Storage | None = None, storage_key: str = DEFAULT_STORAGE_KEY,
                 pace: str = "normal", resume: bool = True) -> None:
        """Initialize the coordinator.

        Args:
            storage: Optional Storage for autosave. None means nothing is persisted.
            storage_key: Key the snapshot is stored under.
            pace: Pace preset name ("slow", "normal", "fast").
            resume: Restore the stored snapshot if there is a usable one.
        """
        self.storage = storage
        self.storage_key = storage_key

        if pace not in PACE_PRESETS:
            pace = "normal"
        self.pace_name = pace
        self.round_reset_delay = PACE_PRESETS[pace]

        self.resumed = False
        self.state = None
        if resume:
            self.state = self.load_state()
            self.resumed = self.state is not None
        if self.state is None:
            self.state = GameState.create_initial()

        # Deferred round reset — scheduled by a commit, fired by tick()
        self.round_reset_pending = False
        self.round_reset_timer = 0
        self.committed_dice: tuple[DieState, ...] | None = None

        # Game log — records all actions for post-game replay
        self.game_log = GameLog()

        # Score animation signal — set when a category is scored, consumed by the frontend
        self.last_scored_category = None

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def dice(self) -> tuple[DieState, ...]:
        """Current dice tuple."""
        return self.state.dice

    @property
    def display_dice(self) -> tuple[DieState, ...]:
        """Dice to draw: the committed dice while the post-commit pause runs."""
        if self.round_reset_pending and self.committed_dice is not None:
            return self.committed_dice
        return self.state.dice

    @property
    def rolls_used(self) -> int:
        return self.state.rolls_used

    @property
    def rolls_left(self) -> int:
        return MAX_ROLLS - self.state.rolls_used

    @property
    def game_over(self) -> bool:
        return self.state.game_over

    @property
    def current_round(self) -> int:
        """Current round number (1-12)."""
        return self.state.current_round

    @property
    def sheet(self) -> ScoreSheet:
        return self.state.sheet

    @property
    def total_score(self) -> int:
        return self.state.sheet.total()

    @property
    def best_category(self) -> Category | None:
        """Advisory best open category for the current dice (None before the first roll)."""
        if self.state.rolls_used == 0:
            return None
        return best_category(self.state)

    @property
    def can_roll_now(self) -> bool:
        return can_roll(self.state)

    def can_score(self, category: Category) -> bool:
        return can_select_category(self.state, category)

    def potential_scores(self) -> dict[Category, int]:
        """Score each open category would get with the current dice."""
        return {cat: calculate_score(cat, self.state.dice)
                for cat in self.state.sheet.open_categories()}

    # ── Action methods (called by frontends on input) ────────────────────

    def roll_dice(self) -> bool:
        """Roll every unheld die. Returns False if no roll is allowed."""
        if not can_roll(self.state):
            return False
        self._supersede_round_reset()
        self.state = engine_roll_dice(self.state)
        self.game_log.log_roll(
            turn=self.current_round,
            roll_number=self.rolls_used,
            dice_values=[d.value for d in self.dice],
        )
        self.save_state()
        return True

    def toggle_hold(self, die_index: int) -> bool:
        """Toggle hold on a die. Returns False for an invalid index."""
        if not (0 <= die_index < NUM_DICE):
            return False
        self._supersede_round_reset()
        self.state = engine_toggle_die(self.state, die_index)
        self._log_holds()
        self.save_state()
        return True

    def clear_holds(self) -> bool:
        """Release all held dice. Returns False if nothing was held."""
        new_state = engine_clear_holds(self.state)
        if new_state.dice == self.state.dice:
            return False
        self._supersede_round_reset()
        self.state = new_state
        self._log_holds()
        self.save_state()
        return True

    def select_category(self, category: Category) -> bool:
        """Commit the current dice to a category.

        The score is recorded and the engine starts a fresh round at once;
        the committed dice stay on display until the scheduled round reset
        fires in tick().
        """
        if not can_select_category(self.state, category):
            return False
        self._supersede_round_reset()
        dice = self.state.dice
        score = calculate_score(category, dice)
        turn = self.current_round
        self.state = engine_select_category(self.state, category)
        self.last_scored_category = category
        self.game_log.log_score(turn, category, score, [d.value for d in dice])
        logger.debug("Round %d: %s scored %d", turn, category.value, score)

        self.committed_dice = dice
        self.round_reset_pending = True
        self.round_reset_timer = 0
        self.save_state()
        return True

    def reset_game(self) -> None:
        """Start a new game, keeping the pace setting."""
        self._supersede_round_reset()
        self.state = engine_reset_game()
        self.last_scored_category = None
        self.game_log.clear()
        self.save_state()

    def change_pace(self, direction: int) -> bool:
        """Change pace. direction=+1 for faster, -1 for slower.

        Returns True if pace actually changed, False if already at limit.
        """
        idx = PACE_NAMES.index(self.pace_name)
        new_idx = idx + direction
        if 0 <= new_idx < len(PACE_NAMES):
            self.set_pace(PACE_NAMES[new_idx])
            return True
        return False

    def set_pace(self, pace: str) -> None:
        if pace in PACE_PRESETS:
            self.pace_name = pace
            self.round_reset_delay = PACE_PRESETS[pace]

    # ── Frame update ─────────────────────────────────────────────────────

    def tick(self) -> None:
        """Advance one frame: fires the scheduled round reset when its delay is up."""
        if not self.round_reset_pending:
            return
        self.round_reset_timer += 1
        if self.round_reset_timer >= self.round_reset_delay:
            self.round_reset_pending = False
            self.committed_dice = None
            new_state = start_new_round(self.state)
            if new_state is not self.state:
                self.state = new_state
                self.save_state()

    # ── Internal ─────────────────────────────────────────────────────────

    def _supersede_round_reset(self) -> None:
        """Cancel a pending round reset; the next action already starts from a fresh round."""
        self.round_reset_pending = False
        self.round_reset_timer = 0
        self.committed_dice = None

    def _log_holds(self) -> None:
        self.game_log.log_hold_change(
            turn=self.current_round,
            held_indices=[i for i, d in enumerate(self.dice) if d.held],
            dice_values=[d.value for d in self.dice],
        )

    # ── Turn summary ─────────────────────────────────────────────────────

    def last_turn_summary(self) -> tuple[Category, int] | None:
        """Return (category, score) for the most recent commit, or None."""
        last = self.game_log.last_score_entry()
        if last is None:
            return None
        return (last.category, last.score)

    # ── Autosave ─────────────────────────────────────────────────────────

    @staticmethod
    def state_to_snapshot(state: GameState) -> dict:
        """Serialize a GameState to a JSON-safe dict."""
        return {
            "dice": [{"value": d.value, "held": d.held} for d in state.dice],
            "rolls_used": state.rolls_used,
            "scores": {cat.value: score for cat, score in state.sheet.scores.items()},
        }

    @staticmethod
    def snapshot_to_state(data: dict) -> GameState | None:
        """Deserialize a snapshot back to a GameState.

        Returns None if the snapshot has an unexpected structure or values
        no game could reach.
        """
        try:
            dice = tuple(
                DieState(value=d["value"], held=d["held"]) for d in data["dice"]
            )
            if len(dice) != NUM_DICE:
                return None
            if not all(type(d.value) is int and 0 <= d.value <= 6 for d in dice):
                return None
            if not all(isinstance(d.held, bool) for d in dice):
                return None

            rolls_used = data["rolls_used"]
            if type(rolls_used) is not int or not (0 <= rolls_used <= MAX_ROLLS):
                return None
            if rolls_used > 0 and not all(d.is_rolled for d in dice):
                return None

            sheet = ScoreSheet()
            cat_by_key = {cat.value: cat for cat in Category}
            for key, score in data["scores"].items():
                cat = cat_by_key.get(key)
                if cat is None:
                    continue
                if score is not None and (type(score) is not int or score < 0):
                    return None
                sheet.scores[cat] = score
        except (KeyError, TypeError, ValueError, AttributeError):
            return None
        return GameState(dice=dice, sheet=sheet, rolls_used=rolls_used)

    def save_state(self) -> None:
        """Write the current state to storage (no-op without storage)."""
        if self.storage is None:
            return
        self.storage.save(self.storage_key, self.state_to_snapshot(self.state))

    def clear_saved_game(self) -> None:
        """Forget the stored snapshot (no-op without storage)."""
        if self.storage is None:
            return
        self.storage.delete(self.storage_key)

    def load_state(self) -> GameState | None:
        """Read the stored snapshot, or None if there is no usable one."""
        if self.storage is None:
            return None
        data = self.storage.load(self.storage_key)
        if data is None:
            return None
        state = self.snapshot_to_state(data)
        if state is None:
            logger.warning("Discarding invalid saved game under key %r", self.storage_key)
        return state


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments shared by the frontends.

    Args:
        argv: Optional list of args (for testing). None uses sys.argv.

    Returns:
        Parsed argparse.Namespace.
    """
    parser = argparse.ArgumentParser(description="Yacht dice game")
    parser.add_argument("--fresh", action="store_true",
                        help="Start a new game instead of resuming the saved one")
    parser.add_argument("--pace", choices=PACE_NAMES, default=None,
                        help="How long a committed score stays on screen (default: from settings)")
    parser.add_argument("--save-dir", default=None, metavar="DIR",
                        help="Directory for the saved game (default: ~/.yacht)")
    return parser.parse_args(argv)
