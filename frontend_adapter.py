"""FrontendAdapter — Shared UI state management for all Yacht frontends.

Owns overlay state, zero-score confirmation, keyboard category navigation,
score flash animation, the best-category hint, settings persistence, score
saving, and history queries. Pure Python — no textual or flask dependency.

Each frontend (TUI, web) creates a FrontendAdapter wrapping a GameCoordinator
and delegates UI-state logic here, keeping only rendering and input
translation frontend-specific.
"""

from game_coordinator import PACE_PRESETS
from game_engine import Category
from score_history import get_high_scores, get_recent_scores, record_score
from settings import DEFAULTS, load_settings, save_settings


# ── Shared constants ──────────────────────────────────────────────────────────

CATEGORY_ORDER = list(Category)

CATEGORY_LABELS = {
    Category.ONES: "Ones",
    Category.TWOS: "Twos",
    Category.THREES: "Threes",
    Category.FOURS: "Fours",
    Category.FIVES: "Fives",
    Category.SIXES: "Sixes",
    Category.CHOICE: "Choice",
    Category.FOUR_KIND: "Four of a Kind",
    Category.FULL_HOUSE: "Full House",
    Category.LITTLE_STRAIGHT: "Little Straight",
    Category.BIG_STRAIGHT: "Big Straight",
    Category.YACHT: "Yacht",
}

CATEGORY_TOOLTIPS = {
    Category.ONES: "Sum of all dice showing 1",
    Category.TWOS: "Sum of all dice showing 2",
    Category.THREES: "Sum of all dice showing 3",
    Category.FOURS: "Sum of all dice showing 4",
    Category.FIVES: "Sum of all dice showing 5",
    Category.SIXES: "Sum of all dice showing 6",
    Category.CHOICE: "Sum of all dice, no pattern needed",
    Category.FOUR_KIND: "4 of the same, score = sum of those 4 dice",
    Category.FULL_HOUSE: "3 of one + 2 of another, score = sum of all dice",
    Category.LITTLE_STRAIGHT: "1-2-3-4-5 = 30",
    Category.BIG_STRAIGHT: "2-3-4-5-6 = 30",
    Category.YACHT: "All 5 dice the same = 50",
}


# ── Frontend Adapter ──────────────────────────────────────────────────────────

class FrontendAdapter:
    """Shared UI state management for all Yacht frontends.

    Wraps a GameCoordinator and manages overlay state, zero-confirm flow,
    keyboard navigation, score flash, settings, and score saving.
    """

    def __init__(self, coordinator, settings_path=None, history_path=None):
        self.coordinator = coordinator
        self.settings_path = settings_path
        self.history_path = history_path

        # Overlay state
        self.showing_help = False
        self.showing_history = False
        self.showing_replay = False

        # Zero-score confirmation
        self.confirm_zero_category = None

        # Keyboard category navigation
        self.kb_selected_index = None
        self.hovered_category = None

        # Score flash (frontend-agnostic progress 0.0-1.0)
        self.score_flash_category = None
        self.score_flash_timer = 0
        self.score_flash_duration = 20  # frames

        # Settings
        self.colorblind_mode = DEFAULTS["colorblind_mode"]
        self.dark_mode = DEFAULTS["dark_mode"]
        self.show_best_hint = DEFAULTS["show_best_hint"]
        self.hold_before_roll = DEFAULTS["hold_before_roll"]

        # A game restored already finished was recorded when it ended
        self._scores_saved = coordinator.game_over

    # ── Overlay management ────────────────────────────────────────────────

    def toggle_help(self):
        """Toggle help overlay. Closes other overlays when opening."""
        self.showing_help = not self.showing_help
        if self.showing_help:
            self.showing_history = False
            self.showing_replay = False
            self.kb_selected_index = None

    def toggle_history(self):
        """Toggle history overlay. Blocked while help is showing."""
        if self.showing_help:
            return
        self.showing_history = not self.showing_history
        if self.showing_history:
            self.showing_replay = False
            self.kb_selected_index = None

    def toggle_replay(self):
        """Toggle replay overlay (only available when game is over)."""
        if not self.coordinator.game_over:
            return
        self.showing_replay = not self.showing_replay

    def close_top_overlay(self):
        """Close the topmost overlay. Returns True if an overlay was closed."""
        if self.showing_help:
            self.showing_help = False
            return True
        if self.showing_replay:
            self.showing_replay = False
            return True
        if self.showing_history:
            self.showing_history = False
            return True
        return False

    @property
    def has_active_overlay(self):
        """Whether any overlay is currently showing."""
        return self.showing_help or self.showing_history or self.showing_replay

    @property
    def is_input_blocked(self):
        """Whether game input should be blocked (overlay or confirm dialog)."""
        return self.has_active_overlay or self.confirm_zero_category is not None

    # ── Zero-score confirmation ───────────────────────────────────────────

    def try_score_category(self, cat):
        """Attempt to score a category. Asks for confirmation if the score would be 0.

        Returns True if scoring happened immediately, False otherwise.
        """
        coord = self.coordinator
        if not coord.can_score(cat):
            return False
        if coord.potential_scores()[cat] == 0:
            self.confirm_zero_category = cat
            return False
        if coord.select_category(cat):
            self.kb_selected_index = None
            return True
        return False

    def confirm_zero_yes(self):
        """Confirm scoring 0 in the pending category. Returns True if scored."""
        cat = self.confirm_zero_category
        if cat is None:
            return False
        self.confirm_zero_category = None
        if self.coordinator.select_category(cat):
            self.kb_selected_index = None
            return True
        return False

    def confirm_zero_no(self):
        """Cancel the zero-score confirmation."""
        self.confirm_zero_category = None

    # ── Keyboard category navigation ──────────────────────────────────────

    def navigate_category(self, direction):
        """Move keyboard selection to next/previous unfilled category.

        Args:
            direction: +1 for forward, -1 for backward
        """
        sheet = self.coordinator.sheet
        unfilled = [i for i, cat in enumerate(CATEGORY_ORDER)
                    if not sheet.is_filled(cat)]
        if not unfilled:
            return

        if self.kb_selected_index is None:
            self.kb_selected_index = unfilled[0] if direction > 0 else unfilled[-1]
        else:
            if direction > 0:
                candidates = [i for i in unfilled if i > self.kb_selected_index]
                self.kb_selected_index = candidates[0] if candidates else unfilled[0]
            else:
                candidates = [i for i in unfilled if i < self.kb_selected_index]
                self.kb_selected_index = candidates[-1] if candidates else unfilled[-1]

        self.hovered_category = None

    @property
    def selected_category(self):
        """Category under the keyboard cursor, or None."""
        if self.kb_selected_index is None:
            return None
        return CATEGORY_ORDER[self.kb_selected_index]

    def set_hovered_category(self, cat):
        """Set mouse-hovered category (clears keyboard selection)."""
        self.hovered_category = cat
        self.kb_selected_index = None

    def clear_hover(self):
        """Clear mouse hover state."""
        self.hovered_category = None

    @property
    def tooltip_category(self):
        if self.hovered_category is not None:
            return self.hovered_category
        return self.selected_category

    # ── Best-category hint ────────────────────────────────────────────────

    @property
    def hint_category(self):
        """Category to highlight as the best choice, or None when the hint is off."""
        if not self.show_best_hint or self.coordinator.game_over:
            return None
        return self.coordinator.best_category

    # ── Settings ──────────────────────────────────────────────────────────

    def load_settings(self):
        """Load persisted settings and apply to adapter + coordinator."""
        settings = load_settings(self.settings_path)
        self.colorblind_mode = bool(settings.get("colorblind_mode", False))
        self.dark_mode = bool(settings.get("dark_mode", False))
        self.show_best_hint = bool(settings.get("show_best_hint", True))
        self.hold_before_roll = bool(settings.get("hold_before_roll", True))
        saved_pace = settings.get("pace", "normal")
        if saved_pace in PACE_PRESETS:
            self.coordinator.set_pace(saved_pace)

    def _save_settings(self):
        """Persist current settings to disk."""
        save_settings({
            "colorblind_mode": self.colorblind_mode,
            "dark_mode": self.dark_mode,
            "pace": self.coordinator.pace_name,
            "show_best_hint": self.show_best_hint,
            "hold_before_roll": self.hold_before_roll,
        }, self.settings_path)

    def toggle_colorblind(self):
        """Toggle colorblind mode and save."""
        self.colorblind_mode = not self.colorblind_mode
        self._save_settings()

    def toggle_dark_mode(self):
        """Toggle dark mode and save."""
        self.dark_mode = not self.dark_mode
        self._save_settings()

    def toggle_best_hint(self):
        """Toggle the best-category highlight and save."""
        self.show_best_hint = not self.show_best_hint
        self._save_settings()

    def toggle_hold_before_roll(self):
        """Toggle whether dice may be held before the first roll, and save."""
        self.hold_before_roll = not self.hold_before_roll
        self._save_settings()

    def change_pace(self, direction):
        """Change pace. Returns True if pace changed."""
        if self.coordinator.change_pace(direction):
            self._save_settings()
            return True
        return False

    # ── Game actions ──────────────────────────────────────────────────────

    @property
    def can_hold(self):
        """Whether hold toggling is offered right now."""
        coord = self.coordinator
        if coord.game_over:
            return False
        return self.hold_before_roll or coord.rolls_used > 0

    def do_roll(self):
        """Roll dice. Returns True if the roll happened."""
        return self.coordinator.roll_dice()

    def do_hold(self, die_index):
        """Toggle hold on a die. Returns True if toggled."""
        if not self.can_hold:
            return False
        return self.coordinator.toggle_hold(die_index)

    def do_clear_holds(self):
        """Release all held dice. Returns True if any die was held."""
        return self.coordinator.clear_holds()

    def do_reset(self):
        """Reset game. Saves scores first if game was over."""
        self._save_scores()
        self.coordinator.reset_game()
        self._scores_saved = False
        self.showing_replay = False
        self.confirm_zero_category = None
        self.kb_selected_index = None
        self.score_flash_category = None

    # ── Per-frame update ──────────────────────────────────────────────────

    def update(self):
        """Tick the coordinator, consume its signals, advance flash, handle game-over.

        Returns dict of events that occurred this frame:
            scored, round_reset, game_over_triggered
        """
        coord = self.coordinator
        events = {
            "scored": False,
            "round_reset": False,
            "game_over_triggered": False,
        }

        was_pending = coord.round_reset_pending

        # Tick the coordinator
        coord.tick()

        if was_pending and not coord.round_reset_pending:
            events["round_reset"] = True

        # Score flash: consume signal from coordinator
        if coord.last_scored_category is not None:
            events["scored"] = True
            self.score_flash_category = coord.last_scored_category
            self.score_flash_timer = 0
            coord.last_scored_category = None
            self.kb_selected_index = None
            self.confirm_zero_category = None

        # Game over handling (once)
        if coord.game_over and not self._scores_saved:
            self._save_scores()
            events["game_over_triggered"] = True

        # Advance flash timer
        if self.score_flash_category is not None:
            self.score_flash_timer += 1
            if self.score_flash_timer >= self.score_flash_duration:
                self.score_flash_category = None

        return events

    # ── Score flash progress ──────────────────────────────────────────────

    @property
    def score_flash_progress(self):
        """Return flash progress 0.0-1.0, or None if no flash active."""
        if self.score_flash_category is None:
            return None
        return self.score_flash_timer / self.score_flash_duration

    # ── Data helpers ──────────────────────────────────────────────────────

    def get_recent_history(self, limit=20):
        """Return the most recent finished games, newest first."""
        return get_recent_scores(limit=limit, path=self.history_path)

    def get_high_scores(self, limit=5):
        """Return top scores."""
        return get_high_scores(limit=limit, path=self.history_path)

    def get_replay_rows(self):
        """One row per committed round: the rolls that led to it and the result."""
        game_log = self.coordinator.game_log
        rows = []
        for entry in game_log.get_score_entries():
            rolls = [list(e.dice_values) for e in game_log.get_turn_entries(entry.turn)
                     if e.event_type == "roll"]
            rows.append({
                "turn": entry.turn,
                "rolls": rolls,
                "category": entry.category,
                "score": entry.score,
            })
        return rows

    # ── Score saving ──────────────────────────────────────────────────────

    def _save_scores(self):
        """Persist game result (idempotent — only saves once per game)."""
        if self._scores_saved:
            return
        if not self.coordinator.game_over:
            return
        self._scores_saved = True
        sheet = self.coordinator.sheet
        record_score(
            sheet.total(),
            scores={cat.value: score for cat, score in sheet.scores.items()},
            path=self.history_path,
        )

    # ── Full state snapshot (for web frontend) ────────────────────────────

    def get_game_snapshot(self):
        """Return a complete JSON-serializable dict of game + UI state.

        Used by the web frontend to push full state over WebSocket.
        """
        coord = self.coordinator

        dice = [{"value": d.value, "held": d.held} for d in coord.display_dice]

        scores = {cat.value: coord.sheet.scores[cat] for cat in CATEGORY_ORDER}

        # Potential scores for unfilled categories
        potential_scores = {}
        if coord.rolls_used > 0:
            potential_scores = {cat.value: score
                                for cat, score in coord.potential_scores().items()}

        categories = [
            {"key": cat.value, "label": CATEGORY_LABELS[cat], "tooltip": CATEGORY_TOOLTIPS[cat]}
            for cat in CATEGORY_ORDER
        ]

        flash = {"category": None, "progress": None}
        if self.score_flash_category is not None:
            flash["category"] = self.score_flash_category.value
            flash["progress"] = self.score_flash_progress

        hint = self.hint_category
        last = coord.last_turn_summary()

        snapshot = {
            "dice": dice,
            "rolls_used": coord.rolls_used,
            "rolls_left": coord.rolls_left,
            "current_round": coord.current_round,
            "num_rounds": len(CATEGORY_ORDER),
            "game_over": coord.game_over,
            "can_roll": coord.can_roll_now,
            "can_hold": self.can_hold,
            "round_reset_pending": coord.round_reset_pending,
            "categories": categories,
            "scores": scores,
            "potential_scores": potential_scores,
            "best_category": hint.value if hint is not None else None,
            "total": coord.total_score,
            "last_turn": ({"category": last[0].value, "score": last[1]}
                          if last is not None else None),
            "pace": coord.pace_name,
            "showing_help": self.showing_help,
            "showing_history": self.showing_history,
            "showing_replay": self.showing_replay,
            "confirm_zero_category": (self.confirm_zero_category.value
                                      if self.confirm_zero_category else None),
            "kb_selected_index": self.kb_selected_index,
            "score_flash": flash,
            "colorblind_mode": self.colorblind_mode,
            "dark_mode": self.dark_mode,
            "show_best_hint": self.show_best_hint,
            "hold_before_roll": self.hold_before_roll,
        }
        if self.showing_history:
            snapshot["history"] = self.get_recent_history()
        if self.showing_replay:
            snapshot["replay"] = [
                {**row, "category": row["category"].value}
                for row in self.get_replay_rows()
            ]
        return snapshot
