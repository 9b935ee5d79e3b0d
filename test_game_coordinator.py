"""
GameCoordinator Test Suite

Tests the game coordination logic without any frontend dependency.
Covers: setup, rolling, holding, committing, the deferred round reset,
pace control, reset, the game log, autosave/resume, and CLI parsing.

Conventions match existing test files:
- Class grouping by topic
- random.seed() for determinism
- No mocking — exercises the real game engine and real storage
"""
import json
import random
from dataclasses import replace

import pytest

from game_engine import Category, DieState, GameState, MAX_ROLLS, fresh_dice
from game_coordinator import (
    GameCoordinator, parse_args,
    PACE_PRESETS, PACE_NAMES, DEFAULT_STORAGE_KEY,
)
from storage import MemoryStorage, JsonFileStorage


# ── Helpers ──────────────────────────────────────────────────────────────────

def tick_n(coordinator, n):
    """Tick the coordinator n times."""
    for _ in range(n):
        coordinator.tick()


def with_dice(coordinator, *values, rolls_used=1):
    """Force specific dice onto the coordinator's state."""
    coordinator.state = replace(
        coordinator.state,
        dice=tuple(DieState(value=v) for v in values),
        rolls_used=rolls_used,
    )
    return coordinator


def play_full_game(coordinator):
    """Roll once and commit each category in order, letting every reset fire."""
    for cat in Category:
        coordinator.roll_dice()
        coordinator.select_category(cat)
        tick_n(coordinator, coordinator.round_reset_delay)


# ═══════════════════════════════════════════════════════════════════════════════
# 1. SETUP
# ═══════════════════════════════════════════════════════════════════════════════

class TestSetup:

    def test_defaults(self):
        c = GameCoordinator()
        assert c.storage is None
        assert c.resumed is False
        assert c.game_over is False
        assert c.rolls_used == 0
        assert c.rolls_left == MAX_ROLLS
        assert c.current_round == 1
        assert c.total_score == 0
        assert c.round_reset_pending is False
        assert c.dice == fresh_dice()

    def test_default_pace_is_normal(self):
        c = GameCoordinator()
        assert c.pace_name == "normal"
        assert c.round_reset_delay == PACE_PRESETS["normal"]

    @pytest.mark.parametrize("pace", PACE_NAMES)
    def test_pace_presets(self, pace):
        c = GameCoordinator(pace=pace)
        assert c.pace_name == pace
        assert c.round_reset_delay == PACE_PRESETS[pace]

    def test_unknown_pace_falls_back_to_normal(self):
        c = GameCoordinator(pace="ludicrous")
        assert c.pace_name == "normal"

    def test_best_category_is_none_before_first_roll(self):
        assert GameCoordinator().best_category is None

    def test_potential_scores_cover_open_categories(self):
        c = with_dice(GameCoordinator(), 3, 3, 3, 2, 2)
        scores = c.potential_scores()
        assert set(scores) == set(Category)
        assert scores[Category.FULL_HOUSE] == 13
        assert scores[Category.THREES] == 9


# ═══════════════════════════════════════════════════════════════════════════════
# 2. ROLLING AND HOLDING
# ═══════════════════════════════════════════════════════════════════════════════

class TestRolling:

    def test_roll_changes_dice_and_counts(self):
        random.seed(1)
        c = GameCoordinator()
        assert c.roll_dice() is True
        assert c.rolls_used == 1
        assert c.rolls_left == 2
        assert all(1 <= d.value <= 6 for d in c.dice)

    def test_fourth_roll_is_rejected(self):
        c = GameCoordinator()
        for _ in range(MAX_ROLLS):
            assert c.roll_dice() is True
        before = c.dice
        assert c.can_roll_now is False
        assert c.roll_dice() is False
        assert c.dice == before
        assert c.rolls_used == MAX_ROLLS

    def test_held_die_survives_roll(self):
        random.seed(9)
        c = GameCoordinator()
        c.roll_dice()
        kept = c.dice[2].value
        assert c.toggle_hold(2) is True
        c.roll_dice()
        c.roll_dice()
        assert c.dice[2].value == kept
        assert c.dice[2].held is True

    def test_toggle_hold_before_roll_is_allowed(self):
        c = GameCoordinator()
        assert c.toggle_hold(0) is True
        assert c.dice[0].held is True

    @pytest.mark.parametrize("index", [-1, 5])
    def test_toggle_hold_invalid_index(self, index):
        c = GameCoordinator()
        assert c.toggle_hold(index) is False
        assert c.game_log.entries == []

    def test_clear_holds(self):
        c = GameCoordinator()
        c.roll_dice()
        c.toggle_hold(0)
        c.toggle_hold(4)
        assert c.clear_holds() is True
        assert not any(d.held for d in c.dice)

    def test_clear_holds_with_nothing_held_is_rejected(self):
        storage = MemoryStorage()
        c = with_dice(GameCoordinator(storage=storage), 1, 2, 3, 4, 5)
        assert c.clear_holds() is False
        assert c.game_log.entries == []
        assert storage.load(DEFAULT_STORAGE_KEY) is None

    def test_clear_holds_with_nothing_held_keeps_pending_reset(self):
        c = with_dice(GameCoordinator(), 1, 2, 3, 4, 5)
        c.select_category(Category.CHOICE)
        assert c.clear_holds() is False
        assert c.round_reset_pending is True
        assert c.display_dice == tuple(DieState(value=v) for v in (1, 2, 3, 4, 5))


# ═══════════════════════════════════════════════════════════════════════════════
# 3. COMMITTING AND THE DEFERRED ROUND RESET
# ═══════════════════════════════════════════════════════════════════════════════

class TestCommit:

    def test_commit_records_score(self):
        c = with_dice(GameCoordinator(), 2, 2, 3, 3, 3)
        assert c.select_category(Category.FULL_HOUSE) is True
        assert c.sheet.scores[Category.FULL_HOUSE] == 13
        assert c.total_score == 13
        assert c.last_scored_category == Category.FULL_HOUSE
        assert c.current_round == 2

    def test_commit_before_roll_is_rejected(self):
        c = GameCoordinator()
        assert c.can_score(Category.CHOICE) is False
        assert c.select_category(Category.CHOICE) is False
        assert c.round_reset_pending is False
        assert c.sheet.scores[Category.CHOICE] is None

    def test_commit_filled_category_is_rejected(self):
        c = with_dice(GameCoordinator(), 1, 1, 1, 1, 1)
        c.select_category(Category.ONES)
        tick_n(c, c.round_reset_delay)
        c.roll_dice()
        assert c.select_category(Category.ONES) is False
        assert c.sheet.scores[Category.ONES] == 5

    def test_commit_keeps_committed_dice_on_display(self):
        c = with_dice(GameCoordinator(), 6, 6, 6, 6, 5)
        shown = c.dice
        c.select_category(Category.FOUR_KIND)
        assert c.round_reset_pending is True
        assert c.display_dice == shown
        # The engine state already starts the next round
        assert c.rolls_used == 0
        assert c.dice == fresh_dice()

    def test_round_reset_fires_after_delay(self):
        c = with_dice(GameCoordinator(pace="slow"), 1, 2, 3, 4, 5)
        c.select_category(Category.LITTLE_STRAIGHT)
        tick_n(c, PACE_PRESETS["slow"] - 1)
        assert c.round_reset_pending is True
        c.tick()
        assert c.round_reset_pending is False
        assert c.committed_dice is None
        assert c.display_dice == fresh_dice()

    def test_roll_supersedes_pending_reset(self):
        random.seed(4)
        c = with_dice(GameCoordinator(), 1, 2, 3, 4, 5)
        c.select_category(Category.CHOICE)
        assert c.roll_dice() is True
        assert c.round_reset_pending is False
        assert c.committed_dice is None
        assert c.rolls_used == 1
        assert c.display_dice == c.dice

        # The stale reset must not wipe the new roll
        rolled = c.dice
        tick_n(c, PACE_PRESETS["slow"])
        assert c.dice == rolled
        assert c.rolls_used == 1

    def test_hold_supersedes_pending_reset(self):
        c = with_dice(GameCoordinator(), 1, 2, 3, 4, 5)
        c.select_category(Category.CHOICE)
        c.toggle_hold(1)
        assert c.round_reset_pending is False
        tick_n(c, 50)
        assert c.dice[1].held is True

    def test_rejected_action_keeps_pending_reset(self):
        c = with_dice(GameCoordinator(), 1, 2, 3, 4, 5)
        c.select_category(Category.CHOICE)
        assert c.select_category(Category.ONES) is False
        assert c.round_reset_pending is True

    def test_tick_without_pending_reset_is_noop(self):
        c = with_dice(GameCoordinator(), 1, 2, 3, 4, 5)
        before = c.state
        tick_n(c, 100)
        assert c.state is before

    def test_last_turn_summary(self):
        c = GameCoordinator()
        assert c.last_turn_summary() is None
        with_dice(c, 5, 5, 5, 5, 5)
        c.select_category(Category.YACHT)
        assert c.last_turn_summary() == (Category.YACHT, 50)


# ═══════════════════════════════════════════════════════════════════════════════
# 4. GAME FLOW AND RESET
# ═══════════════════════════════════════════════════════════════════════════════

class TestGameFlow:

    def test_full_game_completes(self):
        random.seed(42)
        c = GameCoordinator()
        play_full_game(c)
        assert c.game_over is True
        assert c.current_round == len(Category)
        assert c.total_score == sum(e.score for e in c.game_log.get_score_entries())
        assert c.roll_dice() is False
        assert c.best_category is None

    def test_reset_game(self):
        random.seed(3)
        c = GameCoordinator(pace="fast")
        c.roll_dice()
        c.select_category(Category.CHOICE)
        c.reset_game()
        assert c.total_score == 0
        assert c.rolls_used == 0
        assert c.round_reset_pending is False
        assert c.last_scored_category is None
        assert c.game_log.entries == []
        assert c.pace_name == "fast"

    def test_reset_after_game_over(self):
        random.seed(8)
        c = GameCoordinator()
        play_full_game(c)
        c.reset_game()
        assert c.game_over is False
        assert c.current_round == 1


class TestPace:

    def test_change_pace_faster(self):
        c = GameCoordinator(pace="normal")
        assert c.change_pace(+1) is True
        assert c.pace_name == "fast"
        assert c.round_reset_delay == PACE_PRESETS["fast"]

    def test_change_pace_at_limits(self):
        assert GameCoordinator(pace="fast").change_pace(+1) is False
        assert GameCoordinator(pace="slow").change_pace(-1) is False

    def test_set_pace_ignores_unknown(self):
        c = GameCoordinator()
        c.set_pace("warp")
        assert c.pace_name == "normal"


# ═══════════════════════════════════════════════════════════════════════════════
# 5. GAME LOG
# ═══════════════════════════════════════════════════════════════════════════════

class TestGameLogging:

    def test_roll_is_logged(self):
        random.seed(2)
        c = GameCoordinator()
        c.roll_dice()
        entry = c.game_log.entries[-1]
        assert entry.event_type == "roll"
        assert entry.turn == 1
        assert entry.roll_number == 1
        assert entry.dice_values == tuple(d.value for d in c.dice)

    def test_hold_is_logged(self):
        c = with_dice(GameCoordinator(), 1, 2, 3, 4, 5)
        c.toggle_hold(3)
        entry = c.game_log.entries[-1]
        assert entry.event_type == "hold"
        assert entry.held_indices == (3,)

    def test_commit_logs_committed_dice(self):
        c = with_dice(GameCoordinator(), 4, 4, 4, 1, 1)
        c.select_category(Category.FOURS)
        entry = c.game_log.last_score_entry()
        assert entry.turn == 1
        assert entry.category == Category.FOURS
        assert entry.score == 12
        assert entry.dice_values == (4, 4, 4, 1, 1)


# ═══════════════════════════════════════════════════════════════════════════════
# 6. AUTOSAVE AND RESUME
# ═══════════════════════════════════════════════════════════════════════════════

class TestAutosave:

    def test_no_storage_means_nothing_saved(self):
        c = GameCoordinator()
        c.roll_dice()
        c.save_state()
        assert c.load_state() is None

    def test_every_action_saves(self):
        storage = MemoryStorage()
        c = GameCoordinator(storage=storage)
        c.roll_dice()
        assert storage.load(DEFAULT_STORAGE_KEY)["rolls_used"] == 1
        c.toggle_hold(0)
        assert storage.load(DEFAULT_STORAGE_KEY)["dice"][0]["held"] is True

    def test_rejected_action_does_not_save(self):
        storage = MemoryStorage()
        c = GameCoordinator(storage=storage)
        c.select_category(Category.YACHT)
        assert storage.load(DEFAULT_STORAGE_KEY) is None

    def test_commit_snapshot_is_fresh_round(self):
        storage = MemoryStorage()
        c = with_dice(GameCoordinator(storage=storage), 2, 2, 2, 2, 2)
        c.select_category(Category.TWOS)
        snap = storage.load(DEFAULT_STORAGE_KEY)
        assert snap["rolls_used"] == 0
        assert all(d == {"value": 0, "held": False} for d in snap["dice"])
        assert snap["scores"]["twos"] == 10
        assert snap["scores"]["yacht"] is None

    def test_resume_restores_state(self):
        random.seed(12)
        storage = MemoryStorage()
        c = GameCoordinator(storage=storage)
        c.roll_dice()
        c.select_category(Category.CHOICE)
        c.roll_dice()
        c.toggle_hold(1)

        resumed = GameCoordinator(storage=storage)
        assert resumed.resumed is True
        assert resumed.dice == c.dice
        assert resumed.rolls_used == c.rolls_used
        assert resumed.sheet == c.sheet

    def test_resume_false_starts_fresh(self):
        storage = MemoryStorage()
        c = with_dice(GameCoordinator(storage=storage), 3, 3, 3, 3, 3)
        c.select_category(Category.YACHT)

        fresh = GameCoordinator(storage=storage, resume=False)
        assert fresh.resumed is False
        assert fresh.total_score == 0

    def test_corrupt_snapshot_falls_back_to_fresh(self):
        storage = MemoryStorage()
        storage.save(DEFAULT_STORAGE_KEY, {"dice": "garbage"})
        c = GameCoordinator(storage=storage)
        assert c.resumed is False
        assert c.state == GameState.create_initial()

    def test_file_storage_round_trip(self, tmp_path):
        random.seed(6)
        c = GameCoordinator(storage=JsonFileStorage(tmp_path))
        c.roll_dice()
        path = tmp_path / f"{DEFAULT_STORAGE_KEY}.json"
        assert path.exists()
        assert json.loads(path.read_text())["rolls_used"] == 1

        resumed = GameCoordinator(storage=JsonFileStorage(tmp_path))
        assert resumed.dice == c.dice

    def test_custom_storage_key(self):
        storage = MemoryStorage()
        c = GameCoordinator(storage=storage, storage_key="slot2")
        c.roll_dice()
        assert storage.load("slot2") is not None
        assert storage.load(DEFAULT_STORAGE_KEY) is None

    def test_clear_saved_game(self):
        storage = MemoryStorage()
        c = GameCoordinator(storage=storage)
        c.roll_dice()
        c.clear_saved_game()
        assert storage.load(DEFAULT_STORAGE_KEY) is None
        assert GameCoordinator(storage=storage).resumed is False

    def test_clear_saved_game_without_storage(self):
        GameCoordinator().clear_saved_game()


class TestSnapshot:

    def valid(self):
        return GameCoordinator.state_to_snapshot(GameState.create_initial())

    def test_round_trip(self):
        state = replace(
            GameState.create_initial(),
            dice=(DieState(1, True), DieState(2), DieState(3), DieState(4, True), DieState(6)),
            rolls_used=2,
        )
        state = replace(state, sheet=state.sheet.with_score(Category.SIXES, 18))
        snap = GameCoordinator.state_to_snapshot(state)
        assert GameCoordinator.snapshot_to_state(json.loads(json.dumps(snap))) == state

    def test_unknown_score_keys_are_ignored(self):
        snap = self.valid()
        snap["scores"]["bonus"] = 35
        assert GameCoordinator.snapshot_to_state(snap) == GameState.create_initial()

    @pytest.mark.parametrize("mutate", [
        lambda s: s.pop("dice"),
        lambda s: s.__setitem__("dice", s["dice"][:4]),
        lambda s: s["dice"][0].__setitem__("value", 7),
        lambda s: s["dice"][0].__setitem__("value", "6"),
        lambda s: s["dice"][0].__setitem__("held", "yes"),
        lambda s: s.__setitem__("rolls_used", 4),
        lambda s: s.__setitem__("rolls_used", -1),
        lambda s: s["scores"].__setitem__("ones", -5),
        lambda s: s["scores"].__setitem__("ones", "5"),
        lambda s: s.__setitem__("scores", []),
    ])
    def test_invalid_snapshots_are_rejected(self, mutate):
        snap = self.valid()
        mutate(snap)
        assert GameCoordinator.snapshot_to_state(snap) is None

    def test_rolled_round_with_unrolled_die_is_rejected(self):
        snap = self.valid()
        snap["rolls_used"] = 1
        assert GameCoordinator.snapshot_to_state(snap) is None


# ═══════════════════════════════════════════════════════════════════════════════
# 7. CLI PARSING
# ═══════════════════════════════════════════════════════════════════════════════

class TestParseArgs:

    def test_defaults(self):
        args = parse_args([])
        assert args.fresh is False
        assert args.pace is None
        assert args.save_dir is None

    def test_all_options(self):
        args = parse_args(["--fresh", "--pace", "fast", "--save-dir", "/tmp/yacht"])
        assert args.fresh is True
        assert args.pace == "fast"
        assert args.save_dir == "/tmp/yacht"

    def test_invalid_pace_exits(self):
        with pytest.raises(SystemExit):
            parse_args(["--pace", "turbo"])
