"""
Yacht Game Engine - Pure game logic without any frontend dependencies

This module contains the scoring rules and round/roll state machine for Yacht.
It uses immutable data structures and pure functions so every rule can be unit
tested without a UI, a clock, or storage.
"""
from dataclasses import dataclass, replace
from typing import Optional, Tuple
from enum import Enum
from collections import Counter
import random

NUM_DICE = 5
MAX_ROLLS = 3
UNROLLED = 0  # face shown by a die that has not been rolled this round

LITTLE_STRAIGHT_SCORE = 30
BIG_STRAIGHT_SCORE = 30
YACHT_SCORE = 50


class Category(Enum):
    """Yacht score categories, in scorecard order"""
    ONES = "ones"
    TWOS = "twos"
    THREES = "threes"
    FOURS = "fours"
    FIVES = "fives"
    SIXES = "sixes"
    CHOICE = "choice"
    FOUR_KIND = "fourKind"
    FULL_HOUSE = "fullHouse"
    LITTLE_STRAIGHT = "littleStraight"
    BIG_STRAIGHT = "bigStraight"
    YACHT = "yacht"


_UPPER_FACE = {
    Category.ONES: 1, Category.TWOS: 2, Category.THREES: 3,
    Category.FOURS: 4, Category.FIVES: 5, Category.SIXES: 6,
}


class ScoreSheet:
    """Manages the Yacht score sheet"""

    def __init__(self):
        """Initialize an empty score sheet"""
        # None = not recorded yet
        self.scores = {category: None for category in Category}

    def is_filled(self, category):
        """Check if a category has been recorded"""
        return self.scores[category] is not None

    def set_score(self, category, score):
        """Record the score for a category. A filled category is never overwritten."""
        if not self.is_filled(category):
            self.scores[category] = score

    def filled_count(self):
        """Number of categories recorded so far"""
        return sum(1 for score in self.scores.values() if score is not None)

    def open_categories(self):
        """Unfilled categories in scorecard order"""
        return [cat for cat in Category if self.scores[cat] is None]

    def total(self):
        """Sum of all recorded scores (unfilled categories contribute nothing)"""
        return sum(score for score in self.scores.values() if score is not None)

    def is_complete(self):
        """Check if all categories are filled"""
        return all(score is not None for score in self.scores.values())

    def copy(self):
        new_sheet = ScoreSheet()
        new_sheet.scores = self.scores.copy()
        return new_sheet

    def with_score(self, category, score):
        """Return new ScoreSheet with score set for category"""
        new_sheet = self.copy()
        new_sheet.set_score(category, score)
        return new_sheet

    def __eq__(self, other):
        if not isinstance(other, ScoreSheet):
            return NotImplemented
        return self.scores == other.scores

    def __repr__(self):
        filled = {cat.value: s for cat, s in self.scores.items() if s is not None}
        return f"ScoreSheet({filled})"


def _faces(dice):
    """Die faces of a dice sequence (DieState objects or bare ints)."""
    return [getattr(die, "value", die) for die in dice]


def count_values(dice):
    """
    Count occurrences of each rolled face (1-6)

    Works with DieState objects or bare integer faces. Unrolled dice
    (value 0) are not counted, so they never match any face.

    Args:
        dice: Sequence of dice

    Returns:
        Counter object with faces 1-6 as keys
    """
    return Counter(v for v in _faces(dice) if 1 <= v <= 6)


def has_n_of_kind(dice, n):
    """
    Check if dice contain at least n of the same face

    Args:
        dice: Sequence of dice
        n: Number of matching dice required

    Returns:
        True if at least n dice show the same face
    """
    counts = count_values(dice)
    return bool(counts) and max(counts.values()) >= n


def has_full_house(dice):
    """
    Check if dice form a full house (exactly 3 of one face and 2 of another)

    Five of a kind is deliberately not a full house.
    """
    counts = count_values(dice)
    return sorted(counts.values()) == [2, 3]


def has_little_straight(dice):
    """Check for exactly 1-2-3-4-5 (each face once, no 6)"""
    counts = count_values(dice)
    return all(counts[f] == 1 for f in (1, 2, 3, 4, 5)) and counts[6] == 0


def has_big_straight(dice):
    """Check for exactly 2-3-4-5-6 (each face once, no 1)"""
    counts = count_values(dice)
    return all(counts[f] == 1 for f in (2, 3, 4, 5, 6)) and counts[1] == 0


def has_yacht(dice):
    """Check if all five dice show the same rolled face"""
    return any(c == NUM_DICE for c in count_values(dice).values())


def four_kind_score(dice):
    """
    Score the four matching dice of a four (or five) of a kind

    The fifth die is ignored whatever its face. Faces are checked from 6
    down so the highest qualifying face wins.

    Returns:
        4 * face, or 0 if no face appears at least four times
    """
    counts = count_values(dice)
    for face in range(6, 0, -1):
        if counts[face] >= 4:
            return face * 4
    return 0


def calculate_score(category, dice):
    """
    Calculate the score for a given category and dice

    Pure and total: any dice give an integer, 0 when the category
    doesn't qualify.

    Args:
        category: Category enum value
        dice: Sequence of dice (DieState objects or bare integer faces)

    Returns:
        Integer score for the category
    """
    counts = count_values(dice)

    # Upper section - sum of matching dice
    if category in _UPPER_FACE:
        face = _UPPER_FACE[category]
        return counts[face] * face

    # Choice - sum of all dice
    elif category == Category.CHOICE:
        return sum(face * n for face, n in counts.items())

    elif category == Category.FOUR_KIND:
        return four_kind_score(dice)

    # Full house - sum of all dice
    elif category == Category.FULL_HOUSE:
        return sum(face * n for face, n in counts.items()) if has_full_house(dice) else 0

    elif category == Category.LITTLE_STRAIGHT:
        return LITTLE_STRAIGHT_SCORE if has_little_straight(dice) else 0

    elif category == Category.BIG_STRAIGHT:
        return BIG_STRAIGHT_SCORE if has_big_straight(dice) else 0

    elif category == Category.YACHT:
        return YACHT_SCORE if has_yacht(dice) else 0

    return 0


@dataclass(frozen=True)
class DieState:
    """Pure representation of a single die's state - immutable"""
    value: int = UNROLLED  # 0 = unrolled, otherwise 1-6
    held: bool = False

    @property
    def is_rolled(self) -> bool:
        return self.value != UNROLLED

    def roll(self) -> 'DieState':
        """Return new DieState with a random face.

        A held die keeps its face. An unrolled die has no face to keep,
        so it is rolled even when held.
        """
        if self.held and self.is_rolled:
            return self
        return replace(self, value=random.randint(1, 6))

    def toggle_held(self) -> 'DieState':
        """Return new DieState with held status toggled"""
        return replace(self, held=not self.held)


def fresh_dice() -> Tuple[DieState, ...]:
    """Five unrolled, unheld dice"""
    return tuple(DieState() for _ in range(NUM_DICE))


@dataclass(frozen=True)
class GameState:
    """Immutable game state - the current round plus the score sheet"""
    dice: Tuple[DieState, ...]  # 5 dice (tuple for immutability)
    sheet: ScoreSheet
    rolls_used: int = 0  # 0-3

    @property
    def game_over(self) -> bool:
        return self.sheet.is_complete()

    @property
    def current_round(self) -> int:
        """Round number, 1 through the number of categories"""
        return min(self.sheet.filled_count() + 1, len(Category))

    @staticmethod
    def create_initial():
        """Create a fresh game state"""
        return GameState(dice=fresh_dice(), sheet=ScoreSheet(), rolls_used=0)


# Game Action Functions

def can_roll(state: GameState) -> bool:
    """
    Check if player can roll dice.

    Player can roll if the game is not over and fewer than 3 rolls were
    used this round.
    """
    return not state.game_over and state.rolls_used < MAX_ROLLS


def can_select_category(state: GameState, category: Category) -> bool:
    """
    Check if a category can be committed right now.

    Requires at least one roll this round and the category still empty.
    """
    return state.rolls_used > 0 and not state.sheet.is_filled(category)


def roll_dice(state: GameState) -> GameState:
    """
    Roll all unheld dice and increment roll counter.

    If already rolled 3 times or the game is over, returns state unchanged.

    Args:
        state: Current game state

    Returns:
        New GameState with rolled dice
    """
    if not can_roll(state):
        return state

    new_dice = tuple(die.roll() for die in state.dice)
    return replace(state,
                   dice=new_dice,
                   rolls_used=state.rolls_used + 1)


def toggle_die_hold(state: GameState, die_index: int) -> GameState:
    """
    Toggle hold status of a specific die.

    Allowed at any time, including before the first roll. An invalid
    index returns state unchanged.

    Args:
        state: Current game state
        die_index: Index of die to toggle (0-4)

    Returns:
        New GameState with die hold toggled
    """
    if not (0 <= die_index < NUM_DICE):
        return state

    dice_list = list(state.dice)
    dice_list[die_index] = dice_list[die_index].toggle_held()
    return replace(state, dice=tuple(dice_list))


def clear_holds(state: GameState) -> GameState:
    """Release every held die."""
    return replace(state, dice=tuple(replace(die, held=False) for die in state.dice))


def start_new_round(state: GameState) -> GameState:
    """
    Reset dice and roll counter for a new round.

    Idempotent: a state that is already at the start of a round comes
    back unchanged.
    """
    if state.rolls_used == 0 and state.dice == fresh_dice():
        return state
    return replace(state, dice=fresh_dice(), rolls_used=0)


def select_category(state: GameState, category: Category) -> GameState:
    """
    Commit the current dice to a category and start a new round.

    Records calculate_score() for the category (0 is a legal forfeit) and
    resets dice and rolls. Returns state unchanged if nothing has been
    rolled this round or the category is already filled.

    Args:
        state: Current game state
        category: Category to score

    Returns:
        New GameState with category scored and a fresh round
    """
    if not can_select_category(state, category):
        return state

    score = calculate_score(category, state.dice)
    new_sheet = state.sheet.with_score(category, score)
    return start_new_round(replace(state, sheet=new_sheet))


def best_category(state: GameState) -> Optional[Category]:
    """
    Suggest the open category worth the most for the current dice.

    Ties go to the category listed first. Advisory only; it never limits
    what can be committed.

    Returns:
        Category, or None when every category is filled
    """
    best = None
    best_score = -1
    for cat in state.sheet.open_categories():
        score = calculate_score(cat, state.dice)
        if score > best_score:
            best, best_score = cat, score
    return best


def reset_game() -> GameState:
    """
    Create a fresh game state (equivalent to starting over).

    Returns:
        New GameState with initial values
    """
    return GameState.create_initial()
