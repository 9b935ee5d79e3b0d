#!/usr/bin/env python3
"""
Yacht TUI — Terminal-based frontend using Textual.

Keyboard-driven interface with box-art dice, a score sheet table, and
help/history/replay overlays.
"""
import logging

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, Center
from textual.screen import ModalScreen
from textual.widgets import Button, Footer, Header, Static
from textual import on

from game_engine import MAX_ROLLS
from game_coordinator import GameCoordinator, parse_args
from frontend_adapter import (
    FrontendAdapter,
    CATEGORY_ORDER, CATEGORY_LABELS, CATEGORY_TOOLTIPS,
)
from storage import JsonFileStorage

logger = logging.getLogger(__name__)


# ── Box-art die faces ─────────────────────────────────────────────────────────

BOX_ART = {
    1: [
        "┌───────┐",
        "│       │",
        "│   ●   │",
        "│       │",
        "└───────┘",
    ],
    2: [
        "┌───────┐",
        "│ ●     │",
        "│       │",
        "│     ● │",
        "└───────┘",
    ],
    3: [
        "┌───────┐",
        "│ ●     │",
        "│   ●   │",
        "│     ● │",
        "└───────┘",
    ],
    4: [
        "┌───────┐",
        "│ ●   ● │",
        "│       │",
        "│ ●   ● │",
        "└───────┘",
    ],
    5: [
        "┌───────┐",
        "│ ●   ● │",
        "│   ●   │",
        "│ ●   ● │",
        "└───────┘",
    ],
    6: [
        "┌───────┐",
        "│ ●   ● │",
        "│ ●   ● │",
        "│ ●   ● │",
        "└───────┘",
    ],
    # Unrolled
    0: [
        "┌───────┐",
        "│       │",
        "│   ?   │",
        "│       │",
        "└───────┘",
    ],
}

BOX_ART_HELD = {
    v: [
        line.replace("┌", "╔").replace("┐", "╗")
        .replace("└", "╚").replace("┘", "╝")
        .replace("─", "═").replace("│", "║")
        for line in lines
    ]
    for v, lines in BOX_ART.items()
}


def render_dice_box(dice, colorblind=False):
    """Render 5 dice as box art, side by side, with hold labels underneath."""
    lines = []
    for row in range(5):
        parts = []
        for die in dice:
            art = BOX_ART_HELD if die.held else BOX_ART
            parts.append(art[die.value][row])
        lines.append("  ".join(parts))

    label_parts = []
    for i, die in enumerate(dice):
        held_label = ""
        if die.held:
            held_label = " [H]" if colorblind else " HELD"
        label_parts.append(f"  [{i+1}]{held_label}".ljust(11))
    lines.append("".join(label_parts))
    return "\n".join(lines)


# ── Widgets ──────────────────────────────────────────────────────────────────

class DiceDisplay(Static):
    """Renders the 5 dice using box art."""

    def render(self):
        app = self.app
        return render_dice_box(
            app.coordinator.display_dice,
            colorblind=app.adapter.colorblind_mode,
        )


class StatusDisplay(Static):
    """Shows roll status and the last commit."""

    def render(self):
        coord = self.app.coordinator
        lines = []

        if coord.game_over:
            lines.append("[bold]GAME OVER![/bold]")
        elif coord.round_reset_pending:
            category, score = coord.last_turn_summary()
            lines.append(f"[bold]{CATEGORY_LABELS[category]}: {score}[/bold]")
        elif coord.rolls_used == 0:
            lines.append("[bold]Roll the dice![/bold]")
        else:
            lines.append(f"Rolls left: {coord.rolls_left}")

        return "\n".join(lines)


class ScorecardDisplay(Static):
    """Renders the score sheet as a text table."""

    def render(self):
        app = self.app
        coord = app.coordinator
        adapter = app.adapter
        sheet = coord.sheet
        potential = coord.potential_scores() if coord.rolls_used > 0 else {}
        hint = adapter.hint_category

        lines = ["[bold]── SCORE SHEET ──[/bold]"]
        for cat in CATEGORY_ORDER:
            lines.append(self._format_row(cat, sheet, potential, hint, adapter))
        lines.append(f"[bold]  TOTAL: {sheet.total()}[/bold]")

        tooltip_cat = adapter.tooltip_category
        if tooltip_cat is not None and not sheet.is_filled(tooltip_cat):
            lines.append(f"\n[dim]{CATEGORY_TOOLTIPS[tooltip_cat]}[/dim]")

        return "\n".join(lines)

    def _format_row(self, cat, sheet, potential, hint, adapter):
        """Format a single score sheet row."""
        label = CATEGORY_LABELS[cat]
        is_selected = adapter.selected_category == cat
        marker = ">>" if is_selected else "  "

        if sheet.is_filled(cat):
            score = sheet.scores[cat]
            if adapter.score_flash_category == cat:
                return f"{marker}[bold yellow]{label:<18} {score:>3}[/bold yellow]"
            return f"{marker}{label:<18} {score:>3}"

        if cat not in potential:
            return f"{marker}[dim]{label:<18}  — [/dim]"

        score = potential[cat]
        if is_selected:
            return f"{marker}[bold]{label:<18} ({score:>3})[/bold]"
        elif cat == hint:
            star = "*" if adapter.colorblind_mode else ""
            return f"{marker}[bold green]{label:<18} ({score:>3}){star}[/bold green]"
        elif score > 0:
            return f"{marker}[green]{label:<18} ({score:>3})[/green]"
        return f"{marker}[dim]{label:<18} ({score:>3})[/dim]"


class GameOverDisplay(Static):
    """Shows game over summary."""

    def render(self):
        app = self.app
        coord = app.coordinator

        if not coord.game_over:
            return ""

        lines = ["", "[bold]═══ GAME OVER ═══[/bold]", ""]
        lines.append(f"Final Score: [bold]{coord.total_score}[/bold]")
        best = app.adapter.get_high_scores(limit=1)
        if best:
            lines.append(f"Best so far: {best[0].get('score', '?')}")
        lines.append("")
        lines.append("[dim]Press N for new game, R for replay[/dim]")
        return "\n".join(lines)


# ── Modal Screens ────────────────────────────────────────────────────────────

class HelpScreen(ModalScreen):
    """Help overlay showing key bindings."""

    BINDINGS = [
        Binding("escape", "dismiss", "Close"),
        Binding("question_mark", "dismiss", "Close"),
        Binding("f1", "dismiss", "Close"),
    ]

    def compose(self) -> ComposeResult:
        controls = [
            ("Space", "Roll dice"),
            ("1-5", "Toggle die hold"),
            ("X", "Release all holds"),
            ("Tab / ↓", "Next category"),
            ("Shift+Tab / ↑", "Previous category"),
            ("Enter", "Score selected category"),
            ("H", "Score history"),
            ("B", "Best-category hint"),
            ("+/-", "Pace"),
            ("C", "Colorblind mode"),
            ("D", "Dark mode"),
            ("R", "Game replay (after game)"),
            ("N", "New game"),
            ("Esc", "Close overlay / Quit"),
            ("? / F1", "This help screen"),
        ]
        text = "[bold]CONTROLS[/bold]\n\n"
        for key, desc in controls:
            text += f"  {key:<20} {desc}\n"
        text += f"\nUp to {MAX_ROLLS} rolls per round, then commit one empty category."
        text += "\nA category that doesn't fit scores 0.\n"
        text += "\n[dim]Press Esc or ? to close[/dim]"
        yield Center(Static(text, id="help-panel"))


class HistoryScreen(ModalScreen):
    """Score history overlay."""

    BINDINGS = [
        Binding("escape", "dismiss", "Close"),
        Binding("h", "dismiss", "Close"),
    ]

    def compose(self) -> ComposeResult:
        yield Center(Static(self._build_text(), id="history-panel"))

    def _build_text(self):
        adapter = self.app.adapter
        entries = adapter.get_recent_history(limit=20)
        high = adapter.get_high_scores(limit=1)

        text = "[bold]SCORE HISTORY[/bold]\n"
        if high:
            text += f"High score: {high[0].get('score', '?')}\n"
        text += "─" * 40 + "\n"
        text += f"{'#':<4} {'Score':<8} {'Date':<12}\n"
        text += "─" * 40 + "\n"

        if not entries:
            text += "\n  No scores recorded yet.\n"
        else:
            for i, entry in enumerate(entries):
                score = entry.get("score", "?")
                date = str(entry.get("date", ""))[:10]
                text += f"{i+1:<4} {score:<8} {date:<12}\n"

        text += "\n[dim]H or Esc to close[/dim]"
        return text


class ReplayScreen(ModalScreen):
    """Post-game replay overlay."""

    BINDINGS = [
        Binding("escape", "dismiss", "Close"),
        Binding("r", "dismiss", "Close"),
    ]

    def compose(self) -> ComposeResult:
        yield Center(Static(self._build_text(), id="replay-panel"))

    def _build_text(self):
        rows = self.app.adapter.get_replay_rows()

        text = "[bold]GAME REPLAY[/bold]\n\n"
        if not rows:
            text += "  No replay data available.\n"
        for row in rows:
            dice_str = " → ".join(f"[{','.join(str(v) for v in r)}]" for r in row["rolls"])
            line = f"Round {row['turn']}: {dice_str} → {CATEGORY_LABELS[row['category']]}: {row['score']}"
            if len(line) > 70:
                line = line[:67] + "..."
            text += f"  {line}\n"

        text += "\n[dim]R or Esc to close[/dim]"
        return text


class ConfirmZeroScreen(ModalScreen[bool]):
    """Confirm scoring 0 dialog."""

    BINDINGS = [
        Binding("y", "confirm", "Yes"),
        Binding("enter", "confirm", "Yes"),
        Binding("n", "cancel", "No"),
        Binding("escape", "cancel", "No"),
    ]

    def __init__(self, category_name: str):
        super().__init__()
        self.category_name = category_name

    def compose(self) -> ComposeResult:
        text = f"[bold]Score 0 in {self.category_name}?[/bold]\n\n"
        text += "Y / Enter to confirm,  N / Esc to cancel"
        yield Center(Static(text, id="confirm-panel"))

    def action_confirm(self):
        self.dismiss(True)

    def action_cancel(self):
        self.dismiss(False)


# ── Main App ─────────────────────────────────────────────────────────────────

class YachtApp(App):
    """Yacht terminal UI application."""

    CSS = """
    Screen {
        layout: vertical;
    }

    #game-area {
        layout: horizontal;
        height: 1fr;
    }

    #dice-panel {
        width: 60;
        padding: 1 2;
    }

    #scorecard-panel {
        width: 1fr;
        padding: 1 2;
    }

    #round-display {
        height: auto;
        padding: 0 2;
    }

    #dice-display {
        height: auto;
    }

    #status-display {
        height: auto;
        margin-top: 1;
    }

    #roll-btn {
        margin-top: 1;
        width: 20;
    }

    #game-over-display {
        height: auto;
    }

    #help-panel, #history-panel, #replay-panel, #confirm-panel {
        padding: 2 4;
        border: thick $accent;
        background: $surface;
        width: 70;
        height: auto;
        max-height: 80vh;
    }
    """

    BINDINGS = [
        Binding("space", "roll", "Roll", show=True),
        Binding("1", "hold_1", "Hold 1"),
        Binding("2", "hold_2", "Hold 2"),
        Binding("3", "hold_3", "Hold 3"),
        Binding("4", "hold_4", "Hold 4"),
        Binding("5", "hold_5", "Hold 5"),
        Binding("x", "clear_holds", "Release all"),
        Binding("tab", "next_cat", "Next category", show=True),
        Binding("shift+tab", "prev_cat", "Prev category"),
        Binding("down", "next_cat", "Next"),
        Binding("up", "prev_cat", "Prev"),
        Binding("enter", "score", "Score", show=True),
        Binding("question_mark", "help", "Help"),
        Binding("f1", "help", "Help"),
        Binding("h", "history", "History"),
        Binding("r", "replay", "Replay"),
        Binding("b", "best_hint", "Hint"),
        Binding("c", "colorblind", "Colorblind"),
        Binding("d", "dark", "Dark mode"),
        Binding("plus", "pace_up", "+Pace"),
        Binding("equals", "pace_up", "+Pace"),
        Binding("minus", "pace_down", "-Pace"),
        Binding("n", "new_game", "New game"),
        Binding("escape", "quit_or_close", "Quit"),
    ]

    def __init__(self, coordinator=None, pace=None):
        super().__init__()
        self.coordinator = coordinator if coordinator is not None else GameCoordinator()
        self.adapter = FrontendAdapter(self.coordinator)
        self._pace_override = pace
        self._tick_timer = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("", id="round-display")
        with Horizontal(id="game-area"):
            with Vertical(id="dice-panel"):
                yield DiceDisplay(id="dice-display")
                yield Button("ROLL", id="roll-btn", variant="primary")
                yield StatusDisplay(id="status-display")
                yield GameOverDisplay(id="game-over-display")
            with Vertical(id="scorecard-panel"):
                yield ScorecardDisplay(id="scorecard-display")
        yield Footer()

    def on_mount(self):
        self.title = "Yacht"
        self.adapter.load_settings()
        if self._pace_override:
            self.coordinator.set_pace(self._pace_override)
        self._apply_theme()
        self._tick_timer = self.set_interval(1 / 20, self._game_tick)

    def _apply_theme(self):
        self.theme = "textual-dark" if self.adapter.dark_mode else "textual-light"

    def _game_tick(self):
        """Per-frame game update at ~20 FPS."""
        if self.adapter.update()["game_over_triggered"]:
            logger.info("Game finished with %d points", self.coordinator.total_score)
        self._refresh_display()

    def _refresh_display(self):
        """Refresh all display widgets."""
        try:
            self.query_one("#dice-display", DiceDisplay).refresh()
            self.query_one("#status-display", StatusDisplay).refresh()
            self.query_one("#scorecard-display", ScorecardDisplay).refresh()
            self.query_one("#round-display", Static).update(self._round_text())
            self.query_one("#game-over-display", GameOverDisplay).refresh()
            self.query_one("#roll-btn", Button).disabled = not self.coordinator.can_roll_now
        except Exception:
            logger.debug("Refresh error", exc_info=True)

    def _round_text(self):
        """Build round/pace text."""
        coord = self.coordinator
        return (f"Round {coord.current_round}/{len(CATEGORY_ORDER)}"
                f" | Total: {coord.total_score}"
                f" | Pace: {coord.pace_name.capitalize()}")

    # ── Actions ──────────────────────────────────────────────────────────

    def _can_play(self):
        """Whether input is allowed right now."""
        return not self.coordinator.game_over

    def action_roll(self):
        if not self._can_play():
            return
        self.adapter.do_roll()
        self._refresh_display()

    @on(Button.Pressed, "#roll-btn")
    def on_roll_button(self):
        self.action_roll()

    def action_hold_1(self):
        self._do_hold(0)

    def action_hold_2(self):
        self._do_hold(1)

    def action_hold_3(self):
        self._do_hold(2)

    def action_hold_4(self):
        self._do_hold(3)

    def action_hold_5(self):
        self._do_hold(4)

    def _do_hold(self, index):
        if not self._can_play():
            return
        self.adapter.do_hold(index)
        self._refresh_display()

    def action_clear_holds(self):
        if not self._can_play():
            return
        self.adapter.do_clear_holds()
        self._refresh_display()

    def action_next_cat(self):
        if not self._can_play():
            return
        self.adapter.navigate_category(+1)
        self._refresh_display()

    def action_prev_cat(self):
        if not self._can_play():
            return
        self.adapter.navigate_category(-1)
        self._refresh_display()

    def action_score(self):
        if not self._can_play():
            return
        adapter = self.adapter
        cat = adapter.selected_category
        if cat is None or not self.coordinator.can_score(cat):
            return

        if adapter.try_score_category(cat):
            self._refresh_display()
            return

        if adapter.confirm_zero_category is not None:
            def on_confirm(result: bool):
                if result:
                    adapter.confirm_zero_yes()
                else:
                    adapter.confirm_zero_no()
                self._refresh_display()
            self.push_screen(ConfirmZeroScreen(CATEGORY_LABELS[cat]), on_confirm)

    def action_help(self):
        self.push_screen(HelpScreen())

    def action_history(self):
        self.push_screen(HistoryScreen())

    def action_replay(self):
        if self.coordinator.game_over:
            self.push_screen(ReplayScreen())

    def action_best_hint(self):
        self.adapter.toggle_best_hint()
        self._refresh_display()

    def action_colorblind(self):
        self.adapter.toggle_colorblind()
        self._refresh_display()

    def action_dark(self):
        self.adapter.toggle_dark_mode()
        self._apply_theme()
        self._refresh_display()

    def action_pace_up(self):
        self.adapter.change_pace(+1)
        self._refresh_display()

    def action_pace_down(self):
        self.adapter.change_pace(-1)
        self._refresh_display()

    def action_new_game(self):
        self.adapter.do_reset()
        self._refresh_display()

    def action_quit_or_close(self):
        # If any screen is stacked, pop it
        if len(self.screen_stack) > 1:
            self.pop_screen()
        else:
            self.exit()


def main(argv=None):
    """Entry point for the TUI."""
    args = parse_args(argv)
    coordinator = GameCoordinator(
        storage=JsonFileStorage(args.save_dir),
        resume=not args.fresh,
    )
    if args.fresh:
        coordinator.clear_saved_game()
    elif coordinator.resumed:
        logger.info("Resumed saved game at round %d", coordinator.current_round)

    app = YachtApp(coordinator=coordinator, pace=args.pace)
    app.run()


if __name__ == "__main__":
    main()
