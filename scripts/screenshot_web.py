#!/usr/bin/env python3
"""Web UI screenshot checks with automated DOM assertions.

Takes screenshots of the web UI in various states and runs programmatic
checks on the DOM (viewport overflow, held labels, score sheet rows,
overlay visibility).

Usage:
    python web.py --port 5099 --save-dir /tmp/yacht-shots &
    python scripts/screenshot_web.py

Requires: playwright (playwright install chromium)
"""
import os
import sys
import time

from playwright.sync_api import sync_playwright

BASE = "http://127.0.0.1:5099"
SHOTS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "screenshots")
NUM_CATEGORIES = 12

# Runs in-browser; returns a list of human-readable issue strings (empty = all good).
CHECK_LAYOUT_JS = """(numCategories) => {
    const issues = [];

    const vw = window.innerWidth;
    ['#dice', '#sheet', '#roll-btn'].forEach(sel => {
        const el = document.querySelector(sel);
        if (el) {
            const r = el.getBoundingClientRect();
            if (r.right > vw + 2)
                issues.push(`${sel} overflows viewport ` +
                    `(right=${r.right.toFixed(0)}, viewport_width=${vw})`);
        }
    });

    const dice = document.querySelectorAll('#dice .die');
    if (dice.length !== 5)
        issues.push(`Expected 5 dice, found ${dice.length}`);

    document.querySelectorAll('.die.held').forEach((d, i) => {
        if (!d.querySelector('.tag'))
            issues.push(`Held die ${i+1} has no hold tag`);
    });

    const rows = document.querySelectorAll('tr.category-row');
    if (rows.length !== numCategories)
        issues.push(`Score sheet has ${rows.length} rows, expected ${numCategories}`);

    document.querySelectorAll('tr.category-row.filled.best').forEach(r => {
        issues.push(`Row "${r.cells[0].textContent}" is filled but highlighted as best`);
    });

    return issues;
}"""


def check_layout(page, name):
    """Run DOM layout assertions via in-browser JavaScript."""
    issues = page.evaluate(CHECK_LAYOUT_JS, NUM_CATEGORIES)
    if issues:
        raise AssertionError(
            f"Layout issues in '{name}':\n" +
            "\n".join(f"  - {issue}" for issue in issues)
        )


def screenshot(page, filename, label):
    """Take a screenshot and run layout checks."""
    path = os.path.join(SHOTS_DIR, filename)
    page.screenshot(path=path)
    print(f"  screenshot: {filename}")
    check_layout(page, label)
    print(f"  ✓ DOM checks passed: {label}")


def run_checks():
    os.makedirs(SHOTS_DIR, exist_ok=True)
    failures = []

    with sync_playwright() as p:
        browser = p.chromium.launch()

        def open_game(viewport=None):
            page = browser.new_page(viewport=viewport or {"width": 1000, "height": 800})
            page.goto(f"{BASE}/game?resume=false")
            page.wait_for_selector("#dice .die")
            return page

        def check_landing():
            page = browser.new_page(viewport={"width": 1000, "height": 800})
            try:
                page.goto(BASE)
                page.wait_for_load_state("networkidle")
                page.screenshot(path=os.path.join(SHOTS_DIR, "01_landing.png"))
                assert page.query_selector("#new-btn"), "Landing page has no New game button"
            finally:
                page.close()

        def check_initial():
            page = open_game()
            try:
                screenshot(page, "02_game_initial.png", "initial game state")
            finally:
                page.close()

        def check_roll_and_hold():
            page = open_game()
            try:
                page.keyboard.press("Space")
                time.sleep(0.3)
                page.keyboard.press("1")
                page.keyboard.press("3")
                time.sleep(0.3)
                screenshot(page, "03_held_dice.png", "held dice")
                held = page.evaluate("() => document.querySelectorAll('.die.held').length")
                assert held == 2, f"Expected 2 held dice, got {held}"
            finally:
                page.close()

        def check_commit():
            page = open_game()
            try:
                page.keyboard.press("Space")
                time.sleep(0.3)
                page.click("tr.category-row:nth-child(7) button")
                time.sleep(1.5)
                screenshot(page, "04_after_commit.png", "after commit")
                filled = page.evaluate("() => document.querySelectorAll('tr.category-row.filled').length")
                assert filled == 1, f"Expected 1 filled row, got {filled}"
            finally:
                page.close()

        def check_mobile():
            page = open_game(viewport={"width": 390, "height": 844})
            try:
                screenshot(page, "05_mobile.png", "mobile viewport")
            finally:
                page.close()

        for check in (check_landing, check_initial, check_roll_and_hold, check_commit, check_mobile):
            print(check.__name__)
            try:
                check()
            except AssertionError as e:
                failures.append(f"{check.__name__}: {e}")
                print(f"  ✗ {e}")

        browser.close()

    if failures:
        print(f"\n{len(failures)} check(s) failed")
        return 1
    print("\nAll checks passed")
    return 0


if __name__ == "__main__":
    sys.exit(run_checks())
