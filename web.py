#!/usr/bin/env python3
"""
Yacht Web — Flask + WebSocket server for browser-based play.

Each WebSocket connection gets its own GameCoordinator instance, saving to
the shared game storage. State is pushed to the client as JSON snapshots at
~30 FPS. All coordinator access goes through one lock per connection.
"""
import json
import logging
import threading
import time

from flask import Flask, render_template, request
from flask_sock import Sock

from game_engine import Category
from game_coordinator import DEFAULT_STORAGE_KEY, PACE_NAMES, GameCoordinator
from frontend_adapter import FrontendAdapter
from storage import JsonFileStorage

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config.setdefault("SAVE_DIR", None)
app.config.setdefault("FRESH", False)
app.config.setdefault("PACE", None)
sock = Sock(app)


def _storage():
    return JsonFileStorage(app.config["SAVE_DIR"])


@app.route("/")
def index():
    """Landing page — offers to resume a saved game."""
    saved = _storage().load(DEFAULT_STORAGE_KEY)
    has_autosave = saved is not None and GameCoordinator.snapshot_to_state(saved) is not None
    return render_template("index.html", has_autosave=has_autosave)


@app.route("/game")
def game():
    """Main game page — connects to WebSocket for real-time play."""
    return render_template("game.html")


def _open_game(resume, settings_path=None, history_path=None):
    """Build the adapter for one connection.

    A fresh game drops the stored one; the --pace flag wins over the saved setting.
    """
    coordinator = GameCoordinator(storage=_storage(), resume=resume)
    if not resume:
        coordinator.clear_saved_game()

    adapter = FrontendAdapter(coordinator, settings_path=settings_path, history_path=history_path)
    adapter.load_settings()
    if app.config["PACE"]:
        coordinator.set_pace(app.config["PACE"])
    return adapter


@sock.route("/ws")
def websocket(ws):
    """WebSocket handler — one game per connection."""
    default = "false" if app.config["FRESH"] else "true"
    resume = request.args.get("resume", default) == "true"

    adapter = _open_game(resume)
    lock = threading.Lock()
    running = True

    def tick_loop():
        """Background thread: tick coordinator and push state at ~30 FPS."""
        nonlocal running
        while running:
            try:
                with lock:
                    adapter.update()
                    snapshot = adapter.get_game_snapshot()
                ws.send(json.dumps(snapshot))
            except Exception:
                logger.error("Tick loop error", exc_info=True)
                running = False
                break
            time.sleep(1 / 30)

    tick_thread = threading.Thread(target=tick_loop, daemon=True)
    tick_thread.start()

    try:
        while running:
            data = ws.receive()
            if data is None:
                break
            try:
                action = json.loads(data)
            except json.JSONDecodeError:
                logger.warning("Invalid JSON from client: %s", data)
                continue
            if not isinstance(action, dict):
                logger.warning("Ignoring non-object message from client: %s", data)
                continue

            with lock:
                _handle_action(adapter, action)
    except Exception:
        logger.error("WebSocket receive error", exc_info=True)
    finally:
        running = False


def _handle_action(adapter, action):
    """Dispatch a client action to the adapter."""
    cmd = action.get("action", "")

    if cmd == "roll":
        adapter.do_roll()

    elif cmd == "hold":
        idx = action.get("die_index")
        if type(idx) is int and 0 <= idx < 5:
            adapter.do_hold(idx)

    elif cmd == "clear_holds":
        adapter.do_clear_holds()

    elif cmd == "score":
        cat = _category_by_name(action.get("category", ""))
        if cat is not None:
            adapter.try_score_category(cat)

    elif cmd == "confirm_zero_yes":
        adapter.confirm_zero_yes()

    elif cmd == "confirm_zero_no":
        adapter.confirm_zero_no()

    elif cmd == "navigate_category":
        direction = action.get("direction", 1)
        if isinstance(direction, int):
            adapter.navigate_category(direction)

    elif cmd == "score_selected":
        cat = adapter.selected_category
        if cat is not None:
            adapter.try_score_category(cat)

    elif cmd == "hover":
        cat = _category_by_name(action.get("category", ""))
        if cat is not None:
            adapter.set_hovered_category(cat)
        else:
            adapter.clear_hover()

    elif cmd == "clear_hover":
        adapter.clear_hover()

    elif cmd == "reset":
        adapter.do_reset()

    elif cmd == "toggle_help":
        adapter.toggle_help()

    elif cmd == "toggle_history":
        adapter.toggle_history()

    elif cmd == "toggle_replay":
        adapter.toggle_replay()

    elif cmd == "close_overlay":
        adapter.close_top_overlay()

    elif cmd == "toggle_dark_mode":
        adapter.toggle_dark_mode()

    elif cmd == "toggle_colorblind":
        adapter.toggle_colorblind()

    elif cmd == "toggle_best_hint":
        adapter.toggle_best_hint()

    elif cmd == "toggle_hold_before_roll":
        adapter.toggle_hold_before_roll()

    elif cmd == "pace_up":
        adapter.change_pace(+1)

    elif cmd == "pace_down":
        adapter.change_pace(-1)


def _category_by_name(name):
    """Look up a Category enum by its key (e.g. "fullHouse")."""
    for cat in Category:
        if cat.value == name:
            return cat
    return None


def main(argv=None):
    """Entry point for the web server."""
    import argparse
    parser = argparse.ArgumentParser(description="Yacht Web Server")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=5000, help="Port (default: 5000)")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    parser.add_argument("--save-dir", default=None, metavar="DIR",
                        help="Directory for the saved game (default: ~/.yacht)")
    parser.add_argument("--fresh", action="store_true",
                        help="Start new games instead of resuming the saved one")
    parser.add_argument("--pace", choices=PACE_NAMES, default=None,
                        help="How long a committed score stays on screen (default: from settings)")
    args = parser.parse_args(argv)

    app.config["SAVE_DIR"] = args.save_dir
    app.config["FRESH"] = args.fresh
    app.config["PACE"] = args.pace
    print(f"Starting Yacht web server at http://{args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
