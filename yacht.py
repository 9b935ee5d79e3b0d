#!/usr/bin/env python3
"""
Unified entry point for all Yacht interfaces.

Usage:
    python yacht.py                          # Default: terminal (Textual)
    python yacht.py --ui web                 # Browser (Flask)
    python yacht.py --fresh --pace fast      # New game, short post-commit pause
    python yacht.py --ui web --port 8080     # Web on custom port

Individual entry points (tui.py, web.py) still work independently.
"""
import argparse
import logging
import sys


def main():
    # Pre-parse the flags handled here, pass everything else through
    parser = argparse.ArgumentParser(
        description="Yacht — play in the terminal or the browser",
        add_help=False,
    )
    parser.add_argument("--ui", choices=["tui", "web"], default="tui",
                        help="Interface: tui (terminal, default), web (browser)")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: WARNING)")
    args, remaining = parser.parse_known_args()

    level = getattr(logging, args.log_level)

    if args.ui == "tui":
        # Log through Textual's devtools console rather than over the screen
        from textual.logging import TextualHandler
        logging.basicConfig(level=level, handlers=[TextualHandler()])
        from tui import main as run_tui
        run_tui(remaining)

    elif args.ui == "web":
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        from web import main as run_web
        run_web(remaining)


if __name__ == "__main__":
    sys.exit(main())
