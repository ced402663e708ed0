# src/contacts_core/cli/console.py

from __future__ import annotations

import logging
import sys
from datetime import datetime

from ..core.state import AppState
from .commands import registry as command_registry

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    if sys.stdout.isatty():
        sys.stdout.write("\033[1A\033[2K\r")
        sys.stdout.write(line + "\n")
        sys.stdout.flush()
    else:
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def run_console_loop(state: AppState, *, prompt: str = ">>> ") -> None:
    logger.info("Maintenance console started.")
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    def emit(text: str) -> None:
        # Immediate user-visible feedback for long operations.
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        try:
            line = input(prompt).strip()
            _rewrite_prev_line(f"[{_ts_local()}] {prompt}{line}")
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not line:
            continue

        if line.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            with state.lock:
                response = command_registry.handle(state, line, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is None:
            response = "Commands start with '/'. Use /help to list available commands."

        _print_ts(response)

    logger.info("Maintenance console finished.")
