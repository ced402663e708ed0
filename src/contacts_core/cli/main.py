# src/contacts_core/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, starts the aggregation scheduler, then either:
- runs the maintenance console in the main thread, or
- waits for SIGINT/SIGTERM when the console is disabled.
"""

from __future__ import annotations

import contextlib
import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state
from ..cli.console import run_console_loop
from ..config import get_settings
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        state.aggregation_scheduler.stop(timeout=5.0)
    except Exception:
        logger.exception("Failed to stop aggregation scheduler.")

    try:
        # Let a queued pass finish; the idle worker then exits on its own.
        if not state.task_scheduler.wait_idle(timeout=10.0):
            logger.warning("Maintenance tasks still running at shutdown.")
    except Exception:
        logger.debug("Task scheduler drain failed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    # Reuse the same settings object.
    state = create_initial_state(settings=settings)
    state.aggregation_scheduler.start()

    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    # The console handles Ctrl+C itself (KeyboardInterrupt in input()).
    # Some platforms do not support SIGTERM.
    with contextlib.suppress(ValueError, OSError, AttributeError):
        signal.signal(signal.SIGTERM, _handle_signal)
        if not settings.console_enabled:
            signal.signal(signal.SIGINT, _handle_signal)

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Running background aggregation only. Press Ctrl+C to stop.")
            stop_main.wait()
    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
