# src/pulsegrid/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then:
- starts the assignment scheduler in a background thread (optional),
- runs the operator console in the main thread (optional),
- otherwise waits for SIGINT/SIGTERM.
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        state.scheduler.stop()
        state.scheduler.join(timeout=10.0)
    except Exception:
        logger.exception("Failed to stop scheduler.")

    # Stores use short-lived sqlite connections per call; close() is a no-op hook.
    for store in (state.directory, state.lease_store, state.check_store):
        try:
            store.close()
        except Exception:
            logger.debug("Store close failed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/pulsegrid")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "pulsegrid"))

    state = create_initial_state(settings=settings)

    if settings.scheduler_enabled:
        state.scheduler.start()
    else:
        logger.info("Scheduler disabled; use /run to generate assignments.")

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)
    except Exception:
        # Some platforms may not support SIGTERM, etc.
        pass

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Running scheduler only. Press Ctrl+C to stop.")
            stop_main.wait()
    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
