"""
Dashboard metrics engine entry point.

The engine is embedded by a host that owns the document store client and
the sign-in state. Standalone, it runs the offline console demo.

Usage:
    python main.py
    python main.py --scenario midnight
"""

import logging

from src.config import settings

logger = logging.getLogger(__name__)


def _run_console_mode() -> None:
    """Start the offline console demo (no backend required)."""
    from console_demo import main as console_main

    logger.info("Starting %s console demo", settings.app_name)
    console_main()


if __name__ == "__main__":
    _run_console_mode()
