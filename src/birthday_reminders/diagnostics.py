from __future__ import annotations

import logging

DIAGNOSTICS_LOGGER_NAME = "birthday_reminders.diagnostics"

DIAGNOSTICS = logging.getLogger(DIAGNOSTICS_LOGGER_NAME)


def configure_diagnostics(dev_mode: bool) -> None:
    """Collaborator failures are only visible while running in dev mode."""
    if dev_mode:
        DIAGNOSTICS.setLevel(logging.DEBUG)
        DIAGNOSTICS.disabled = False
    else:
        DIAGNOSTICS.disabled = True


def report_failure(message: str, *args: object) -> None:
    DIAGNOSTICS.warning(message, *args, exc_info=True)
