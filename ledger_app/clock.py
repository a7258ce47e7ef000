"""
Clock abstraction.

"Today" drives the no-future-dates rule, record timestamps and the report file
name. The app factory installs a Clock in app.extensions; tests install a
FixedClock.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from flask import current_app

EXTENSION_KEY = "ledger_clock"


class Clock:
    """Wall clock. Timestamps and "today" are both UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)

    def today(self) -> date:
        return self.now().date()


class FixedClock(Clock):
    """A clock frozen at a given instant."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def today(self) -> date:
        return self.instant.date()


def get_clock() -> Clock:
    """Return the clock installed on the current app."""
    return current_app.extensions[EXTENSION_KEY]
