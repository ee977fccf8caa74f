"""
Supplier Scorecard - Reference Clock.

============================================================
RESPONSIBILITY
============================================================
Supplies the "as of" date for the rolling 12-month window
and the future-month edit lock.

- Scoring never reads the wall clock directly
- Tests pin the date with FixedClock
- Dates are calendar dates in the user's local time,
  because reporting months follow the local calendar

============================================================
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Optional
import threading


# ============================================================
# CLOCK PROTOCOL
# ============================================================

class ClockProtocol(ABC):
    """Abstract interface for the reference date."""

    @abstractmethod
    def today(self) -> date:
        """Get the current calendar date."""
        pass

    def current_period(self) -> tuple:
        """Get (year, month) of today."""
        today = self.today()
        return today.year, today.month


# ============================================================
# SYSTEM CLOCK (PRODUCTION)
# ============================================================

class SystemClock(ClockProtocol):
    """Production clock using the local system date."""

    def today(self) -> date:
        return datetime.now().date()


# ============================================================
# FIXED CLOCK (TESTING)
# ============================================================

class FixedClock(ClockProtocol):
    """
    Clock pinned to a given date.

    Allows date manipulation for deterministic tests.
    """

    def __init__(self, initial_date: Optional[date] = None):
        """
        Initialize fixed clock.

        Args:
            initial_date: Pinned date (defaults to the system date)
        """
        self._date = initial_date or datetime.now().date()
        self._lock = threading.Lock()

    def today(self) -> date:
        with self._lock:
            return self._date

    def set_date(self, new_date: date) -> None:
        """Move the pinned date."""
        with self._lock:
            self._date = new_date

    def advance_months(self, months: int) -> None:
        """Move the pinned date by whole months, landing on day 1."""
        with self._lock:
            index = self._date.year * 12 + (self._date.month - 1) + months
            self._date = date(index // 12, index % 12 + 1, 1)


__all__ = [
    "ClockProtocol",
    "SystemClock",
    "FixedClock",
]
