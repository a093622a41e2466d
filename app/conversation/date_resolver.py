# app/conversation/date_resolver.py
"""
Month/Date Resolver
Turns the free-text Portuguese month names collected during the interview
into concrete round-trip dates for the flight search.

Rules:
- No months (or none recognizable): depart today + 30 days
- Otherwise: 15th of the earliest month, current year, pushed to the
  following year when it is less than 14 days away
- Return date is always departure + trip duration
"""

import logging
import unicodedata
from typing import List, Optional, Sequence
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from app.conversation.models import DateRange
from app.core.config import settings

logger = logging.getLogger(__name__)


# ============================================================
# MONTH TABLE
# ============================================================

MONTH_MAP = {
    # Full names (normalized, accents removed)
    "janeiro": 1,
    "fevereiro": 2,
    "marco": 3,
    "abril": 4,
    "maio": 5,
    "junho": 6,
    "julho": 7,
    "agosto": 8,
    "setembro": 9,
    "outubro": 10,
    "novembro": 11,
    "dezembro": 12,
    # Abbreviations
    "jan": 1,
    "fev": 2,
    "mar": 3,
    "abr": 4,
    "mai": 5,
    "jun": 6,
    "jul": 7,
    "ago": 8,
    "set": 9,
    "out": 10,
    "nov": 11,
    "dez": 12,
}

DEPARTURE_DAY = 15
MIN_LEAD_DAYS = 14
DEFAULT_LEAD_DAYS = 30


def normalize_month(month_name: str) -> str:
    """Lowercase, strip accents and surrounding whitespace"""
    decomposed = unicodedata.normalize("NFD", month_name.lower())
    return "".join(c for c in decomposed if not unicodedata.combining(c)).strip()


def month_name_to_number(month_name: str) -> Optional[int]:
    """
    Map a Portuguese month name or abbreviation to 1-12.

    Examples:
        "Março" -> 3, "dez" -> 12, "MêsInválido" -> None
    """
    if not isinstance(month_name, str):
        return None
    return MONTH_MAP.get(normalize_month(month_name))


class MonthDateResolver:
    """
    Resolves availability months into ISO date ranges.
    `today` can be injected on every call; otherwise it is taken in the
    configured timezone (America/Sao_Paulo by default).
    """

    def __init__(
        self,
        timezone_name: Optional[str] = None,
        trip_duration_days: Optional[int] = None
    ):
        self.timezone_name = timezone_name or settings.DEFAULT_TIMEZONE
        if trip_duration_days is None:
            trip_duration_days = settings.DEFAULT_TRIP_DURATION_DAYS
        self.trip_duration_days = trip_duration_days

    def today(self) -> date:
        return datetime.now(ZoneInfo(self.timezone_name)).date()

    # ============================================================
    # RANGES
    # ============================================================

    def resolve_range(
        self,
        availability_months: Optional[Sequence[str]],
        trip_duration_days: Optional[int] = None,
        today: Optional[date] = None
    ) -> DateRange:
        """
        Resolve the earliest available month into a single date range.

        Args:
            availability_months: Month names as typed by the traveler
            trip_duration_days: Days between departure and return
            today: Reference date (defaults to now in the resolver timezone)

        Returns:
            DateRange with ISO departure/return dates
        """
        today = today or self.today()
        duration = self._duration(trip_duration_days)

        month_numbers = self._valid_month_numbers(availability_months)
        if not month_numbers:
            departure = today + timedelta(days=DEFAULT_LEAD_DAYS)
            logger.debug(f"No valid months in {availability_months!r}, using default departure {departure}")
            return self._build_range(departure, duration)

        departure = self._departure_for_month(month_numbers[0], today)
        return self._build_range(departure, duration)

    def resolve_all_ranges(
        self,
        availability_months: Optional[Sequence[str]],
        trip_duration_days: Optional[int] = None,
        today: Optional[date] = None
    ) -> List[DateRange]:
        """
        One range per distinct recognizable month, in month order.
        Falls back to the single default range when nothing is recognizable.
        """
        today = today or self.today()
        duration = self._duration(trip_duration_days)

        month_numbers = self._valid_month_numbers(availability_months)
        if not month_numbers:
            return [self.resolve_range(availability_months, duration, today)]

        return [
            self._build_range(self._departure_for_month(month, today), duration)
            for month in month_numbers
        ]

    # ============================================================
    # MONTH QUERIES
    # ============================================================

    def is_month_available(
        self,
        month_name: str,
        availability_months: Optional[Sequence[str]]
    ) -> bool:
        """Accent/case-insensitive membership check ("dez" matches "Dezembro")"""
        if not availability_months:
            return False

        target_number = month_name_to_number(month_name)
        target = normalize_month(month_name)

        for month in availability_months:
            number = month_name_to_number(month)
            if target_number is not None and number == target_number:
                return True
            if normalize_month(month) == target:
                return True
        return False

    def get_next_available_month(
        self,
        availability_months: Optional[Sequence[str]],
        today: Optional[date] = None
    ) -> Optional[str]:
        """
        First available month strictly after the current one, as the
        traveler wrote it. Wraps to the earliest month of next year.
        """
        if not availability_months:
            return None

        today = today or self.today()
        month_numbers = self._valid_month_numbers(availability_months)
        if not month_numbers:
            return None

        upcoming = [m for m in month_numbers if m > today.month]
        chosen = upcoming[0] if upcoming else month_numbers[0]

        for month in availability_months:
            if month_name_to_number(month) == chosen:
                return month
        return None

    # ============================================================
    # HELPERS
    # ============================================================

    def _duration(self, trip_duration_days: Optional[int]) -> int:
        duration = self.trip_duration_days if trip_duration_days is None else trip_duration_days
        if duration < 0:
            raise ValueError(f"Trip duration must be non-negative, got {duration}")
        return duration

    @staticmethod
    def _valid_month_numbers(availability_months: Optional[Sequence[str]]) -> List[int]:
        if not availability_months:
            return []
        numbers = {month_name_to_number(m) for m in availability_months}
        numbers.discard(None)
        return sorted(numbers)

    @staticmethod
    def _departure_for_month(month_number: int, today: date) -> date:
        departure = date(today.year, month_number, DEPARTURE_DAY)
        if departure < today + timedelta(days=MIN_LEAD_DAYS):
            departure = date(today.year + 1, month_number, DEPARTURE_DAY)
        return departure

    @staticmethod
    def _build_range(departure: date, duration: int) -> DateRange:
        return DateRange(
            departure_date=departure.isoformat(),
            return_date=(departure + timedelta(days=duration)).isoformat()
        )


# Shared resolver using configured defaults
date_resolver = MonthDateResolver()
