# services/flight_search.py
"""
Flight-Search Parameter Builder

Turns a completed travel profile into the request parameters of an
Amadeus-style flight-offers search. Dates come from the availability
months; the only readiness gate is having both IATA codes.
"""

import logging
from typing import Optional
from datetime import date

from app.conversation.date_resolver import MonthDateResolver, date_resolver
from app.conversation.models import CollectedData, FlightSearchParams
from app.core.config import settings

logger = logging.getLogger(__name__)


def can_search_flights(collected_data: Optional[CollectedData]) -> bool:
    """True when origin and destination IATA codes are both known"""
    if collected_data is None:
        return False
    return bool(collected_data.origin_iata and collected_data.destination_iata)


def build_flight_search_params(
    collected_data: Optional[CollectedData],
    adults: int = 1,
    non_stop: Optional[bool] = None,
    max_results: Optional[int] = None,
    trip_duration_days: Optional[int] = None,
    today: Optional[date] = None,
    resolver: Optional[MonthDateResolver] = None
) -> Optional[FlightSearchParams]:
    """
    Build flight-offers search parameters.

    Args:
        collected_data: Travel profile
        adults: Passenger count sent to the provider
        non_stop: Direct flights only (defaults to settings)
        max_results: Offer limit (defaults to settings)
        trip_duration_days: Days between departure and return
        today: Reference date for month resolution
        resolver: Date resolver (shared instance by default)

    Returns:
        FlightSearchParams, or None when either IATA code is missing
    """
    if not can_search_flights(collected_data):
        logger.debug("Flight search not ready: origin or destination IATA missing")
        return None

    resolver = resolver or date_resolver
    dates = resolver.resolve_range(
        collected_data.availability_months,
        trip_duration_days=trip_duration_days,
        today=today
    )

    params = FlightSearchParams(
        origin_location_code=collected_data.origin_iata,
        destination_location_code=collected_data.destination_iata,
        departure_date=dates.departure_date,
        return_date=dates.return_date,
        adults=adults,
        non_stop=settings.FLIGHT_SEARCH_NON_STOP if non_stop is None else non_stop,
        max=max_results or settings.FLIGHT_SEARCH_MAX_RESULTS
    )

    logger.info(
        f"Flight search params: {params.origin_location_code}→{params.destination_location_code}, "
        f"{params.departure_date} - {params.return_date}, {params.adults} pax"
    )
    return params


def _format_amount(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


def get_flight_search_description(collected_data: CollectedData) -> str:
    """
    Human-readable summary of the search, e.g.
    "Origem: São Paulo (GRU) | Destino: Salvador (SSA) | Orçamento: R$ 3000"
    """
    parts = []

    if collected_data.origin_name:
        parts.append(f"Origem: {collected_data.origin_name} ({collected_data.origin_iata})")

    if collected_data.destination_name:
        parts.append(f"Destino: {collected_data.destination_name} ({collected_data.destination_iata})")

    if collected_data.availability_months:
        parts.append(f"Meses disponíveis: {', '.join(collected_data.availability_months)}")

    if collected_data.budget_in_brl is not None:
        parts.append(f"Orçamento: R$ {_format_amount(collected_data.budget_in_brl)}")

    if collected_data.activities:
        parts.append(f"Atividades: {', '.join(collected_data.activities)}")

    if collected_data.purpose:
        parts.append(f"Propósito: {collected_data.purpose}")

    return " | ".join(parts)


__all__ = [
    "can_search_flights",
    "build_flight_search_params",
    "get_flight_search_description",
]
