"""
Month/Date Resolver Tests
Reference date is fixed at 2025-11-12.
"""

from datetime import date

import pytest

from app.conversation.date_resolver import MonthDateResolver, month_name_to_number

TODAY = date(2025, 11, 12)


@pytest.fixture
def resolver():
    return MonthDateResolver(timezone_name="America/Sao_Paulo", trip_duration_days=7)


def test_month_name_to_number_handles_accents_and_abbreviations():
    assert month_name_to_number("Março") == 3
    assert month_name_to_number("marco") == 3
    assert month_name_to_number("DEZEMBRO") == 12
    assert month_name_to_number(" dez ") == 12
    assert month_name_to_number("MêsInválido") is None
    assert month_name_to_number(None) is None


def test_next_year_when_month_already_passed(resolver):
    result = resolver.resolve_range(["Janeiro"], today=TODAY)
    assert result.departure_date == "2026-01-15"
    assert result.return_date == "2026-01-22"


def test_current_year_when_month_far_enough(resolver):
    result = resolver.resolve_range(["Dezembro"], today=TODAY)
    assert result.departure_date == "2025-12-15"
    assert result.return_date == "2025-12-22"


@pytest.mark.parametrize("months", [None, []])
def test_default_departure_without_months(resolver, months):
    result = resolver.resolve_range(months, today=TODAY)
    assert result.departure_date == "2025-12-12"
    assert result.return_date == "2025-12-19"


def test_invalid_month_names_are_skipped(resolver):
    result = resolver.resolve_range(["MêsInválido", "Dezembro"], today=TODAY)
    assert result.departure_date == "2025-12-15"


def test_only_invalid_months_uses_default(resolver):
    result = resolver.resolve_range(["Banana"], today=TODAY)
    assert result.departure_date == "2025-12-12"


def test_earliest_month_wins(resolver):
    result = resolver.resolve_range(["Dezembro", "Março"], today=TODAY)
    assert result.departure_date == "2026-03-15"


def test_accented_and_abbreviated_months(resolver):
    assert resolver.resolve_range(["Março"], today=TODAY).departure_date == "2026-03-15"
    assert resolver.resolve_range(["dez"], today=TODAY).departure_date == "2025-12-15"


def test_custom_duration_crosses_year(resolver):
    result = resolver.resolve_range(["Dezembro"], trip_duration_days=30, today=TODAY)
    assert result.departure_date == "2025-12-15"
    assert result.return_date == "2026-01-14"


def test_zero_duration_returns_same_day(resolver):
    result = resolver.resolve_range(["Dezembro"], trip_duration_days=0, today=TODAY)
    assert result.return_date == result.departure_date


def test_negative_duration_rejected(resolver):
    with pytest.raises(ValueError):
        resolver.resolve_range(["Dezembro"], trip_duration_days=-1, today=TODAY)


def test_month_less_than_two_weeks_away_rolls_over(resolver):
    # 2025-12-05 + 14 days = 2025-12-19, after the 15th
    result = resolver.resolve_range(["Dezembro"], today=date(2025, 12, 5))
    assert result.departure_date == "2026-12-15"


def test_exactly_two_weeks_away_is_kept(resolver):
    result = resolver.resolve_range(["Dezembro"], today=date(2025, 12, 1))
    assert result.departure_date == "2025-12-15"


def test_resolve_all_ranges_sorted_and_distinct(resolver):
    ranges = resolver.resolve_all_ranges(["Março", "Dezembro", "dez"], today=TODAY)
    assert [r.departure_date for r in ranges] == ["2026-03-15", "2025-12-15"]


def test_resolve_all_ranges_default(resolver):
    ranges = resolver.resolve_all_ranges([], today=TODAY)
    assert len(ranges) == 1
    assert ranges[0].departure_date == "2025-12-12"


def test_is_month_available(resolver):
    months = ["Dezembro", "Março"]
    assert resolver.is_month_available("dezembro", months)
    assert resolver.is_month_available("dez", months)
    assert resolver.is_month_available("marco", months)
    assert not resolver.is_month_available("Julho", months)
    assert not resolver.is_month_available("Julho", None)


def test_get_next_available_month(resolver):
    assert resolver.get_next_available_month(["Janeiro", "Dezembro"], today=TODAY) == "Dezembro"
    assert resolver.get_next_available_month(["Março", "Janeiro"], today=TODAY) == "Janeiro"
    assert resolver.get_next_available_month(["Banana"], today=TODAY) is None
    assert resolver.get_next_available_month([], today=TODAY) is None


def test_serialized_range_uses_client_keys(resolver):
    result = resolver.resolve_range(["Dezembro"], today=TODAY)
    assert result.model_dump(by_alias=True) == {
        "departureDate": "2025-12-15",
        "returnDate": "2025-12-22",
    }
