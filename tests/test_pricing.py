"""
Tests for the tiered pricing engine and the date helpers it uses.
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from rentals.services.pricing import overlaps, price, rental_days

START = datetime(2025, 1, 1, tzinfo=timezone.utc)


def rate_card(daily="10", weekly=None, monthly=None):
    return SimpleNamespace(
        daily_rate=Decimal(daily),
        weekly_rate=Decimal(weekly) if weekly is not None else None,
        monthly_rate=Decimal(monthly) if monthly is not None else None,
    )


def days(n):
    return START + timedelta(days=n)


class TestPrice:
    """Tier decomposition: months, then weeks, then days."""

    def test_daily_only(self):
        assert price(rate_card("10"), START, days(2), 1) == Decimal("20")

    def test_weekly_plus_remainder_days(self):
        assert price(rate_card("10", weekly="60"), START, days(10), 1) == Decimal("90")

    def test_monthly_then_remainder_falls_through(self):
        # 35 days: one month, no whole week left, 5 days
        assert price(rate_card("10", weekly="60", monthly="200"), START, days(35), 1) == Decimal("250")

    def test_monthly_remainder_uses_weekly(self):
        # 40 days: 200 + 1 week 60 + 3 days 30
        assert price(rate_card("10", weekly="60", monthly="200"), START, days(40), 1) == Decimal("290")

    def test_missing_monthly_degrades_to_weekly(self):
        # 35 days = 5 weeks
        assert price(rate_card("10", weekly="60"), START, days(35), 1) == Decimal("300")

    def test_missing_weekly_under_monthly_uses_daily(self):
        assert price(rate_card("10", monthly="200"), START, days(37), 1) == Decimal("270")

    def test_short_rental_ignores_higher_tiers(self):
        assert price(rate_card("10", weekly="60", monthly="200"), START, days(6), 1) == Decimal("60")

    def test_quantity_multiplies(self):
        assert price(rate_card("10", weekly="60"), START, days(10), 3) == Decimal("270")

    @pytest.mark.parametrize("quantity", [0, None, -2])
    def test_quantity_minimum_one(self, quantity):
        assert price(rate_card("10"), START, days(2), quantity) == Decimal("20")

    def test_zero_duration_is_free(self):
        assert price(rate_card("10"), START, START, 1) == Decimal("0")

    def test_negative_duration_is_free(self):
        assert price(rate_card("10"), days(3), START, 1) == Decimal("0")

    def test_missing_dates_are_free(self):
        assert price(rate_card("10"), None, days(3), 1) == Decimal("0")

    def test_partial_day_rounds_up(self):
        assert price(rate_card("10"), START, START + timedelta(days=1, hours=1), 1) == Decimal("20")

    def test_no_intermediate_rounding(self):
        card = rate_card("0.333", weekly="2.001")
        assert price(card, START, days(9), 1) == Decimal("2.667")

    def test_repeated_calls_are_identical(self):
        card = rate_card("12.5", weekly="70", monthly="250")
        results = {price(card, START, days(47), 2) for _ in range(5)}
        assert len(results) == 1


class TestRentalDays:

    def test_whole_days(self):
        assert rental_days(START, days(4)) == 4

    def test_naive_and_aware_mix(self):
        naive_end = datetime(2025, 1, 3)
        assert rental_days(START, naive_end) == 2


class TestOverlaps:

    def test_back_to_back_does_not_overlap(self):
        assert not overlaps(START, days(4), days(4), days(9))

    def test_intersection_overlaps(self):
        assert overlaps(START, days(4), days(3), days(5))

    def test_containment_overlaps(self):
        assert overlaps(START, days(10), days(3), days(5))
