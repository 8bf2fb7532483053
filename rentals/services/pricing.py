# rentals/services/pricing.py
"""
Tiered rental pricing.

Larger units are consumed first: whole 30-day months at the monthly rate,
then whole weeks at the weekly rate, then the leftover days at the daily
rate. A missing tier falls through to the next one down. Amounts stay as
Decimal with no intermediate rounding.
"""
import math
from datetime import datetime
from decimal import Decimal

from rentals.utils.dates import as_utc

SECONDS_PER_DAY = 86400
DAYS_PER_MONTH = 30
DAYS_PER_WEEK = 7


def rental_days(start_date: datetime | None, end_date: datetime | None) -> int:
    """Whole days between two timestamps, partial days rounded up. 0 if not positive."""
    if start_date is None or end_date is None:
        return 0

    seconds = (as_utc(end_date) - as_utc(start_date)).total_seconds()
    if not math.isfinite(seconds) or seconds <= 0:
        return 0
    return math.ceil(seconds / SECONDS_PER_DAY)


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    # half-open ranges, a rental ending when another starts does not collide
    return as_utc(a_start) < as_utc(b_end) and as_utc(b_start) < as_utc(a_end)


def _rate(value) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


def price(rate_card, start_date: datetime | None, end_date: datetime | None, quantity: int = 1) -> Decimal:
    """
    Price one line item.

    rate_card is anything with daily_rate, weekly_rate and monthly_rate
    attributes (a ProductModel in practice).
    """
    days = rental_days(start_date, end_date)
    if days <= 0:
        return Decimal("0")

    daily = _rate(rate_card.daily_rate) or Decimal("0")
    weekly = _rate(rate_card.weekly_rate)
    monthly = _rate(rate_card.monthly_rate)

    per_unit = Decimal("0")

    if monthly is not None and days >= DAYS_PER_MONTH:
        months, days = divmod(days, DAYS_PER_MONTH)
        per_unit += months * monthly

    if weekly is not None and days >= DAYS_PER_WEEK:
        weeks, days = divmod(days, DAYS_PER_WEEK)
        per_unit += weeks * weekly

    per_unit += days * daily

    return per_unit * max(1, quantity or 1)
