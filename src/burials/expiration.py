"""Burial lease expiration and renewal dates.

A burial lease runs for a number of years from the burial date. Renewing an active lease extends it
from its current expiry; renewing a lapsed one restarts it from today.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_LEASE_YEARS = 5
MAX_RENEWAL_YEARS = 10
EXPIRING_WINDOW_DAYS = 90


class RenewalRequest(BaseModel):
    """Body of a lease renewal request."""

    model_config = ConfigDict(extra="forbid")

    burial_id: int = Field(gt=0)
    years: int = Field(default=DEFAULT_LEASE_YEARS, gt=0, le=MAX_RENEWAL_YEARS)


def add_years(day: date, years: int) -> date:
    """Shift `day` by whole calendar years; Feb 29 onto a non-leap year becomes Mar 1."""

    try:
        return day.replace(year=day.year + years)
    except ValueError:
        return date(day.year + years, 3, 1)


def initial_expiration(burial_date: date, years: int = DEFAULT_LEASE_YEARS) -> date:
    """Expiry of a fresh lease starting on the burial date."""

    return add_years(burial_date, years)


def renewal_base(
        *,
        expiration_date: date | None,
        burial_date: date | None,
        is_expired: bool,
        today: date,
) -> date:
    """Date a renewal extends from.

    The current expiry is the stored expiration date, else the burial date, else today. Flagged or
    already-past leases restart from today.
    """

    current = expiration_date or burial_date or today
    if is_expired or current < today:
        return today
    return current


def renew_expiration(
        *,
        expiration_date: date | None,
        burial_date: date | None,
        is_expired: bool,
        years: int,
        today: date,
) -> date:
    """New expiration date after renewing for `years`."""

    base = renewal_base(
        expiration_date=expiration_date,
        burial_date=burial_date,
        is_expired=is_expired,
        today=today,
    )
    return add_years(base, years)


def is_lease_expired(expiration_date: date | None, today: date) -> bool:
    """Whether a lease with this expiration date has lapsed (no date means no lease)."""

    return expiration_date is not None and expiration_date < today


def days_until_expiration(expiration_date: date | None, today: date) -> int | None:
    """Whole days left on the lease (negative once expired)."""

    if expiration_date is None:
        return None
    return (expiration_date - today).days
