"""Tests for burial lease expiration arithmetic and the renewal flow."""

from __future__ import annotations

from datetime import date
from typing import Any

import pytest
from pydantic import ValidationError

from src.burials.expiration import (
    DEFAULT_LEASE_YEARS,
    RenewalRequest,
    add_years,
    days_until_expiration,
    initial_expiration,
    is_lease_expired,
    renew_expiration,
    renewal_base,
)
from src.db import burials as burials_repo
from src.db.burials import BurialNotFoundError, renew_burial

_TODAY = date(2024, 6, 1)


def test_add_years_keeps_month_and_day() -> None:
    assert add_years(date(2020, 5, 17), 5) == date(2025, 5, 17)


def test_leap_day_rolls_to_march_first() -> None:
    assert add_years(date(2024, 2, 29), 1) == date(2025, 3, 1)
    assert add_years(date(2024, 2, 29), 4) == date(2028, 2, 29)


def test_initial_expiration_defaults_to_five_years() -> None:
    assert DEFAULT_LEASE_YEARS == 5
    assert initial_expiration(date(2019, 1, 10)) == date(2024, 1, 10)


def test_active_lease_extends_from_current_expiry() -> None:
    new = renew_expiration(
        expiration_date=date(2024, 9, 1),
        burial_date=date(2019, 9, 1),
        is_expired=False,
        years=5,
        today=_TODAY,
    )
    assert new == date(2029, 9, 1)


def test_lapsed_lease_restarts_from_today() -> None:
    new = renew_expiration(
        expiration_date=date(2023, 1, 1),
        burial_date=date(2018, 1, 1),
        is_expired=False,
        years=2,
        today=_TODAY,
    )
    assert new == date(2026, 6, 1)


def test_flagged_lease_restarts_from_today_even_with_future_date() -> None:
    base = renewal_base(
        expiration_date=date(2030, 1, 1),
        burial_date=None,
        is_expired=True,
        today=_TODAY,
    )
    assert base == _TODAY


def test_missing_expiration_falls_back_to_burial_date_then_today() -> None:
    assert renewal_base(
        expiration_date=None,
        burial_date=date(2024, 12, 1),
        is_expired=False,
        today=_TODAY,
    ) == date(2024, 12, 1)
    assert renewal_base(
        expiration_date=None,
        burial_date=None,
        is_expired=False,
        today=_TODAY,
    ) == _TODAY


def test_expiry_helpers() -> None:
    assert is_lease_expired(date(2024, 5, 31), _TODAY)
    assert not is_lease_expired(_TODAY, _TODAY)
    assert not is_lease_expired(None, _TODAY)
    assert days_until_expiration(date(2024, 6, 11), _TODAY) == 10
    assert days_until_expiration(date(2024, 5, 30), _TODAY) == -2
    assert days_until_expiration(None, _TODAY) is None


def test_renewal_request_defaults_and_bounds() -> None:
    assert RenewalRequest(burial_id=3).years == 5
    assert RenewalRequest.model_validate({"burial_id": 3, "years": 10}).years == 10

    for payload in (
            {"burial_id": 3, "years": 11},
            {"burial_id": 3, "years": 0},
            {"burial_id": 0},
            {"years": 2},
            {"burial_id": 3, "extra": True},
    ):
        with pytest.raises(ValidationError):
            RenewalRequest.model_validate(payload)


@pytest.mark.asyncio
async def test_renew_burial_updates_row(monkeypatch: pytest.MonkeyPatch) -> None:
    stored: dict[str, Any] = {}

    async def _get_burial(_conn: Any, burial_id: int) -> dict[str, Any]:
        return {
            "id": burial_id,
            "burial_date": date(2019, 8, 1),
            "expiration_date": date(2024, 8, 1),
            "is_expired": False,
        }

    async def _apply_renewal(_conn: Any, burial_id: int, new_expiration: date) -> dict[str, Any]:
        stored.update(id=burial_id, expiration_date=new_expiration, is_expired=False)
        return dict(stored)

    monkeypatch.setattr(burials_repo, "get_burial", _get_burial)
    monkeypatch.setattr(burials_repo, "apply_renewal", _apply_renewal)

    row, new_expiration = await renew_burial(
        object(),  # type: ignore[arg-type]
        RenewalRequest(burial_id=7, years=3),
        today=_TODAY,
    )

    assert new_expiration == date(2027, 8, 1)
    assert row == {"id": 7, "expiration_date": date(2027, 8, 1), "is_expired": False}


@pytest.mark.asyncio
async def test_renew_burial_unknown_id(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _get_burial(_conn: Any, _burial_id: int) -> None:
        return None

    async def _apply_renewal(*_args: Any) -> None:
        raise AssertionError("nothing to update")

    monkeypatch.setattr(burials_repo, "get_burial", _get_burial)
    monkeypatch.setattr(burials_repo, "apply_renewal", _apply_renewal)

    with pytest.raises(BurialNotFoundError):
        await renew_burial(
            object(),  # type: ignore[arg-type]
            RenewalRequest(burial_id=99),
            today=_TODAY,
        )
