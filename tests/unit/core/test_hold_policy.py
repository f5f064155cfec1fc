from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from slotkeeper.core.hold_policy import HoldPolicy

NOW = datetime(2025, 1, 20, 12, 0, tzinfo=timezone.utc)


def _reservation(status="temp", payment_status="unpaid", age_minutes=0):
    return SimpleNamespace(
        status=status,
        payment_status=payment_status,
        created_at=NOW - timedelta(minutes=age_minutes),
    )


class TestHoldPolicy:
    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValueError):
            HoldPolicy(0)

    def test_cutoff(self):
        assert HoldPolicy(10).cutoff(NOW) == NOW - timedelta(minutes=10)

    def test_fresh_hold_is_not_expired(self):
        assert not HoldPolicy(10).is_expired(_reservation(age_minutes=9), NOW)

    def test_hold_exactly_at_timeout_is_not_expired(self):
        """Expiry is strict: created_at must be before the cutoff."""
        assert not HoldPolicy(10).is_expired(_reservation(age_minutes=10), NOW)

    @pytest.mark.parametrize("status", ["temp", "on_hold"])
    def test_old_unpaid_hold_is_expired(self, status):
        assert HoldPolicy(10).is_expired(_reservation(status=status, age_minutes=11), NOW)

    def test_paid_hold_never_expires(self):
        assert not HoldPolicy(10).is_expired(
            _reservation(payment_status="paid", age_minutes=500), NOW
        )

    @pytest.mark.parametrize("status", ["confirmed", "completed", "cancelled"])
    def test_non_hold_statuses_never_expire(self, status):
        assert not HoldPolicy(10).is_expired(_reservation(status=status, age_minutes=500), NOW)

    def test_naive_created_at_is_treated_as_utc(self):
        reservation = _reservation(age_minutes=11)
        reservation.created_at = reservation.created_at.replace(tzinfo=None)
        assert HoldPolicy(10).is_expired(reservation, NOW)
