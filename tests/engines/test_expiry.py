"""Tests for expiry urgency classification."""

from datetime import date, timedelta

import pytest

from stock_engines.expiry import (
    ExpiryThresholds,
    ExpiryTier,
    classify_expiry,
    days_until,
)

TODAY = date(2024, 6, 15)


class TestClassifyExpiry:

    @pytest.mark.parametrize(
        "days_left, expected",
        [
            (24, ExpiryTier.CRITICAL),
            (29, ExpiryTier.CRITICAL),
            (30, ExpiryTier.WARNING),
            (45, ExpiryTier.WARNING),
            (46, ExpiryTier.NONE),
            (365, ExpiryTier.NONE),
        ],
    )
    def test_default_thresholds(self, days_left, expected):
        assert classify_expiry(TODAY + timedelta(days=days_left), TODAY) is expected

    def test_expired_lot_is_critical(self):
        assert classify_expiry(TODAY - timedelta(days=3), TODAY) is ExpiryTier.CRITICAL

    def test_expires_today_is_critical(self):
        assert classify_expiry(TODAY, TODAY) is ExpiryTier.CRITICAL

    def test_no_expiry_date(self):
        assert classify_expiry(None, TODAY) is ExpiryTier.NONE

    def test_custom_thresholds(self):
        thresholds = ExpiryThresholds(critical_below_days=7, warning_max_days=14)

        assert classify_expiry(TODAY + timedelta(days=6), TODAY, thresholds) is ExpiryTier.CRITICAL
        assert classify_expiry(TODAY + timedelta(days=14), TODAY, thresholds) is ExpiryTier.WARNING
        assert classify_expiry(TODAY + timedelta(days=15), TODAY, thresholds) is ExpiryTier.NONE


class TestThresholds:

    def test_warning_below_critical_rejected(self):
        with pytest.raises(ValueError):
            ExpiryThresholds(critical_below_days=30, warning_max_days=10)

    def test_equal_thresholds_allowed(self):
        thresholds = ExpiryThresholds(critical_below_days=10, warning_max_days=10)

        assert classify_expiry(TODAY + timedelta(days=10), TODAY, thresholds) is ExpiryTier.WARNING


def test_days_until_counts_calendar_days():
    assert days_until(date(2024, 3, 1), date(2024, 2, 28)) == 2
    assert days_until(date(2024, 2, 1), date(2024, 2, 5)) == -4
