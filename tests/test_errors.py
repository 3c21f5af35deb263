"""Tests for error types."""

import pytest

from konveksi.errors import (
    AmountMismatch,
    ConcurrencyConflict,
    InvalidInput,
    OrderRejectedError,
    PaymentIncomplete,
    PermissionDenied,
    TrancheExpired,
    TransitionDenied,
    errmsg,
)


class TestOrderRejectedError:
    def test_message(self):
        err = InvalidInput("Quantity cannot be negative")
        assert str(err) == "Quantity cannot be negative"
        assert err.message == "Quantity cannot be negative"
        assert err.cause is None

    def test_message_with_cause(self):
        cause = ValueError("bad digit")
        err = InvalidInput("KONVEKSI_DOZEN_THRESHOLD must be an integer", cause)
        assert str(err) == "KONVEKSI_DOZEN_THRESHOLD must be an integer: bad digit"
        assert err.cause is cause

    @pytest.mark.parametrize(
        "err",
        [
            InvalidInput("x"),
            PermissionDenied("x"),
            TransitionDenied("x"),
            PaymentIncomplete(),
            AmountMismatch(expected=1, tendered=2),
            TrancheExpired(),
            ConcurrencyConflict(expected=1, actual=2),
        ],
    )
    def test_all_are_recoverable_rejections(self, err):
        assert isinstance(err, OrderRejectedError)


class TestSpecificErrors:
    def test_payment_incomplete_is_transition_denied(self):
        assert isinstance(PaymentIncomplete(), TransitionDenied)
        assert str(PaymentIncomplete()) == errmsg.PAYMENT_INCOMPLETE

    def test_amount_mismatch_carries_amounts(self):
        err = AmountMismatch(expected=300000, tendered=299999)
        assert err.expected == 300000
        assert err.tendered == 299999
        assert "expected 300000, got 299999" in str(err)

    def test_concurrency_conflict_carries_versions(self):
        err = ConcurrencyConflict(expected=3, actual=5)
        assert (err.expected, err.actual) == (3, 5)
        assert "expected version 3, found 5" in str(err)
