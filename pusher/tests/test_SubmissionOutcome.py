"""Unit tests for SubmissionOutcome classification."""

import pytest

from pusher.src.SubmissionOutcome import (
    OutcomeKind,
    PayerOutOfFundsError,
    SubmissionOutcome,
    classify_error,
)


class RevertError(Exception):
    """Stand-in for a client exception carrying revert data."""

    def __init__(self, message: str, data: object) -> None:
        super().__init__(message)
        self.data = data


class TestClassifyError:
    """Test translation of raw failures into outcome kinds."""

    @pytest.mark.parametrize(
        "message",
        [
            "execution reverted: no prices in the submitted batch have fresh "
            "prices, so this update will have no effect",
            "execution reverted: NoFreshUpdate()",
        ],
    )
    def test_already_fresh(self, message: str) -> None:
        outcome = classify_error(RuntimeError(message))
        assert outcome.kind is OutcomeKind.ALREADY_FRESH
        assert not outcome.is_fatal

    def test_already_fresh_from_revert_data(self) -> None:
        """Revert selector should be recognized without any message text."""
        outcome = classify_error(RevertError("execution reverted", "0xde2c57fa"))
        assert outcome.kind is OutcomeKind.ALREADY_FRESH

    def test_already_fresh_from_revert_bytes(self) -> None:
        outcome = classify_error(RevertError("reverted", bytes.fromhex("de2c57fa")))
        assert outcome.kind is OutcomeKind.ALREADY_FRESH

    @pytest.mark.parametrize(
        "message",
        ["the tx doesn't have the correct nonce.", "nonce too low: next nonce 5"],
    )
    def test_nonce_conflict(self, message: str) -> None:
        outcome = classify_error(ValueError(message))
        assert outcome.kind is OutcomeKind.NONCE_CONFLICT

    @pytest.mark.parametrize(
        "message",
        [
            "sender doesn't have enough funds to send tx.",
            "{'code': -32000, 'message': 'insufficient funds for gas * price + value'}",
        ],
    )
    def test_insufficient_funds(self, message: str) -> None:
        outcome = classify_error(ValueError(message))
        assert outcome.kind is OutcomeKind.INSUFFICIENT_FUNDS
        assert outcome.is_fatal

    def test_unknown(self) -> None:
        """Unrecognized errors should fall through to UNKNOWN with detail."""
        outcome = classify_error(RuntimeError("execution reverted: 0x12345678"))
        assert outcome.kind is OutcomeKind.UNKNOWN
        assert "RuntimeError" in outcome.detail
        assert "0x12345678" in outcome.detail
        assert not outcome.is_fatal


class TestSubmissionOutcome:
    """Test outcome helpers."""

    def test_accepted(self) -> None:
        outcome = SubmissionOutcome.accepted("0xabc")
        assert outcome.kind is OutcomeKind.ACCEPTED
        assert outcome.tx_hash == "0xabc"

    def test_payer_out_of_funds_error_keeps_outcome(self) -> None:
        outcome = SubmissionOutcome(OutcomeKind.INSUFFICIENT_FUNDS, detail="no gas")
        error = PayerOutOfFundsError(outcome)
        assert error.outcome is outcome
        assert "no gas" in str(error)
