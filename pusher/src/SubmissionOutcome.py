"""SubmissionOutcome: Tagged result of one price update submission.

Raw chain client failures are translated into an OutcomeKind by
``classify_error()``. That function is the only place that inspects error
data or message text; everything else branches on the kind.

Message matching is brittle across client and node versions. Unrecognized
errors fall through to UNKNOWN.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class OutcomeKind(str, Enum):
    """Classification of a submission attempt."""

    NO_OP = "no_op"
    ACCEPTED = "accepted"
    ALREADY_FRESH = "already_fresh"
    NONCE_CONFLICT = "nonce_conflict"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SubmissionOutcome:
    """Result of pushing one batch.

    :ivar kind: Outcome classification.
    :ivar tx_hash: Transaction hash when ACCEPTED.
    :ivar detail: Error detail for non-accepted outcomes.
    """

    kind: OutcomeKind
    tx_hash: str | None = None
    detail: str | None = None

    @property
    def is_fatal(self) -> bool:
        """Check if the process should stop."""
        return self.kind is OutcomeKind.INSUFFICIENT_FUNDS

    @classmethod
    def no_op(cls) -> SubmissionOutcome:
        return cls(OutcomeKind.NO_OP)

    @classmethod
    def accepted(cls, tx_hash: str) -> SubmissionOutcome:
        return cls(OutcomeKind.ACCEPTED, tx_hash=tx_hash)

    @classmethod
    def unknown(cls, detail: str) -> SubmissionOutcome:
        return cls(OutcomeKind.UNKNOWN, detail=detail)


class PayerOutOfFundsError(Exception):
    """Raised when the paying account cannot cover the update.

    :ivar outcome: The INSUFFICIENT_FUNDS outcome that triggered it.
    """

    def __init__(self, outcome: SubmissionOutcome):
        """Initialize the error.

        :param outcome: Classified submission outcome.
        """
        self.outcome = outcome
        super().__init__(f"Payer is out of balance: {outcome.detail}")


# Custom error selectors of the Pyth contract (first 4 bytes of keccak256).
NO_FRESH_UPDATE_SELECTOR = "0xde2c57fa"  # NoFreshUpdate()

ALREADY_FRESH_MARKERS = (
    "no prices in the submitted batch have fresh prices",
    "nofreshupdate",
    NO_FRESH_UPDATE_SELECTOR,
)

NONCE_CONFLICT_MARKERS = (
    "the tx doesn't have the correct nonce",
    "nonce too low",
    "replacement transaction underpriced",
)

INSUFFICIENT_FUNDS_MARKERS = (
    "sender doesn't have enough funds to send tx",
    "insufficient funds",
)


def _error_data(exc: BaseException) -> str:
    """Extract revert data from a web3 exception if it carries any."""
    data = getattr(exc, "data", None)
    if isinstance(data, (bytes, bytearray)):
        return "0x" + bytes(data).hex()
    if isinstance(data, str):
        return data.lower()
    if isinstance(data, dict):
        inner = data.get("data")
        if isinstance(inner, str):
            return inner.lower()
    return ""


def classify_error(exc: BaseException) -> SubmissionOutcome:
    """Translate a raw submission failure into a SubmissionOutcome.

    Structured revert data is checked first, then the message text.

    :param exc: Exception raised by the chain client.
    :returns: Classified outcome carrying the error text as detail.
    """
    detail = f"{type(exc).__name__}: {exc}"

    if _error_data(exc).startswith(NO_FRESH_UPDATE_SELECTOR):
        return SubmissionOutcome(OutcomeKind.ALREADY_FRESH, detail=detail)

    message = str(exc).lower()
    if any(marker in message for marker in ALREADY_FRESH_MARKERS):
        return SubmissionOutcome(OutcomeKind.ALREADY_FRESH, detail=detail)
    if any(marker in message for marker in NONCE_CONFLICT_MARKERS):
        return SubmissionOutcome(OutcomeKind.NONCE_CONFLICT, detail=detail)
    if any(marker in message for marker in INSUFFICIENT_FUNDS_MARKERS):
        return SubmissionOutcome(OutcomeKind.INSUFFICIENT_FUNDS, detail=detail)

    return SubmissionOutcome.unknown(detail)
