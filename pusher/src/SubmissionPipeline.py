"""SubmissionPipeline: Push one batch of price updates on-chain.

Steps per batch:
    1. Fetch signed update payloads for the batch feeds from the price service
    2. Ask the contract for the update fee
    3. Send updatePriceFeedsIfNecessary with the baseline publish times
    4. Log and return the classified outcome

Only an INSUFFICIENT_FUNDS outcome leaves this module as an exception
(PayerOutOfFundsError). Everything else is returned as an outcome value.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .PriceConfig import add_leading_0x
from .SubmissionOutcome import (
    OutcomeKind,
    PayerOutOfFundsError,
    SubmissionOutcome,
    classify_error,
)

if TYPE_CHECKING:
    from .ChainClient import ChainClient
    from .PriceServiceConnection import PriceServiceConnection
    from .UpdateBatcher import PushBatch

logger = logging.getLogger(__name__)


class SubmissionPipeline:
    """Fetches update data and submits it for a batch of feeds.

    :ivar connection: Price service client for update payloads.
    :ivar chain_client: Signing client for the Pyth contract.
    :ivar fetch_timeout: Seconds allowed for the payload fetch.
    :ivar submit_timeout: Seconds allowed for fee estimation plus submission.
    """

    def __init__(
        self,
        connection: PriceServiceConnection,
        chain_client: ChainClient,
        fetch_timeout: float = 30.0,
        submit_timeout: float = 30.0,
    ) -> None:
        """Initialize the pipeline.

        :param connection: Price service client.
        :param chain_client: Chain client built at startup.
        :param fetch_timeout: Timeout for the update data fetch (default: 30).
        :param submit_timeout: Timeout for fee estimation and submission
            (default: 30).
        """
        self.connection = connection
        self.chain_client = chain_client
        self.fetch_timeout = fetch_timeout
        self.submit_timeout = submit_timeout

        # Submission still running after its timeout, and its fatal result
        # if it reported one after the tick had already moved on.
        self._inflight: asyncio.Future | None = None
        self._late_fatal: SubmissionOutcome | None = None

    async def push(self, batch: PushBatch) -> SubmissionOutcome:
        """Push a batch as a single on-chain update.

        :param batch: Feeds to push with their baseline publish times.
        :returns: Classified outcome of the submission.
        :raises PayerOutOfFundsError: If the payer cannot cover the update.
        """
        if self._late_fatal is not None:
            raise PayerOutOfFundsError(self._late_fatal)

        if not batch:
            return SubmissionOutcome.no_op()

        if self._inflight is not None and not self._inflight.done():
            logger.warning("Previous submission is still in flight, skipping this push.")
            return SubmissionOutcome.unknown("previous submission still in flight")

        price_ids = [add_leading_0x(entry.config.id) for entry in batch]
        publish_times = [entry.baseline_publish_time for entry in batch]

        try:
            update_data = await asyncio.wait_for(
                self.connection.get_price_feeds_update_data(price_ids),
                timeout=self.fetch_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Update data fetch timed out after {self.fetch_timeout}s")
            return SubmissionOutcome.unknown("update data fetch timed out")
        except Exception as e:
            logger.warning(f"Failed to fetch update data: {e}")
            return SubmissionOutcome.unknown(f"update data fetch failed: {e}")

        logger.info(f"Pushing {[str(entry.config) for entry in batch]}")

        submission = asyncio.ensure_future(
            asyncio.to_thread(self._submit, update_data, price_ids, publish_times)
        )
        try:
            outcome = await asyncio.wait_for(
                asyncio.shield(submission), timeout=self.submit_timeout
            )
        except asyncio.TimeoutError:
            self._inflight = submission
            submission.add_done_callback(self._on_late_result)
            outcome = SubmissionOutcome.unknown(
                f"submission timed out after {self.submit_timeout}s"
            )

        self._report(outcome)
        if outcome.is_fatal:
            raise PayerOutOfFundsError(outcome)
        return outcome

    def _submit(
        self,
        update_data: list[bytes],
        price_ids: list[str],
        publish_times: list[int],
    ) -> SubmissionOutcome:
        """Estimate the fee and send the update. Runs in a worker thread."""
        try:
            fee = self.chain_client.get_update_fee(len(update_data))
        except Exception as e:
            return classify_error(e)
        logger.info(f"Update fee: {fee}")

        return self.chain_client.update_price_feeds_if_necessary(
            update_data, price_ids, publish_times, fee
        )

    def _on_late_result(self, submission: asyncio.Future) -> None:
        """Log the result of a submission that finished after its timeout."""
        if submission.cancelled():
            return
        error = submission.exception()
        if error is not None:
            logger.error(f"Timed-out submission failed: {error}")
            return

        outcome = submission.result()
        logger.warning(f"Timed-out submission finished late with {outcome.kind.value}")
        self._report(outcome)
        if outcome.is_fatal:
            self._late_fatal = outcome

    def _report(self, outcome: SubmissionOutcome) -> None:
        if outcome.kind is OutcomeKind.ACCEPTED:
            logger.info(f"Successful. Tx hash: {outcome.tx_hash}")
        elif outcome.kind is OutcomeKind.ALREADY_FRESH:
            logger.info("The target chain price has already updated, skipping this push.")
        elif outcome.kind is OutcomeKind.NONCE_CONFLICT:
            logger.info(
                "Multiple users are using the same account and the nonce is "
                "incorrect, skipping this push."
            )
        elif outcome.kind is OutcomeKind.INSUFFICIENT_FUNDS:
            logger.error(f"Payer is out of balance, please top it up. {outcome.detail}")
        else:
            logger.error(f"An unidentified error has occurred: {outcome.detail}")
            logger.error("Skipping this push.")
