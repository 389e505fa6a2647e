"""Pusher: Main scheduler for on-chain price pushes.

Each tick:
    - UpdateBatcher selects the feeds whose on-chain price is stale
    - SubmissionPipeline pushes them in a single transaction
    - The loop waits for the cooldown, or returns early when stopped

Ticks are strictly sequential. Only PayerOutOfFundsError ends the loop
with an error; any other failure is logged and retried on the next tick.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .SubmissionOutcome import PayerOutOfFundsError, SubmissionOutcome
from .UpdateBatcher import select_batch

if TYPE_CHECKING:
    from .PriceConfig import PriceConfig
    from .PriceListener import PriceListener
    from .SubmissionPipeline import SubmissionPipeline

logger = logging.getLogger(__name__)


class Pusher:
    """Periodically pushes stale prices to the target chain.

    :ivar price_configs: Tracked feeds.
    :ivar source_listener: Listener for off-chain prices.
    :ivar target_listener: Listener for on-chain prices.
    :ivar pipeline: Submission pipeline.
    :ivar cooldown_duration: Seconds to wait between ticks.
    """

    def __init__(
        self,
        price_configs: list[PriceConfig],
        source_listener: PriceListener,
        target_listener: PriceListener,
        pipeline: SubmissionPipeline,
        cooldown_duration: float = 10.0,
    ) -> None:
        """Initialize the pusher.

        :param price_configs: Feeds to track.
        :param source_listener: Listener for off-chain prices.
        :param target_listener: Listener for on-chain prices.
        :param pipeline: Pipeline used to submit batches.
        :param cooldown_duration: Seconds between ticks (default: 10).
        :raises ValueError: If the cooldown is negative.
        """
        if cooldown_duration < 0:
            raise ValueError("cooldown_duration must be non-negative")

        self.price_configs = price_configs
        self.source_listener = source_listener
        self.target_listener = target_listener
        self.pipeline = pipeline
        self.cooldown_duration = cooldown_duration

    async def run_once(self) -> SubmissionOutcome:
        """Run one tick: select the batch and push it.

        :returns: Outcome of the tick (UNKNOWN on unexpected errors).
        :raises PayerOutOfFundsError: If the payer is out of balance.
        """
        try:
            batch = select_batch(
                self.price_configs, self.source_listener, self.target_listener
            )
            return await self.pipeline.push(batch)
        except PayerOutOfFundsError:
            raise
        except Exception as e:
            logger.exception(f"Unexpected error during push, skipping this tick: {e}")
            return SubmissionOutcome.unknown(f"{type(e).__name__}: {e}")

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """Run ticks until stopped.

        :param stop_event: Optional event; setting it ends the loop at the
            next tick boundary or immediately during the cooldown.
        :raises PayerOutOfFundsError: If the payer is out of balance.
        """
        stop_event = stop_event or asyncio.Event()
        logger.info(
            f"Starting pusher for {len(self.price_configs)} feeds, "
            f"cooldown={self.cooldown_duration}s"
        )

        while not stop_event.is_set():
            await self.run_once()

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.cooldown_duration)
            except asyncio.TimeoutError:
                pass

        logger.info("Pusher stopped")
