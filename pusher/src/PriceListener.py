"""PriceListener: Latest known price observation per feed.

Listeners refresh themselves in a background task and expose a
non-blocking snapshot read. The pusher core only ever reads from them.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceInfo:
    """One price observation for a feed.

    :ivar price: Price magnitude in the feed's fixed-point units.
    :ivar conf: Confidence interval in the same units.
    :ivar publish_time: Unix timestamp (seconds) the price was published.
    """

    price: int
    conf: int
    publish_time: int


class PriceListener(ABC):
    """Abstract base class for polling price listeners.

    Subclasses implement ``poll()`` which returns the observations fetched
    in one round. Observations are replaced wholesale and never go back in
    time for a feed.

    :ivar price_ids: Feed ids (hex, no ``0x``) tracked by this listener.
    :ivar polling_frequency: Seconds between polls.
    """

    name: str = "listener"

    def __init__(self, price_ids: list[str], polling_frequency: float = 5.0) -> None:
        """Initialize the listener.

        :param price_ids: Feed ids to track.
        :param polling_frequency: Seconds between polls (default: 5).
        """
        self.price_ids = list(price_ids)
        self.polling_frequency = polling_frequency
        self._latest: dict[str, PriceInfo] = {}
        self._task: asyncio.Task | None = None

    def get_latest_price_info(self, price_id: str) -> PriceInfo | None:
        """Return the latest observation for a feed, or None if never seen."""
        return self._latest.get(price_id)

    def update_price_info(self, price_id: str, info: PriceInfo) -> None:
        """Store a new observation unless it is older than the current one.

        :param price_id: Feed id.
        :param info: Newly received observation.
        """
        current = self._latest.get(price_id)
        if current is not None and info.publish_time < current.publish_time:
            logger.debug(
                f"[{self.name}] Ignoring older observation for {price_id}: "
                f"{info.publish_time} < {current.publish_time}"
            )
            return
        self._latest[price_id] = info

    @abstractmethod
    async def poll(self) -> dict[str, PriceInfo]:
        """Fetch the current observations for the tracked feeds.

        :returns: Dict mapping feed id to observation. Feeds that could not
            be fetched are omitted.
        """
        pass

    async def refresh(self) -> None:
        """Poll once and store the results. Errors are logged, not raised."""
        try:
            results = await self.poll()
        except Exception as e:
            logger.warning(f"[{self.name}] Poll failed: {e}")
            return

        for price_id, info in results.items():
            self.update_price_info(price_id, info)
        logger.debug(f"[{self.name}] Refreshed {len(results)}/{len(self.price_ids)} feeds")

    async def start(self) -> None:
        """Do an initial poll and start the background refresh task."""
        await self.refresh()
        self._task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        """Cancel the background refresh task."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.polling_frequency)
            await self.refresh()
