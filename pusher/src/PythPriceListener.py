"""PythPriceListener: Source prices polled from the price service."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .PriceListener import PriceInfo, PriceListener

if TYPE_CHECKING:
    from .PriceServiceConnection import PriceServiceConnection


class PythPriceListener(PriceListener):
    """Tracks the latest off-chain price of each feed.

    :ivar connection: Price service client.
    """

    name = "pyth"

    def __init__(
        self,
        connection: PriceServiceConnection,
        price_ids: list[str],
        polling_frequency: float = 5.0,
    ) -> None:
        super().__init__(price_ids, polling_frequency)
        self.connection = connection

    async def poll(self) -> dict[str, PriceInfo]:
        return await self.connection.get_latest_price_feeds(self.price_ids)
