"""EvmPriceListener: Target prices polled from the on-chain contract."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .PriceListener import PriceInfo, PriceListener

if TYPE_CHECKING:
    from .ChainClient import ChainClient

logger = logging.getLogger(__name__)


class EvmPriceListener(PriceListener):
    """Tracks the price currently stored on-chain for each feed.

    Feeds that were never published stay absent.

    :ivar chain_client: Client used for contract reads.
    """

    name = "evm"

    def __init__(
        self,
        chain_client: ChainClient,
        price_ids: list[str],
        polling_frequency: float = 5.0,
    ) -> None:
        super().__init__(price_ids, polling_frequency)
        self.chain_client = chain_client

    async def _read(self, price_id: str) -> PriceInfo | None:
        try:
            return await asyncio.to_thread(self.chain_client.get_price_unsafe, price_id)
        except Exception as e:
            logger.warning(f"[evm] Failed to read on-chain price for {price_id}: {e}")
            return None

    async def poll(self) -> dict[str, PriceInfo]:
        infos = await asyncio.gather(*(self._read(price_id) for price_id in self.price_ids))
        return {
            price_id: info
            for price_id, info in zip(self.price_ids, infos, strict=True)
            if info is not None
        }
