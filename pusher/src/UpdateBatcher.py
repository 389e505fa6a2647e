"""UpdateBatcher: Select the feeds to push in one scheduler tick."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .StalenessEvaluator import should_update

if TYPE_CHECKING:
    from .PriceConfig import PriceConfig
    from .PriceListener import PriceListener

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PushEntry:
    """A feed selected for pushing.

    :ivar config: Feed config.
    :ivar baseline_publish_time: Target publish time seen at decision time
        plus one. The contract skips the feed unless the update is newer.
    """

    config: PriceConfig
    baseline_publish_time: int


PushBatch = list[PushEntry]


def select_batch(
    configs: list[PriceConfig],
    source_listener: PriceListener,
    target_listener: PriceListener,
) -> PushBatch:
    """Scan all feeds and collect the ones that need an update.

    Baselines are captured here, once per tick, so that a newer target
    observation arriving during submission does not change what is sent.

    :param configs: Configured feeds, in push order.
    :param source_listener: Listener for off-chain prices.
    :param target_listener: Listener for on-chain prices.
    :returns: Ordered batch, each feed at most once.
    """
    batch: PushBatch = []
    seen: set[str] = set()

    for config in configs:
        if config.id in seen:
            logger.warning(f"{config} configured more than once, skipping duplicate")
            continue
        seen.add(config.id)

        source = source_listener.get_latest_price_info(config.id)
        target = target_listener.get_latest_price_info(config.id)

        if should_update(config, source, target):
            baseline = (target.publish_time if target is not None else 0) + 1
            batch.append(PushEntry(config=config, baseline_publish_time=baseline))

    return batch
