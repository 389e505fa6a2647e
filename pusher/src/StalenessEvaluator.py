"""StalenessEvaluator: Decide whether an on-chain price needs a push.

Rules (short-circuit, in order):
    1. No source observation: nothing to push.
    2. No target observation: the feed was never published on-chain, push.
    3. Source older than target: pushing would be a regression, skip.
    4. Otherwise push if ANY of the three signals reaches its threshold:
        - time difference: source.publish_time - target.publish_time
        - price deviation: |source.price - target.price| / |target.price| * 100
        - confidence ratio: |source.conf / source.price| * 100

Thresholds are inclusive (``>=``).

.. code-block:: python

    >>> config = PriceConfig("BTC/USD", "ab", 60, 1.0, 10.0)
    >>> should_update(config, PriceInfo(110, 1, 1000), PriceInfo(100, 1, 990))
    True
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from .PriceConfig import PriceConfig
from .PriceListener import PriceInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StalenessSignals:
    """The three values compared against a feed's thresholds.

    :ivar time_difference: Seconds the source is ahead of the target.
    :ivar price_deviation_pct: Source vs target price change, in percent
        of the target price.
    :ivar confidence_ratio_pct: Source confidence in percent of the source
        price.
    """

    time_difference: int
    price_deviation_pct: float
    confidence_ratio_pct: float

    def passes_any(self, config: PriceConfig) -> bool:
        """Check if any signal reaches its configured threshold."""
        return (
            self.time_difference >= config.time_difference
            or self.price_deviation_pct >= config.price_deviation
            or self.confidence_ratio_pct >= config.confidence_ratio
        )


def compute_signals(source: PriceInfo, target: PriceInfo) -> StalenessSignals:
    """Compute staleness signals using the target price as deviation baseline.

    A zero denominator yields an infinite signal, which always trips,
    unless the numerator is zero too, in which case the signal is zero.

    :param source: Latest off-chain observation.
    :param target: Latest on-chain observation.
    :returns: The computed signals.
    """
    time_difference = source.publish_time - target.publish_time

    if target.price == 0:
        price_deviation_pct = 0.0 if source.price == 0 else math.inf
    else:
        price_deviation_pct = abs(source.price - target.price) / abs(target.price) * 100

    if source.price == 0:
        confidence_ratio_pct = 0.0 if source.conf == 0 else math.inf
    else:
        confidence_ratio_pct = abs(source.conf / source.price) * 100

    return StalenessSignals(
        time_difference=time_difference,
        price_deviation_pct=price_deviation_pct,
        confidence_ratio_pct=confidence_ratio_pct,
    )


def should_update(
    config: PriceConfig,
    source: PriceInfo | None,
    target: PriceInfo | None,
) -> bool:
    """Check whether the on-chain price for a feed needs to be updated.

    :param config: Thresholds of the feed.
    :param source: Latest off-chain observation, or None if not seen yet.
    :param target: Latest on-chain observation, or None if never published.
    :returns: True if the feed should be pushed.
    """
    if source is None:
        return False

    if target is None:
        logger.info(f"{config} is not available on the target network. Pushing the price.")
        return True

    if source.publish_time < target.publish_time:
        return False

    signals = compute_signals(source, target)

    logger.info(f"Analyzing price {config}")
    logger.debug(f"Source latest price: {source}")
    logger.debug(f"Target latest price: {target}")
    logger.info(
        f"Time difference: {signals.time_difference} (< {config.time_difference}?)"
    )
    logger.info(
        f"Price deviation: {signals.price_deviation_pct:.5f}% "
        f"(< {config.price_deviation}%?)"
    )
    logger.info(
        f"Confidence ratio: {signals.confidence_ratio_pct:.5f}% "
        f"(< {config.confidence_ratio}%?)"
    )

    result = signals.passes_any(config)
    if result:
        logger.info("Some of the above values passed the threshold. Will push the price.")
    else:
        logger.info("None of the above values passed the threshold. No push needed.")
    return result
