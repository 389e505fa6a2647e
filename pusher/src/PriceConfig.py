"""PriceConfig: Per-feed push thresholds loaded from a JSON file.

Each tracked feed carries three thresholds. A feed is pushed when any one
of them is reached (see StalenessEvaluator).

.. code-block:: json

    [
        {
            "alias": "BTC/USD",
            "id": "0xe62df6c8b4a85fe1a67db44dc12de5db330f7ac66b72dc658afedf0f4a415b43",
            "time_difference": 60,
            "price_deviation": 0.5,
            "confidence_ratio": 1
        }
    ]
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any


def remove_leading_0x(value: str) -> str:
    """Strip a leading ``0x`` prefix if present."""
    return value[2:] if value.startswith("0x") else value


def add_leading_0x(value: str) -> str:
    """Add a leading ``0x`` prefix if missing."""
    return value if value.startswith("0x") else f"0x{value}"


def parse_seconds(value: Any) -> int:
    """Parse a whole number of seconds, rejecting fractional values.

    :param value: Int, integral float or numeric string.
    :returns: The value as int.
    :raises ValueError: If the value is fractional, NaN or not numeric.
    """
    if isinstance(value, bool):
        raise ValueError(f"Expected whole seconds, got {value!r}")
    if isinstance(value, int):
        return value
    number = float(value)
    if not number.is_integer():
        raise ValueError(f"Expected whole seconds, got {value!r}")
    return int(number)


@dataclass(frozen=True)
class PriceConfig:
    """Push thresholds for a single price feed.

    :ivar alias: Human readable name (e.g., "BTC/USD").
    :ivar id: Feed id as lower-case hex without the ``0x`` prefix.
    :ivar time_difference: Seconds between source and target publish times.
    :ivar price_deviation: Percent change of source price vs target price.
    :ivar confidence_ratio: Percent of source confidence vs source price.
    """

    alias: str
    id: str
    time_difference: int
    price_deviation: float
    confidence_ratio: float

    def __post_init__(self) -> None:
        for field in ("time_difference", "price_deviation", "confidence_ratio"):
            value = getattr(self, field)
            if math.isnan(value) or value < 0:
                raise ValueError(
                    f"{self.alias}: {field} must be non-negative, "
                    f"got {value}"
                )

    def __str__(self) -> str:
        return f"{self.alias} ({self.id})"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PriceConfig:
        """Build a config from one entry of the price config file.

        :param data: Dict with alias, id and the three thresholds.
        :returns: New PriceConfig instance.
        :raises ValueError: If a key is missing or a value is malformed.
        """
        try:
            return cls(
                alias=str(data["alias"]),
                id=remove_leading_0x(str(data["id"])).lower(),
                time_difference=parse_seconds(data["time_difference"]),
                price_deviation=float(data["price_deviation"]),
                confidence_ratio=float(data["confidence_ratio"]),
            )
        except KeyError as e:
            raise ValueError(f"Missing key {e} in price config entry {data!r}") from e
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid price config entry {data!r}: {e}") from e


def load_price_configs(path: str | Path) -> list[PriceConfig]:
    """Load and validate the price config file.

    :param path: Path to a JSON file containing a list of feed entries.
    :returns: List of PriceConfig in file order.
    :raises ValueError: On malformed entries or duplicate feed ids.
    """
    with open(path, "r") as file:
        raw = json.load(file)

    if not isinstance(raw, list):
        raise ValueError(f"Price config file {path} must contain a JSON list")

    configs = [PriceConfig.from_dict(entry) for entry in raw]

    seen: set[str] = set()
    for config in configs:
        if config.id in seen:
            raise ValueError(f"Duplicate price feed id in config: {config.id}")
        seen.add(config.id)

    return configs
