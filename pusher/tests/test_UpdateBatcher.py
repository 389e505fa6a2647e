"""Unit tests for UpdateBatcher."""

from pusher.src.PriceConfig import PriceConfig
from pusher.src.PriceListener import PriceInfo, PriceListener
from pusher.src.UpdateBatcher import PushEntry, select_batch


class StaticListener(PriceListener):
    """Listener with fixed observations."""

    def __init__(self, infos: dict[str, PriceInfo]) -> None:
        super().__init__(list(infos))
        for price_id, info in infos.items():
            self.update_price_info(price_id, info)

    async def poll(self) -> dict[str, PriceInfo]:
        return {}


def make_config(price_id: str) -> PriceConfig:
    return PriceConfig(
        alias=price_id.upper(),
        id=price_id,
        time_difference=60,
        price_deviation=1.0,
        confidence_ratio=10.0,
    )


class TestSelectBatch:
    """Test batch selection."""

    def test_baseline_is_target_time_plus_one(self) -> None:
        """Stale feed should carry the target publish time + 1."""
        config = make_config("aa")
        source = StaticListener({"aa": PriceInfo(100, 1, 1000)})
        target = StaticListener({"aa": PriceInfo(100, 1, 930)})

        batch = select_batch([config], source, target)

        assert batch == [PushEntry(config=config, baseline_publish_time=931)]

    def test_baseline_without_target(self) -> None:
        """Feed never seen on-chain should get baseline 1."""
        config = make_config("aa")
        source = StaticListener({"aa": PriceInfo(100, 1, 1000)})
        target = StaticListener({})

        batch = select_batch([config], source, target)

        assert len(batch) == 1
        assert batch[0].baseline_publish_time == 1

    def test_fresh_feed_not_selected(self) -> None:
        config = make_config("aa")
        source = StaticListener({"aa": PriceInfo(100, 1, 1000)})
        target = StaticListener({"aa": PriceInfo(100, 1, 950)})

        assert select_batch([config], source, target) == []

    def test_missing_source_not_selected(self) -> None:
        config = make_config("aa")
        source = StaticListener({})
        target = StaticListener({})

        assert select_batch([config], source, target) == []

    def test_order_follows_configs(self) -> None:
        """Batch order should follow config order."""
        configs = [make_config("cc"), make_config("aa"), make_config("bb")]
        source = StaticListener({
            "aa": PriceInfo(100, 1, 1000),
            "bb": PriceInfo(100, 1, 1000),
            "cc": PriceInfo(100, 1, 1000),
        })
        target = StaticListener({"bb": PriceInfo(100, 1, 990)})

        batch = select_batch(configs, source, target)

        assert [entry.config.id for entry in batch] == ["cc", "aa"]

    def test_duplicate_feed_only_once(self) -> None:
        """A feed should never appear twice in a batch."""
        config = make_config("aa")
        source = StaticListener({"aa": PriceInfo(100, 1, 1000)})
        target = StaticListener({})

        batch = select_batch([config, config], source, target)

        assert len(batch) == 1
