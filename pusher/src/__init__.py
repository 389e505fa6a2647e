"""
Pyth EVM Price Pusher

This module keeps on-chain Pyth prices fresh:
- PriceConfig: Per-feed push thresholds
- PriceListener: Latest source and target observations
- StalenessEvaluator: Decides whether a feed needs a push
- UpdateBatcher: Selects the feeds to push in one tick
- SubmissionPipeline: Fetches update data and submits it on-chain
- Pusher: Main scheduler loop
"""

from .PriceConfig import PriceConfig, load_price_configs
from .PriceListener import PriceInfo, PriceListener
from .Pusher import Pusher
from .StalenessEvaluator import StalenessSignals, compute_signals, should_update
from .SubmissionOutcome import OutcomeKind, PayerOutOfFundsError, SubmissionOutcome
from .SubmissionPipeline import SubmissionPipeline
from .UpdateBatcher import PushBatch, PushEntry, select_batch

__all__ = [
    "OutcomeKind",
    "PayerOutOfFundsError",
    "PriceConfig",
    "PriceInfo",
    "PriceListener",
    "PushBatch",
    "PushEntry",
    "Pusher",
    "StalenessSignals",
    "SubmissionOutcome",
    "SubmissionPipeline",
    "compute_signals",
    "load_price_configs",
    "select_batch",
    "should_update",
]
