#!/usr/bin/env python3
"""Pyth EVM Price Pusher.

Watches Pyth prices off-chain and on an EVM chain, and pushes fresh signed
updates on-chain whenever a feed's time, deviation or confidence threshold
is reached.

Exits with status 1 when the payer account runs out of funds.
"""

import argparse
import asyncio
import logging
import os
import signal
import sys

from .src.ChainClient import ChainClient
from .src.EvmPriceListener import EvmPriceListener
from .src.PriceConfig import PriceConfig, load_price_configs
from .src.PriceServiceConnection import PriceServiceConnection
from .src.Pusher import Pusher
from .src.PythPriceListener import PythPriceListener
from .src.SubmissionOutcome import PayerOutOfFundsError
from .src.SubmissionPipeline import SubmissionPipeline

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

DEFAULT_PRICE_SERVICE_ENDPOINT = "https://hermes.pyth.network"


def read_mnemonic(mnemonic_file: str | None) -> str | None:
    """Read the payer mnemonic from a file, falling back to MNEMONIC.

    :param mnemonic_file: Path to a file holding the mnemonic phrase.
    :returns: The mnemonic phrase, or None if not configured.
    """
    if mnemonic_file:
        with open(mnemonic_file, "r") as file:
            return file.read().strip()
    return os.environ.get("MNEMONIC") or None


def env_flag(name: str) -> bool:
    """Check if an environment variable is set to a truthy value."""
    return (os.environ.get(name) or "").strip().lower() in ("1", "true", "yes", "on")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Pyth EVM Price Pusher: keeps on-chain prices fresh",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m pusher.main --evm-endpoint https://sepolia.example.org \\
      --pyth-contract 0xDd24F84d36BF92C65F92307595335bdFab5Bbd21 \\
      --price-config-file price-config.json --mnemonic-file mnemonic

Environment variables (CLI args take precedence):
  EVM_ENDPOINT, PYTH_CONTRACT, PRICE_SERVICE_ENDPOINT, PRICE_CONFIG_FILE,
  MNEMONIC_FILE, MNEMONIC, COOLDOWN_DURATION, EVM_POLLING_FREQUENCY,
  PYTH_POLLING_FREQUENCY, REQUEST_TIMEOUT, SAPPHIRE
""",
    )

    parser.add_argument(
        "--evm-endpoint",
        dest="evm_endpoint",
        type=str,
        help="RPC URL of the target EVM chain",
        default=os.environ.get("EVM_ENDPOINT"),
    )

    parser.add_argument(
        "--pyth-contract",
        dest="pyth_contract",
        type=str,
        help="Address of the Pyth contract on the target chain",
        default=os.environ.get("PYTH_CONTRACT"),
    )

    parser.add_argument(
        "--price-service-endpoint",
        dest="price_service_endpoint",
        type=str,
        help=f"Price service URL (default: {DEFAULT_PRICE_SERVICE_ENDPOINT})",
        default=os.environ.get("PRICE_SERVICE_ENDPOINT") or DEFAULT_PRICE_SERVICE_ENDPOINT,
    )

    parser.add_argument(
        "--price-config-file",
        dest="price_config_file",
        type=str,
        help="JSON file listing the feeds to push and their thresholds",
        default=os.environ.get("PRICE_CONFIG_FILE"),
    )

    parser.add_argument(
        "--mnemonic-file",
        dest="mnemonic_file",
        type=str,
        help="File containing the payer mnemonic (or set MNEMONIC)",
        default=os.environ.get("MNEMONIC_FILE"),
    )

    parser.add_argument(
        "--cooldown-duration",
        dest="cooldown_duration",
        type=float,
        help="Seconds between push attempts (minimum: 1, default: 10)",
        default=float(os.environ.get("COOLDOWN_DURATION") or "10"),
    )

    parser.add_argument(
        "--evm-polling-frequency",
        dest="evm_polling_frequency",
        type=float,
        help="Seconds between on-chain price polls (default: 5)",
        default=float(os.environ.get("EVM_POLLING_FREQUENCY") or "5"),
    )

    parser.add_argument(
        "--pyth-polling-frequency",
        dest="pyth_polling_frequency",
        type=float,
        help="Seconds between price service polls (default: 5)",
        default=float(os.environ.get("PYTH_POLLING_FREQUENCY") or "5"),
    )

    parser.add_argument(
        "--request-timeout",
        dest="request_timeout",
        type=float,
        help="Timeout for update data fetch and submission in seconds (default: 30)",
        default=float(os.environ.get("REQUEST_TIMEOUT") or "30"),
    )

    parser.add_argument(
        "--sapphire",
        action="store_true",
        help="Target chain is Oasis Sapphire (encrypt transactions)",
        default=env_flag("SAPPHIRE"),
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    return parser


async def run_pusher(
    args: argparse.Namespace, mnemonic: str, price_configs: list[PriceConfig]
) -> None:
    """Wire up the collaborators and run the pusher until stopped."""
    price_ids = [config.id for config in price_configs]

    connection = PriceServiceConnection(
        args.price_service_endpoint, timeout=args.request_timeout
    )
    chain_client = ChainClient(
        endpoint=args.evm_endpoint,
        mnemonic=mnemonic,
        contract_address=args.pyth_contract,
        sapphire_wrap=args.sapphire,
        request_timeout=args.request_timeout,
    )

    source_listener = PythPriceListener(
        connection, price_ids, polling_frequency=args.pyth_polling_frequency
    )
    target_listener = EvmPriceListener(
        chain_client, price_ids, polling_frequency=args.evm_polling_frequency
    )
    pipeline = SubmissionPipeline(
        connection,
        chain_client,
        fetch_timeout=args.request_timeout,
        submit_timeout=args.request_timeout,
    )
    pusher = Pusher(
        price_configs,
        source_listener,
        target_listener,
        pipeline,
        cooldown_duration=args.cooldown_duration,
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    await source_listener.start()
    await target_listener.start()
    try:
        await pusher.run(stop_event)
    finally:
        await source_listener.stop()
        await target_listener.stop()
        await connection.close()


def main() -> None:
    """Main entry point for the price pusher CLI."""
    parser = build_parser()
    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Validate arguments
    if not args.evm_endpoint:
        parser.error("--evm-endpoint is required")

    if not args.pyth_contract:
        parser.error("--pyth-contract is required")

    if not args.price_config_file:
        parser.error("--price-config-file is required")

    if args.cooldown_duration < 1:
        parser.error("--cooldown-duration must be at least 1 second")

    if args.request_timeout <= 0:
        parser.error("--request-timeout must be positive")

    try:
        mnemonic = read_mnemonic(args.mnemonic_file)
    except OSError as e:
        parser.error(f"Cannot read mnemonic file: {e}")
    if not mnemonic:
        parser.error("A mnemonic is required (--mnemonic-file or MNEMONIC)")

    try:
        price_configs = load_price_configs(args.price_config_file)
    except (OSError, ValueError) as e:
        parser.error(f"Invalid price config file: {e}")

    if not price_configs:
        parser.error("At least one price feed must be configured")

    # Log configuration
    logger.info("=" * 60)
    logger.info("Pyth EVM Price Pusher")
    logger.info("=" * 60)
    logger.info(f"EVM Endpoint:      {args.evm_endpoint}")
    logger.info(f"Pyth Contract:     {args.pyth_contract}")
    logger.info(f"Price Service:     {args.price_service_endpoint}")
    logger.info(f"Price Feeds:       {', '.join(c.alias for c in price_configs)}")
    logger.info(f"Cooldown:          {args.cooldown_duration}s")
    logger.info(f"EVM Polling:       {args.evm_polling_frequency}s")
    logger.info(f"Pyth Polling:      {args.pyth_polling_frequency}s")
    logger.info(f"Request Timeout:   {args.request_timeout}s")
    logger.info(f"Sapphire:          {args.sapphire}")
    logger.info("=" * 60)

    try:
        asyncio.run(run_pusher(args, mnemonic, price_configs))
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except PayerOutOfFundsError as e:
        logger.error(f"Stopping, top up the payer account: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
