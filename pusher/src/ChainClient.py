"""ChainClient: Web3 connection, signing account and Pyth contract handle."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from eth_account import Account
from eth_account.signers.local import LocalAccount
from sapphirepy import sapphire
from web3 import Web3
from web3.exceptions import ContractLogicError
from web3.middleware import SignAndSendRawMiddlewareBuilder

from .PriceConfig import add_leading_0x
from .PriceListener import PriceInfo
from .SubmissionOutcome import SubmissionOutcome, classify_error

if TYPE_CHECKING:
    from web3.contract import Contract

logger = logging.getLogger(__name__)


class ChainClient:
    """Signing client for the on-chain Pyth contract.

    Built once at startup and never mutated afterwards. Every method is
    blocking; async callers run them in a worker thread.

    :ivar endpoint: EVM RPC URL.
    :ivar account: Account paying for updates.
    :ivar w3: Configured Web3 instance.
    :ivar contract: Pyth contract instance.
    """

    def __init__(
        self,
        endpoint: str,
        mnemonic: str,
        contract_address: str,
        sapphire_wrap: bool = False,
        request_timeout: float = 30.0,
        w3: Web3 | None = None,
    ) -> None:
        """Initialize the chain client.

        :param endpoint: EVM RPC URL.
        :param mnemonic: BIP-39 mnemonic; the first derived account pays.
        :param contract_address: Address of the Pyth contract.
        :param sapphire_wrap: Wrap the provider for Oasis Sapphire
            transaction encryption.
        :param request_timeout: Seconds before a blocking RPC request is
            abandoned (default: 30).
        :param w3: Optional pre-built Web3 instance, mainly for tests.
        """
        self.endpoint = endpoint

        Account.enable_unaudited_hdwallet_features()
        self.account: LocalAccount = Account.from_mnemonic(mnemonic)

        self.w3 = w3 or Web3(
            Web3.HTTPProvider(endpoint, request_kwargs={"timeout": request_timeout})
        )
        self.w3.middleware_onion.add(SignAndSendRawMiddlewareBuilder.build(self.account))
        self.w3.eth.default_account = self.account.address
        if sapphire_wrap:
            self.w3 = sapphire.wrap(self.w3)

        self.contract: Contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(contract_address),
            abi=ChainClient.get_abi("AbstractPyth"),
        )

        logger.info(f"Payer account: {self.account.address}")

    @staticmethod
    def get_abi(contract_name: str) -> list:
        """Load a contract ABI shipped in the ``abis`` folder.

        :param contract_name: Name of the contract (e.g., "AbstractPyth").
        :returns: The ABI list.
        """
        output_path = (Path(__file__).parent / "abis" / f"{contract_name}.json").resolve()

        with open(output_path, "r") as file:
            contract_data = json.load(file)

        return contract_data["abi"]

    def get_update_fee(self, num_updates: int) -> int:
        """Ask the contract for the fee of applying ``num_updates`` payloads."""
        return self.contract.functions.getUpdateFee(num_updates).call()

    def get_price_unsafe(self, price_id: str) -> PriceInfo | None:
        """Read the price currently stored on-chain for a feed.

        :param price_id: Feed id, with or without ``0x``.
        :returns: Stored price, or None if the feed was never published.
        """
        try:
            price, conf, _expo, publish_time = self.contract.functions.getPriceUnsafe(
                add_leading_0x(price_id)
            ).call()
        except ContractLogicError as e:
            logger.debug(f"No on-chain price for {price_id}: {e}")
            return None
        return PriceInfo(price=int(price), conf=int(conf), publish_time=int(publish_time))

    def update_price_feeds_if_necessary(
        self,
        update_data: list[bytes],
        price_ids: list[str],
        publish_times: list[int],
        fee: int,
    ) -> SubmissionOutcome:
        """Send the update transaction and classify the result.

        The contract skips feeds whose payload is not newer than the given
        publish time, and reverts if none of them are.

        :param update_data: Signed update payloads.
        :param price_ids: Feed ids (``0x``-prefixed), parallel to publish_times.
        :param publish_times: Baseline publish times per feed.
        :param fee: Update fee in wei, sent as the transaction value.
        :returns: ACCEPTED with the hash, or the classified failure.
        """
        try:
            tx_hash = self.contract.functions.updatePriceFeedsIfNecessary(
                update_data, price_ids, publish_times
            ).transact({"from": self.account.address, "value": fee})
        except Exception as e:
            return classify_error(e)
        return SubmissionOutcome.accepted(Web3.to_hex(tx_hash))
