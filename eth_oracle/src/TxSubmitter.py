"""TxSubmitter: Write-back of normalized prices to the oracle contract."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from web3 import Web3

if TYPE_CHECKING:
    from web3.contract import Contract

    from .PriceNormalizer import NormalizedValue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of one write-back transaction.

    :ivar success: True if the transaction was mined with status 1.
    :ivar tx_hash: Transaction hash, if the transaction was sent.
    :ivar error: Failure description, if any.
    """

    success: bool
    tx_hash: str | None = None
    error: str | None = None


class TxSubmitter:
    """Sends ``setLatestEthPrice`` transactions from the oracle account.

    Transactions are signed locally by the web3 signing middleware installed
    by ContractUtility and sent directly to the node.

    :ivar w3: Web3 instance used for sending.
    :ivar contract: Oracle contract instance.
    :ivar owner_address: Oracle account the transaction is sent from.
    :ivar receipt_timeout: Seconds to wait for the receipt.
    """

    METHOD_NAME = "setLatestEthPrice"

    def __init__(
        self,
        w3: Web3,
        contract: Contract,
        owner_address: str,
        receipt_timeout: float = 120.0,
    ) -> None:
        """Initialize the submitter.

        :param w3: Connected Web3 instance.
        :param contract: Oracle contract exposing ``setLatestEthPrice``.
        :param owner_address: Address of the oracle account.
        :param receipt_timeout: Seconds to wait for the receipt (default: 120).
        """
        self.w3 = w3
        self.contract = contract
        self.owner_address = owner_address
        self.receipt_timeout = receipt_timeout

    def submit_price(self, value: NormalizedValue) -> SubmissionResult:
        """Send the write-back transaction and wait for its receipt.

        Never raises for transaction failures; they are returned as a failed
        result so the caller decides what to log.

        :param value: Normalized price, caller address and request id.
        :returns: Result of the submission.
        """
        try:
            caller_address = Web3.to_checksum_address(value.caller_address)
            write_back = getattr(self.contract.functions, self.METHOD_NAME)
            tx_params = write_back(
                value.price, caller_address, value.id
            ).build_transaction(
                {"from": self.owner_address, "gasPrice": self.w3.eth.gas_price}
            )

            tx_hash = self.w3.eth.send_transaction(tx_params)
            tx_receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except Exception as e:
            return SubmissionResult(success=False, error=f"{type(e).__name__}: {e}")

        tx_hex = Web3.to_hex(tx_hash)
        if tx_receipt["status"] != 1:
            return SubmissionResult(
                success=False, tx_hash=tx_hex, error="transaction reverted"
            )

        logger.debug(f"{self.METHOD_NAME} mined in block {tx_receipt['blockNumber']}")
        return SubmissionResult(success=True, tx_hash=tx_hex)
