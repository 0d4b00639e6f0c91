"""ContractUtility: Web3 connection, oracle account and contract resolution."""

import json
import logging
import os
from pathlib import Path

import requests
from eth_account import Account
from eth_account.signers.local import LocalAccount
from sapphirepy import sapphire
from web3 import Web3
from web3.contract import Contract
from web3.middleware import SignAndSendRawMiddlewareBuilder

logger = logging.getLogger(__name__)

DEFAULT_PRIVATE_KEY_FILE = "./oracle/oracle_private_key"
DEFAULT_CONTRACT_ARTIFACT = "./oracle/build/contracts/EthPriceOracle.json"

NETWORKS = {
    "localhost": "http://localhost:8545",
    "sepolia": "https://ethereum-sepolia-rpc.publicnode.com",
    "sapphire": "https://sapphire.oasis.io",
    "sapphire-testnet": "https://testnet.sapphire.oasis.io",
    "sapphire-localnet": "http://localhost:8545",
}


class ContractResolutionError(RuntimeError):
    """Raised when the oracle contract is not deployed on the connected network."""

    pass


def load_private_key(path: str | os.PathLike) -> str:
    """Read a hex-encoded private key from a file.

    :param path: Key file path. Surrounding whitespace is ignored and the
        ``0x`` prefix is optional.
    :returns: Private key with ``0x`` prefix.
    :raises ValueError: If the file does not hold a 32-byte hex key.
    """
    key = Path(path).read_text().strip()
    if key.startswith(("0x", "0X")):
        key = key[2:]
    try:
        raw = bytes.fromhex(key)
    except ValueError as e:
        raise ValueError(f"Private key in {path} is not hex") from e
    if len(raw) != 32:
        raise ValueError(f"Private key in {path} must be 32 bytes, got {len(raw)}")
    return "0x" + key.lower()


class ContractUtility:
    """Utility for the ledger connection used by the oracle.

    :ivar network: Network RPC URL.
    :ivar account: Oracle account signing write-back transactions.
    :ivar w3: Configured Web3 instance.
    """

    def __init__(self, network_name: str, private_key_file: str) -> None:
        """Connect to the network and load the oracle account.

        :param network_name: Known network name or an RPC URL.
        :param private_key_file: File holding the oracle's private key.
        """
        # RPC_URL env var overrides the default for the network
        self.network = os.environ.get("RPC_URL") or NETWORKS.get(network_name, network_name)

        self.account: LocalAccount = Account.from_key(load_private_key(private_key_file))

        self._session = requests.Session()
        self.w3 = Web3(Web3.HTTPProvider(self.network, session=self._session))
        self.w3.middleware_onion.add(SignAndSendRawMiddlewareBuilder.build(self.account))
        self.w3.eth.default_account = self.account.address
        if network_name.startswith("sapphire"):
            self.w3 = sapphire.wrap(self.w3)

        logger.info(f"Connected to {self.network} as {self.account.address}")

    @property
    def owner_address(self) -> str:
        """Address write-back transactions are sent from."""
        return self.account.address

    @staticmethod
    def get_contract(artifact_path: str | os.PathLike) -> tuple[list, dict]:
        """Load ABI and deployments from a Truffle build artifact.

        :param artifact_path: Path to the contract's build JSON.
        :returns: Tuple of (abi, networks) where networks maps a network id
            to its deployment record.
        """
        with open(artifact_path, "r") as file:
            contract_data = json.load(file)

        abi = contract_data["abi"]
        networks = contract_data.get("networks", {})
        return abi, networks

    def resolve_contract(self, artifact_path: str | os.PathLike) -> Contract:
        """Instantiate the oracle contract deployed on the connected network.

        :param artifact_path: Path to the contract's build JSON.
        :returns: Contract instance.
        :raises ContractResolutionError: If the artifact has no deployment
            for the current network id.
        """
        abi, networks = self.get_contract(artifact_path)
        network_id = str(self.w3.net.version)

        deployment = networks.get(network_id)
        if not deployment or not deployment.get("address"):
            raise ContractResolutionError(
                f"Contract in {artifact_path} is not deployed on network {network_id}"
            )

        address = Web3.to_checksum_address(deployment["address"])
        logger.info(f"Oracle contract at {address} (network {network_id})")
        return self.w3.eth.contract(address=address, abi=abi)

    def disconnect(self) -> None:
        """Close the HTTP session behind the provider."""
        logger.info("Calling client.disconnect()")
        self._session.close()
