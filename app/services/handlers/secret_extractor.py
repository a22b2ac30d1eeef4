"""
HTLC secret extraction.

The Claimed event does not carry the preimage; it is read from the
calldata of the claim transaction.
"""

from eth_abi.exceptions import DecodingError
from loguru import logger
from web3 import Web3
from web3.exceptions import Web3Exception

from app.services.blockchain.client_registry import ChainClientRegistry
from app.services.blockchain.contract_abis import ESCROW_ABI
from app.utils.exceptions import IndexerError
from app.utils.hex_utils import to_hex
from app.utils.security import mask_tx_hash

_CLAIM_FUNCTION = "claim"

# Only the ABI codec is used, no provider calls
_escrow_contract = Web3().eth.contract(abi=ESCROW_ABI)


def decode_claim_secret(calldata: str | bytes) -> str | None:
    """
    Decode `claim(bytes32 lockId, bytes32 secret)` calldata.

    Args:
        calldata: Transaction input

    Returns:
        Secret as lowercase hex, or None if the input is not a claim call

    Raises:
        ValueError: If the input cannot be decoded against the escrow ABI
    """
    if not calldata or calldata in ("0x", b""):
        return None

    func, params = _escrow_contract.decode_function_input(calldata)
    if func.fn_name != _CLAIM_FUNCTION:
        return None
    return to_hex(params["secret"])


class SecretExtractor:
    """Reads revealed secrets from claim transactions."""

    def __init__(self, clients: ChainClientRegistry) -> None:
        self.clients = clients

    async def extract(self, chain_id: int, tx_hash: str) -> str | None:
        """
        Best-effort secret lookup.

        Returns:
            Secret hex or None when the tx is unknown, not a direct claim
            call, or the RPC fails
        """
        try:
            client = self.clients.get(chain_id)
            tx = await client.get_transaction(tx_hash)
            if tx is None:
                logger.warning(
                    f"[Secrets] Chain {chain_id}: claim tx "
                    f"{mask_tx_hash(tx_hash)} not found"
                )
                return None
            return decode_claim_secret(tx["input"])
        except (
            IndexerError,
            Web3Exception,
            DecodingError,
            ValueError,
            KeyError,
            TypeError,
        ) as e:
            logger.warning(
                f"[Secrets] Chain {chain_id}: cannot extract secret from "
                f"{mask_tx_hash(tx_hash)}: {e}"
            )
            return None
