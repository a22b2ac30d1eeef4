"""
Event decoder.

Turns raw eth_getLogs entries into typed events using the ABI of the
contract kind the emitting address is configured as.
"""

from dataclasses import dataclass
from typing import Any

from eth_abi.codec import ABICodec
from eth_abi.exceptions import DecodingError
from eth_abi.registry import registry as default_registry
from eth_utils import event_abi_to_log_topic
from loguru import logger
from web3._utils.events import get_event_data
from web3.exceptions import MismatchedABI

from app.models.indexed_event import IndexedEvent
from app.services.blockchain.contract_abis import event_abis
from app.services.events.types import ContractEvent, lookup_event_type
from app.utils.exceptions import EventDecodeError
from app.utils.hex_utils import to_hex, to_json_safe
from app.utils.security import mask_tx_hash


@dataclass(frozen=True)
class DecodedLog:
    """A decoded log with its position on chain."""

    chain_id: int
    contract_address: str
    kind: str
    event_name: str
    tx_hash: str
    log_index: int
    block_number: int
    block_hash: str
    args: dict[str, Any]
    event: ContractEvent

    @property
    def key(self) -> tuple[int, str, int]:
        return (self.chain_id, self.tx_hash, self.log_index)

    @classmethod
    def from_record(cls, record: IndexedEvent, kind: str) -> "DecodedLog":
        """
        Rebuild from a stored event (replay path).

        Raises:
            EventDecodeError: If the stored event has no known type
        """
        event_cls = lookup_event_type(kind, record.event_name)
        if event_cls is None:
            raise EventDecodeError(
                f"No event type for {kind}.{record.event_name}"
            )
        return cls(
            chain_id=record.chain_id,
            contract_address=record.contract_address,
            kind=kind,
            event_name=record.event_name,
            tx_hash=record.tx_hash,
            log_index=record.log_index,
            block_number=record.block_number,
            block_hash=record.block_hash,
            args=dict(record.args),
            event=event_cls.from_args(record.args),
        )


class EventDecoder:
    """
    Decoder for the contracts configured on one chain.

    Args:
        chain_id: Chain the logs come from
        contracts: Lowercase contract address -> contract kind
    """

    def __init__(self, chain_id: int, contracts: dict[str, str]) -> None:
        self.chain_id = chain_id
        self.contracts = {addr.lower(): kind for addr, kind in contracts.items()}
        self.codec = ABICodec(default_registry)

        # kind -> topic0 -> event ABI
        self._topics: dict[str, dict[str, dict[str, Any]]] = {}
        for kind in set(self.contracts.values()):
            self._topics[kind] = {
                to_hex(event_abi_to_log_topic(abi)): abi
                for abi in event_abis(kind)
            }

    @property
    def addresses(self) -> list[str]:
        return list(self.contracts)

    def kind_of(self, address: str) -> str | None:
        return self.contracts.get(address.lower())

    def decode_log(self, log: Any) -> DecodedLog:
        """
        Decode one log.

        Raises:
            EventDecodeError: If the log is not a known event of a
                configured contract
        """
        address = to_hex(log["address"])
        kind = self.kind_of(address)
        if kind is None:
            raise EventDecodeError(f"Log from unconfigured address {address}")

        topics = log.get("topics") or []
        if not topics:
            raise EventDecodeError("Anonymous log (no topics)")

        event_abi = self._topics[kind].get(to_hex(topics[0]))
        if event_abi is None:
            raise EventDecodeError(
                f"Unknown topic {to_hex(topics[0])[:10]}... for {kind}"
            )

        try:
            data = get_event_data(self.codec, event_abi, log)
        except (MismatchedABI, DecodingError, ValueError, KeyError, TypeError) as e:
            raise EventDecodeError(
                f"Failed to decode {kind}.{event_abi['name']}: {e}"
            ) from e

        name = event_abi["name"]
        event_cls = lookup_event_type(kind, name)
        if event_cls is None:
            raise EventDecodeError(f"No event type for {kind}.{name}")

        args = to_json_safe(dict(data["args"]))
        return DecodedLog(
            chain_id=self.chain_id,
            contract_address=address,
            kind=kind,
            event_name=name,
            tx_hash=to_hex(log["transactionHash"]),
            log_index=int(log["logIndex"]),
            block_number=int(log["blockNumber"]),
            block_hash=to_hex(log["blockHash"]),
            args=args,
            event=event_cls.from_args(args),
        )

    def decode_logs(self, logs: list[Any]) -> list[DecodedLog]:
        """Decode logs, skipping (with a warning) anything undecodable."""
        decoded: list[DecodedLog] = []
        for log in logs:
            try:
                decoded.append(self.decode_log(log))
            except EventDecodeError as e:
                tx_hash = log.get("transactionHash")
                logger.warning(
                    f"[Decoder] Chain {self.chain_id}: skipping log "
                    f"{mask_tx_hash(to_hex(tx_hash)) if tx_hash else '?'}"
                    f"#{log.get('logIndex')} at block {log.get('blockNumber')}: {e}"
                )
        return decoded
