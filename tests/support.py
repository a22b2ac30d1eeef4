"""
In-memory test doubles and builders.

Fake repositories mirror the contracts of the SQLAlchemy repositories
(same method names, same idempotency rules) over plain dicts; the fake
chain client serves deterministic blocks and ABI-encoded logs.
"""

import itertools
from typing import Any

from eth_abi import encode
from eth_utils import event_abi_to_log_topic
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import BlockNotFound

from app.models import ChainCursor, Escrow, IndexedEvent, Order, User
from app.services.blockchain.chain_client import BlockRef
from app.utils.datetime_utils import utc_now


# Chains and contracts used across tests
CHAIN_A = 11155111
CHAIN_B = 84532
BSC = 56
DSC = 1555

ORDERBOOK_ADDRESS = "0x" + "a1" * 20
ESCROW_A_ADDRESS = "0x" + "e1" * 20
ESCROW_B_ADDRESS = "0x" + "e2" * 20
VAULT_BUY_ADDRESS = "0x" + "b1" * 20
VAULT_SELL_ADDRESS = "0x" + "5e" * 20

MAKER = "0x" + "11" * 20
TAKER = "0x" + "22" * 20
TOKEN_A = "0x" + "33" * 20
TOKEN_B = "0x" + "44" * 20

HASH_LOCK = "0x" + "ab" * 32
SECRET = "0x" + "5c" * 32
LOCK_MAKER = "0x" + "01" * 32
LOCK_TAKER = "0x" + "02" * 32


def block_hash_for(number: int, salt: int = 0) -> str:
    """Deterministic block hash; a different salt models a reorged block."""
    return "0x" + f"{salt:08x}{number:056x}"


def tx_hash_for(block_number: int, log_index: int) -> str:
    return "0x" + f"{block_number:032x}{log_index:032x}"


# ----------------------------------------------------------------------
# In-memory repositories
# ----------------------------------------------------------------------

class FakeStore:
    """Rows of all tables, keyed the way the unique constraints key them."""

    def __init__(self) -> None:
        self.cursors: dict[int, ChainCursor] = {}
        self.events: dict[tuple[int, str, int], IndexedEvent] = {}
        self.orders: dict[int, Order] = {}
        self.escrows: dict[str, Escrow] = {}
        self.users: dict[str, User] = {}
        self._ids = itertools.count(1)

    def next_id(self) -> int:
        return next(self._ids)


class _FakeRepository:
    def __init__(self, store: FakeStore) -> None:
        self.store = store

    async def update(self, entity: Any, **data: Any) -> Any:
        for key, value in data.items():
            setattr(entity, key, value)
        return entity


class FakeChainCursorRepository(_FakeRepository):
    async def get_by_chain(self, chain_id: int) -> ChainCursor | None:
        return self.store.cursors.get(chain_id)

    async def save_checkpoint(
        self, chain_id: int, block_number: int, block_hash: str
    ) -> ChainCursor:
        cursor = self.store.cursors.get(chain_id)
        if cursor is None:
            cursor = ChainCursor(
                id=self.store.next_id(),
                chain_id=chain_id,
                first_synced_block=block_number,
                last_block_number=block_number,
                last_block_hash=block_hash.lower(),
                reorg_count=0,
                error_count=0,
            )
            self.store.cursors[chain_id] = cursor
            return cursor
        return await self.update(
            cursor,
            last_block_number=block_number,
            last_block_hash=block_hash.lower(),
            last_error=None,
        )

    async def rewind(
        self, chain_id: int, block_number: int, block_hash: str
    ) -> ChainCursor | None:
        cursor = self.store.cursors.get(chain_id)
        if cursor is None:
            return None
        return await self.update(
            cursor,
            last_block_number=block_number,
            last_block_hash=block_hash.lower(),
            reorg_count=(cursor.reorg_count or 0) + 1,
            last_reorg_at=utc_now(),
        )

    async def record_error(self, chain_id: int, error: str) -> ChainCursor | None:
        cursor = self.store.cursors.get(chain_id)
        if cursor is None:
            return None
        return await self.update(
            cursor,
            last_error=error[:1000],
            error_count=(cursor.error_count or 0) + 1,
        )


class FakeIndexedEventRepository(_FakeRepository):
    async def get_by_key(
        self, chain_id: int, tx_hash: str, log_index: int
    ) -> IndexedEvent | None:
        return self.store.events.get((chain_id, tx_hash.lower(), log_index))

    async def record_event(
        self,
        chain_id: int,
        tx_hash: str,
        log_index: int,
        *,
        contract_address: str,
        event_name: str,
        block_number: int,
        block_hash: str,
        args: dict[str, Any],
    ) -> IndexedEvent:
        existing = await self.get_by_key(chain_id, tx_hash, log_index)
        if existing:
            return await self.update(
                existing,
                block_number=block_number,
                block_hash=block_hash.lower(),
                args=args,
                removed=False,
            )
        event = IndexedEvent(
            id=self.store.next_id(),
            chain_id=chain_id,
            tx_hash=tx_hash.lower(),
            log_index=log_index,
            contract_address=contract_address.lower(),
            event_name=event_name,
            block_number=block_number,
            block_hash=block_hash.lower(),
            args=args,
            processed=False,
            removed=False,
            attempts=0,
        )
        self.store.events[event.key] = event
        return event

    async def mark_processed(
        self, event: IndexedEvent, notes: str | None = None
    ) -> IndexedEvent:
        data: dict[str, Any] = {"processed": True, "processed_at": utc_now()}
        if notes:
            data["processing_notes"] = notes
        return await self.update(event, **data)

    async def mark_attempt(
        self, event: IndexedEvent, notes: str | None = None
    ) -> IndexedEvent:
        return await self.update(
            event, attempts=(event.attempts or 0) + 1, processing_notes=notes
        )

    async def link_order(self, event: IndexedEvent, order_pk: int) -> IndexedEvent:
        return await self.update(event, order_pk=order_pk)

    async def mark_removed_after(self, chain_id: int, block_number: int) -> int:
        count = 0
        for event in self.store.events.values():
            if (
                event.chain_id == chain_id
                and event.block_number > block_number
                and not event.removed
            ):
                event.removed = True
                count += 1
        return count

    async def get_unprocessed(
        self, chain_id: int, max_attempts: int, limit: int = 500
    ) -> list[IndexedEvent]:
        pending = [
            e for e in self.store.events.values()
            if e.chain_id == chain_id
            and not e.processed
            and not e.removed
            and e.attempts < max_attempts
        ]
        pending.sort(key=lambda e: (e.block_number, e.log_index))
        return pending[:limit]


class FakeOrderRepository(_FakeRepository):
    async def get_by_pk(self, pk: int) -> Order | None:
        for order in self.store.orders.values():
            if order.id == pk:
                return order
        return None

    async def get_by_order_id(self, order_id: int) -> Order | None:
        return self.store.orders.get(order_id)

    async def create_if_absent(self, order_id: int, **data: Any) -> tuple[Order, bool]:
        existing = self.store.orders.get(order_id)
        if existing:
            return existing, False
        order = Order(id=self.store.next_id(), order_id=order_id, **data)
        self.store.orders[order_id] = order
        return order, True


class FakeEscrowRepository(_FakeRepository):
    async def get_by_lock_id(self, lock_id: str) -> Escrow | None:
        return self.store.escrows.get(lock_id.lower())

    async def upsert_lock(self, lock_id: str, **data: Any) -> tuple[Escrow, bool]:
        existing = self.store.escrows.get(lock_id.lower())
        if existing:
            return existing, False
        escrow = Escrow(id=self.store.next_id(), lock_id=lock_id.lower(), **data)
        self.store.escrows[escrow.lock_id] = escrow
        return escrow, True

    async def list_by_order(self, order_pk: int) -> list[Escrow]:
        return [e for e in self.store.escrows.values() if e.order_pk == order_pk]


class FakeUserRepository(_FakeRepository):
    async def get_by_address(self, address: str) -> User | None:
        return self.store.users.get(address.lower())

    async def get_or_create(self, address: str) -> User:
        user = self.store.users.get(address.lower())
        if user is None:
            user = User(
                id=self.store.next_id(),
                address=address.lower(),
                orders_created=0,
                orders_completed=0,
                total_volume="0",
            )
            self.store.users[user.address] = user
        return user

    async def increment_created(self, address: str) -> User:
        user = await self.get_or_create(address)
        return await self.update(user, orders_created=user.orders_created + 1)

    async def record_completion(self, address: str, volume: int | str) -> User:
        user = await self.get_or_create(address)
        return await self.update(
            user,
            orders_completed=user.orders_completed + 1,
            total_volume=str(int(user.total_volume) + int(volume)),
        )


# ----------------------------------------------------------------------
# Fake chain
# ----------------------------------------------------------------------

class FakeChainClient:
    """
    In-memory chain with the ChainClient interface used by the indexer.

    Block hashes come from block_hash_for(number, salt); `reorg_from`
    changes the salt of every block from a height on.
    """

    def __init__(self, chain_id: int, name: str = "Test", head: int = 0) -> None:
        self.chain_id = chain_id
        self.name = name
        self.head = head
        self.logs: list[dict[str, Any]] = []
        self.transactions: dict[str, dict[str, Any]] = {}
        self.salts: dict[int, int] = {}
        self.max_range: int | None = None
        self.fail_logs_from: int | None = None
        self.logs_error: Exception | None = None
        self.block_error: Exception | None = None
        self.get_logs_calls: list[tuple[int, int]] = []

    def block_hash(self, number: int) -> str:
        return block_hash_for(number, self.salts.get(number, 0))

    def reorg_from(self, number: int, salt: int = 1) -> None:
        for n in range(number, self.head + 1):
            self.salts[n] = salt

    async def get_block_number(self) -> int:
        if self.block_error:
            raise self.block_error
        return self.head

    async def get_block(self, number: int) -> BlockRef:
        if self.block_error:
            raise self.block_error
        if number > self.head:
            raise BlockNotFound(f"Block with id: {number} not found.")
        return BlockRef(number=number, hash=self.block_hash(number))

    async def get_block_refs(self, numbers: list[int]) -> list[BlockRef]:
        return [await self.get_block(n) for n in numbers]

    async def get_logs(
        self, addresses: list[str], from_block: int, to_block: int
    ) -> list[dict[str, Any]]:
        self.get_logs_calls.append((from_block, to_block))
        if self.logs_error is not None and (
            self.fail_logs_from is None or from_block >= self.fail_logs_from
        ):
            raise self.logs_error
        if self.max_range and to_block - from_block + 1 > self.max_range:
            raise ValueError("query returned more than 10000 results")
        wanted = {a.lower() for a in addresses}
        return [
            log for log in self.logs
            if from_block <= log["blockNumber"] <= to_block
            and log["address"].lower() in wanted
        ]

    async def get_transaction(self, tx_hash: str) -> dict[str, Any] | None:
        return self.transactions.get(tx_hash.lower())

    def close(self) -> None:
        pass


def build_log(
    abi: list[dict[str, Any]],
    name: str,
    args: dict[str, Any],
    *,
    address: str,
    block_number: int,
    log_index: int = 0,
    tx_hash: str | None = None,
    block_hash: str | None = None,
    removed: bool = False,
) -> dict[str, Any]:
    """ABI-encode an event into an eth_getLogs entry."""
    event_abi = next(
        item for item in abi
        if item["type"] == "event" and item["name"] == name
    )
    topics = [HexBytes(event_abi_to_log_topic(event_abi))]
    data_types: list[str] = []
    data_values: list[Any] = []
    for arg in event_abi["inputs"]:
        value = args[arg["name"]]
        if arg["type"] == "bytes32" and isinstance(value, str):
            value = HexBytes(value)
        if arg["indexed"]:
            topics.append(HexBytes(encode([arg["type"]], [value])))
        else:
            data_types.append(arg["type"])
            data_values.append(value)

    return {
        "address": Web3.to_checksum_address(address),
        "topics": topics,
        "data": HexBytes(encode(data_types, data_values)),
        "blockNumber": block_number,
        "blockHash": HexBytes(block_hash or block_hash_for(block_number)),
        "transactionHash": HexBytes(tx_hash or tx_hash_for(block_number, log_index)),
        "transactionIndex": 0,
        "logIndex": log_index,
        "removed": removed,
    }




def claim_calldata(lock_id: str, secret: str) -> HexBytes:
    """Input of an escrow `claim(bytes32,bytes32)` call."""
    selector = Web3.keccak(text="claim(bytes32,bytes32)")[:4]
    return HexBytes(
        selector + encode(["bytes32", "bytes32"], [HexBytes(lock_id), HexBytes(secret)])
    )
