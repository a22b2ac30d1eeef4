"""
Contract ABIs of the exchange contracts.

Only the events the indexer consumes (and the HTLC `claim` function,
needed to read revealed secrets from calldata) are listed.
"""

from typing import Any

from app.config.settings import (
    CONTRACT_KIND_ESCROW,
    CONTRACT_KIND_ORDERBOOK,
    CONTRACT_KIND_VAULT_BUY,
    CONTRACT_KIND_VAULT_SELL,
)


def _arg(name: str, type_: str, indexed: bool = False) -> dict[str, Any]:
    return {"indexed": indexed, "name": name, "type": type_}


def _event(name: str, *inputs: dict[str, Any]) -> dict[str, Any]:
    return {
        "anonymous": False,
        "inputs": list(inputs),
        "name": name,
        "type": "event",
    }


# P2P Orderbook (escrow flow)
ORDERBOOK_ABI = [
    _event(
        "OrderCreated",
        _arg("orderId", "uint256", True),
        _arg("maker", "address", True),
        _arg("sellToken", "address"),
        _arg("sellAmount", "uint256"),
        _arg("buyToken", "address"),
        _arg("buyAmount", "uint256"),
        _arg("srcChainId", "uint256"),
        _arg("dstChainId", "uint256"),
        _arg("hashLock", "bytes32"),
        _arg("makerTimelock", "uint256"),
        _arg("takerTimelock", "uint256"),
    ),
    _event(
        "OrderCancelled",
        _arg("orderId", "uint256", True),
        _arg("maker", "address", True),
    ),
]

# P2P Escrow HTLC
ESCROW_ABI = [
    _event(
        "Locked",
        _arg("lockId", "bytes32", True),
        _arg("orderId", "uint256", True),
        _arg("depositor", "address", True),
        _arg("recipient", "address"),
        _arg("token", "address"),
        _arg("amount", "uint256"),
        _arg("hashLock", "bytes32"),
        _arg("timelock", "uint256"),
    ),
    _event(
        "Claimed",
        _arg("lockId", "bytes32", True),
        _arg("orderId", "uint256", True),
        _arg("recipient", "address", True),
        _arg("hashLock", "bytes32"),
    ),
    _event(
        "Refunded",
        _arg("lockId", "bytes32", True),
        _arg("orderId", "uint256", True),
        _arg("depositor", "address", True),
        _arg("hashLock", "bytes32"),
    ),
    {
        "inputs": [
            {"name": "lockId", "type": "bytes32"},
            {"name": "secret", "type": "bytes32"},
        ],
        "name": "claim",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

# P2P Vault on the buy chain (BSC): buy orders
VAULT_BUY_ABI = [
    _event(
        "OrderCreated",
        _arg("orderId", "uint256", True),
        _arg("buyer", "address", True),
        _arg("amount", "uint256"),
        _arg("expiresAt", "uint256"),
    ),
    _event(
        "OrderMatched",
        _arg("orderId", "uint256", True),
        _arg("buyer", "address", True),
        _arg("seller", "address", True),
        _arg("amount", "uint256"),
    ),
    _event(
        "OrderCompleted",
        _arg("orderId", "uint256", True),
        _arg("buyer", "address", True),
        _arg("seller", "address", True),
        _arg("amount", "uint256"),
        _arg("dscTxHash", "bytes32"),
    ),
    _event(
        "OrderCancelled",
        _arg("orderId", "uint256", True),
        _arg("buyer", "address", True),
        _arg("amount", "uint256"),
    ),
    _event(
        "OrderRefunded",
        _arg("orderId", "uint256", True),
        _arg("buyer", "address", True),
        _arg("amount", "uint256"),
    ),
]

# P2P Vault on the sell chain (DSC): sell orders and fills of buy orders
VAULT_SELL_ABI = [
    _event(
        "SellOrderCreated",
        _arg("orderId", "uint256", True),
        _arg("seller", "address", True),
        _arg("amount", "uint256"),
        _arg("expiresAt", "uint256"),
    ),
    _event(
        "DirectFillCreated",
        _arg("dscOrderId", "uint256", True),
        _arg("bscOrderId", "uint256", True),
        _arg("seller", "address", True),
        _arg("buyer", "address"),
        _arg("amount", "uint256"),
    ),
    _event(
        "OrderMatched",
        _arg("dscOrderId", "uint256", True),
        _arg("bscOrderId", "uint256", True),
        _arg("seller", "address", True),
        _arg("buyer", "address"),
        _arg("amount", "uint256"),
    ),
    _event(
        "OrderCompleted",
        _arg("dscOrderId", "uint256", True),
        _arg("bscOrderId", "uint256", True),
        _arg("seller", "address"),
        _arg("buyer", "address", True),
        _arg("amount", "uint256"),
        _arg("bscTxHash", "bytes32"),
    ),
    _event(
        "OrderCancelled",
        _arg("orderId", "uint256", True),
        _arg("seller", "address", True),
        _arg("amount", "uint256"),
    ),
]

ABIS_BY_KIND: dict[str, list[dict[str, Any]]] = {
    CONTRACT_KIND_ORDERBOOK: ORDERBOOK_ABI,
    CONTRACT_KIND_ESCROW: ESCROW_ABI,
    CONTRACT_KIND_VAULT_BUY: VAULT_BUY_ABI,
    CONTRACT_KIND_VAULT_SELL: VAULT_SELL_ABI,
}


def event_abis(kind: str) -> list[dict[str, Any]]:
    """Event entries of a contract kind's ABI."""
    return [item for item in ABIS_BY_KIND[kind] if item["type"] == "event"]
