"""Unit tests for reading HTLC secrets from claim calldata."""

import pytest
from eth_abi import encode
from hexbytes import HexBytes
from web3 import Web3

from app.services.blockchain.client_registry import ChainClientRegistry
from app.services.handlers.secret_extractor import SecretExtractor, decode_claim_secret
from tests.support import (
    CHAIN_A,
    CHAIN_B,
    LOCK_TAKER,
    SECRET,
    FakeChainClient,
    claim_calldata,
)

CLAIM_TX = "0x" + "c1" * 32


class TestDecodeClaimSecret:
    def test_claim_call(self):
        assert decode_claim_secret(claim_calldata(LOCK_TAKER, SECRET)) == SECRET

    def test_hex_string_input(self):
        assert decode_claim_secret(Web3.to_hex(claim_calldata(LOCK_TAKER, SECRET))) == SECRET

    def test_empty_input(self):
        assert decode_claim_secret("0x") is None
        assert decode_claim_secret(b"") is None

    def test_other_function(self):
        data = Web3.keccak(text="refund(bytes32)")[:4] + encode(["bytes32"], [b"\x01" * 32])

        with pytest.raises(ValueError):
            decode_claim_secret(HexBytes(data))


class TestSecretExtractor:
    """Best-effort extraction through the chain client registry."""

    @pytest.fixture
    def chain_b(self):
        return FakeChainClient(chain_id=CHAIN_B)

    @pytest.fixture
    def extractor(self, chain_b):
        return SecretExtractor(ChainClientRegistry({CHAIN_B: chain_b}))

    @pytest.mark.asyncio
    async def test_secret_from_claim_tx(self, extractor, chain_b):
        chain_b.transactions[CLAIM_TX] = {"input": claim_calldata(LOCK_TAKER, SECRET)}

        assert await extractor.extract(CHAIN_B, CLAIM_TX) == SECRET

    @pytest.mark.asyncio
    async def test_unknown_tx(self, extractor):
        assert await extractor.extract(CHAIN_B, CLAIM_TX) is None

    @pytest.mark.asyncio
    async def test_claim_through_other_contract(self, extractor, chain_b):
        # e.g. a multicall wrapping the claim
        chain_b.transactions[CLAIM_TX] = {"input": HexBytes(b"\xde\xad\xbe\xef" + b"\x00" * 64)}

        assert await extractor.extract(CHAIN_B, CLAIM_TX) is None

    @pytest.mark.asyncio
    async def test_unconfigured_chain(self, extractor):
        assert await extractor.extract(CHAIN_A, CLAIM_TX) is None
