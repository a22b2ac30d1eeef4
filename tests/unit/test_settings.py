"""Unit tests for chain configuration."""

import pytest
from pydantic import ValidationError

from app.config.constants import ZERO_ADDRESS
from app.config.settings import (
    CONTRACT_KIND_ESCROW,
    CONTRACT_KIND_ORDERBOOK,
    CONTRACT_KIND_VAULT_SELL,
    ChainConfig,
    Settings,
)


ORDERBOOK = "0x" + "A1" * 20
ESCROW = "0x" + "e1" * 20


def make_settings(**overrides) -> Settings:
    data = {
        "database_url": "postgresql://u:p@localhost/db",
        "chain_a_id": 11155111,
        "chain_a_rpc_url": "http://localhost:8545",
        "chain_a_orderbook_address": ORDERBOOK,
        "chain_a_escrow_address": ESCROW,
        "chain_b_id": 84532,
        "chain_b_rpc_url": "http://localhost:8546",
        "chain_b_escrow_address": ESCROW,
    }
    data.update(overrides)
    return Settings(_env_file=None, **data)


class TestChainConfig:
    """Tests for a single chain config."""

    def test_contracts_map_lowercase_addresses(self):
        config = ChainConfig(
            chain_id=1,
            name="A",
            rpc_url="http://x",
            orderbook_address=ORDERBOOK,
            escrow_address=ESCROW,
        )

        assert config.contracts == {
            ORDERBOOK.lower(): CONTRACT_KIND_ORDERBOOK,
            ESCROW: CONTRACT_KIND_ESCROW,
        }

    def test_zero_address_means_not_deployed(self):
        config = ChainConfig(
            chain_id=1, name="A", rpc_url="http://x", escrow_address=ZERO_ADDRESS
        )

        assert config.escrow_address is None
        assert config.contracts == {}

    def test_invalid_address_rejected(self):
        with pytest.raises(ValidationError):
            ChainConfig(chain_id=1, name="A", rpc_url="http://x", escrow_address="0x1234")

    def test_vault_requires_kind(self):
        with pytest.raises(ValidationError):
            ChainConfig(
                chain_id=1, name="A", rpc_url="http://x", vault_address=ESCROW
            )

    def test_unknown_vault_kind_rejected(self):
        with pytest.raises(ValidationError):
            ChainConfig(
                chain_id=1,
                name="A",
                rpc_url="http://x",
                vault_address=ESCROW,
                vault_kind="swap",
            )

    def test_sell_vault_kind(self):
        config = ChainConfig(
            chain_id=1555,
            name="DSC",
            rpc_url="http://x",
            vault_address=ESCROW,
            vault_kind="SELL",
        )

        assert config.contracts == {ESCROW: CONTRACT_KIND_VAULT_SELL}


class TestSettings:
    """Tests for chain list assembly."""

    def test_two_chains_configured(self):
        chains = make_settings().get_chain_configs()

        assert [c.chain_id for c in chains] == [11155111, 84532]
        assert chains[0].name == "Sepolia"
        assert chains[1].name == "Base Sepolia"

    def test_chain_without_rpc_skipped(self):
        chains = make_settings(chain_b_rpc_url=None).get_chain_configs()

        assert [c.chain_id for c in chains] == [11155111]

    def test_duplicate_chain_ids_rejected(self):
        settings = make_settings(chain_b_id=11155111)

        with pytest.raises(ValueError, match="Duplicate chain id"):
            settings.get_chain_configs()

    def test_poll_interval_falls_back_to_default(self):
        settings = make_settings(
            indexer_poll_interval_ms=5000, chain_b_poll_interval_ms=2000
        )

        chains = settings.get_chain_configs()

        assert chains[0].poll_interval_ms == 5000
        assert chains[1].poll_interval_ms == 2000

    def test_database_url_forced_to_asyncpg(self):
        settings = make_settings()

        assert settings.database_url.startswith("postgresql+asyncpg://")

    def test_non_postgres_database_url_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(database_url="sqlite:///db.sqlite")
