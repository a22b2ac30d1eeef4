"""Unit tests for the log fetcher."""

import pytest
from web3.exceptions import Web3Exception

from app.services.blockchain.log_fetcher import fetch_logs, is_range_limit_error
from tests.support import ESCROW_A_ADDRESS, FakeChainClient


def raw_log(block_number: int, log_index: int, removed: bool = False) -> dict:
    return {
        "address": ESCROW_A_ADDRESS,
        "blockNumber": block_number,
        "logIndex": log_index,
        "removed": removed,
    }


@pytest.fixture
def client():
    return FakeChainClient(chain_id=1, name="Test", head=100)


class TestRangeLimitError:
    @pytest.mark.parametrize(
        "message",
        [
            "query returned more than 10000 results",
            "eth_getLogs block range is too large",
            "Log response size exceeded.",
            "exceed maximum block range: 5000",
        ],
    )
    def test_provider_range_messages(self, message):
        assert is_range_limit_error(ValueError(message))

    def test_other_errors(self):
        assert not is_range_limit_error(ValueError("execution reverted"))


class TestFetchLogs:
    """Tests for fetch_logs."""

    @pytest.mark.asyncio
    async def test_logs_sorted_by_block_and_index(self, client):
        client.logs = [raw_log(5, 1), raw_log(3, 0), raw_log(5, 0)]

        result = await fetch_logs(client, [ESCROW_A_ADDRESS], 1, 10)

        assert result.ok
        assert [(l["blockNumber"], l["logIndex"]) for l in result.logs] == [
            (3, 0), (5, 0), (5, 1),
        ]
        assert result.requests == 1

    @pytest.mark.asyncio
    async def test_range_limit_splits_range(self, client):
        client.max_range = 2
        client.logs = [raw_log(n, 0) for n in range(1, 9)]

        result = await fetch_logs(client, [ESCROW_A_ADDRESS], 1, 8)

        assert result.ok
        assert [l["blockNumber"] for l in result.logs] == list(range(1, 9))
        assert client.get_logs_calls == [
            (1, 8), (1, 4), (1, 2), (3, 4), (5, 8), (5, 6), (7, 8),
        ]
        assert result.requests == 7

    @pytest.mark.asyncio
    async def test_single_block_over_limit_fails(self, client):
        client.logs_error = ValueError("query returned more than 10000 results")

        result = await fetch_logs(client, [ESCROW_A_ADDRESS], 5, 5)

        assert not result.ok
        assert result.logs == []

    @pytest.mark.asyncio
    async def test_provider_error_returned_not_raised(self, client):
        client.logs_error = Web3Exception("503 Service Unavailable")

        result = await fetch_logs(client, [ESCROW_A_ADDRESS], 1, 10)

        assert not result.ok
        assert isinstance(result.error, Web3Exception)
        assert result.logs == []
        assert client.get_logs_calls == [(1, 10)]

    @pytest.mark.asyncio
    async def test_removed_logs_dropped(self, client):
        client.logs = [raw_log(2, 0), raw_log(3, 0, removed=True)]

        result = await fetch_logs(client, [ESCROW_A_ADDRESS], 1, 10)

        assert [l["blockNumber"] for l in result.logs] == [2]

    @pytest.mark.asyncio
    async def test_empty_inputs_skip_rpc(self, client):
        assert (await fetch_logs(client, [], 1, 10)).logs == []
        assert (await fetch_logs(client, [ESCROW_A_ADDRESS], 10, 9)).logs == []
        assert client.get_logs_calls == []
