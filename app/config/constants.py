"""
Application constants.

Centralized constants for the indexer.
"""

# ========================================================================
# BLOCKCHAIN CONSTANTS
# ========================================================================

# Blockchain operation timeouts (in seconds)
BLOCKCHAIN_TIMEOUT = 30.0  # Standard blockchain operations (get_transaction, etc.)
BLOCKCHAIN_LONG_TIMEOUT = 120.0  # Long-running operations (large eth_getLogs ranges)
BLOCKCHAIN_EXECUTOR_TIMEOUT = 20.0  # Timeout for run_in_executor operations
BLOCKCHAIN_RPC_TIMEOUT = 30  # RPC provider HTTP timeout

# RPC thread pool
RPC_EXECUTOR_MAX_WORKERS = 4  # Threads per chain client for sync Web3 calls

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
ZERO_HASH = "0x" + "0" * 64

# Known chains (chain id -> display name)
BSC_CHAIN_ID = 56
DSC_CHAIN_ID = 1555
SEPOLIA_CHAIN_ID = 11155111
BASE_SEPOLIA_CHAIN_ID = 84532

KNOWN_CHAINS: dict[int, str] = {
    BSC_CHAIN_ID: "BSC",
    DSC_CHAIN_ID: "DSC Chain",
    SEPOLIA_CHAIN_ID: "Sepolia",
    BASE_SEPOLIA_CHAIN_ID: "Base Sepolia",
}

# ========================================================================
# INDEXER CONSTANTS
# ========================================================================

DEFAULT_POLL_INTERVAL_MS = 12000  # 12 seconds
REORG_TOLERANCE_BLOCKS = 64
MAX_BLOCKS_PER_QUERY = 2000
DEFAULT_CONFIRMATIONS = 2
MAX_ORPHAN_ATTEMPTS = 5  # Replays of an event whose order/escrow is missing
REPLAY_BATCH_LIMIT = 500  # Unprocessed events replayed per cycle

# Provider error fragments that mean "range too large, split it"
LOG_RANGE_LIMIT_MARKERS = (
    "block range",
    "query returned more than",
    "limit exceeded",
    "too many",
    "range is too large",
    "exceed maximum block range",
    "response size exceeded",
)

# ========================================================================
# VAULT FLOW CONSTANTS
# ========================================================================

# Sell-order ids from the sell vault live in their own id space
VAULT_SELL_ORDER_ID_OFFSET = 1_000_000

# Stablecoins traded through the vaults (lowercase)
BSC_USDT_ADDRESS = "0x55d398326f99059ff775485246999027b3197955"
DSC_USDT_ADDRESS = "0xbc27aceac6865de31a286cd9057564393d5251cb"
