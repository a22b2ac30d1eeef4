"""
Standard type definitions for database models.

Provides consistent column types for on-chain identifiers and amounts.
"""

from sqlalchemy import String

# 0x + 40 hex chars, lowercase
AddressType = String(42)

# 0x + 64 hex chars (tx hashes, block hashes, lock ids, hashlocks, secrets)
HashType = String(66)

# Raw uint256 token amounts as decimal strings (up to 78 digits)
# Kept as text to avoid float/precision loss on any backend
RawAmountType = String(80)
