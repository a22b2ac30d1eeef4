"""
Status enumerations.

Statuses are stored as plain strings; these classes hold the constants.
"""


class OrderStatus:
    """Order lifecycle statuses.

    Forward path: OPEN -> MAKER_LOCKED -> TAKER_LOCKED -> COMPLETED.
    Side branches: CANCELLED (from OPEN), REFUNDED (from a locked state).
    """

    OPEN = "OPEN"
    MAKER_LOCKED = "MAKER_LOCKED"
    TAKER_LOCKED = "TAKER_LOCKED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"

    TERMINAL = frozenset({COMPLETED, CANCELLED, REFUNDED})

    # Position on the forward path
    RANK = {
        OPEN: 0,
        MAKER_LOCKED: 1,
        TAKER_LOCKED: 2,
        COMPLETED: 3,
    }


class EscrowStatus:
    """HTLC escrow statuses."""

    LOCKED = "LOCKED"
    CLAIMED = "CLAIMED"
    REFUNDED = "REFUNDED"


class EscrowSide:
    """Which party deposited an escrow."""

    MAKER = "maker"
    TAKER = "taker"
