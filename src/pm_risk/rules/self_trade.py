"""Self-trade detection for the limit order book."""


def is_self_trade(incoming_user_id: str, resting_user_id: str) -> bool:
    """Predicate used by matching_algo to skip fills against one's own resting orders.

    User id comparison is case-insensitive.
    """
    return str(incoming_user_id).lower() == str(resting_user_id).lower()
