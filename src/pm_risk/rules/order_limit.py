from src.pm_common.errors import InvalidAmountError, OrderLimitExceededError

MAX_ORDER_QUANTITY = 1_000_000.0


def check_order_limit(quantity: float) -> None:
    """Raise InvalidAmountError(1002) for non-positive or OrderLimitExceededError(4002) for huge quantities."""
    if quantity <= 0:
        raise InvalidAmountError(quantity)
    if quantity > MAX_ORDER_QUANTITY:
        raise OrderLimitExceededError(f"quantity {quantity} exceeds {MAX_ORDER_QUANTITY}")


def check_positive_amount(amount: float) -> None:
    if not amount > 0:
        raise InvalidAmountError(amount)
