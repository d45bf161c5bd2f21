from src.pm_common.errors import PriceOutOfRangeError


def check_price_range(limit_prob: float) -> None:
    """Raise PriceOutOfRangeError(4001) unless 0 < limit_prob < 1."""
    if not (0 < limit_prob < 1):
        raise PriceOutOfRangeError(limit_prob)
