"""JSON (de)serialisation of market aggregates for the persistence mirror."""

from pydantic import TypeAdapter

from src.pm_market.domain.models import BinaryMarket, Market, MultiChoiceMarket

_market_adapter: TypeAdapter[BinaryMarket | MultiChoiceMarket] = TypeAdapter(
    BinaryMarket | MultiChoiceMarket
)


def market_to_json(market: Market) -> str:
    return _market_adapter.dump_json(market).decode()


def market_from_json(raw: str | bytes) -> Market:
    return _market_adapter.validate_json(raw)
