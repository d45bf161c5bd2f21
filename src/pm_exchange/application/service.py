# src/pm_exchange/application/service.py
from src.pm_exchange.engine.engine import ExchangeEngine

_engine: ExchangeEngine | None = None


def get_exchange() -> ExchangeEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = ExchangeEngine()
    return _engine


def set_exchange(engine: ExchangeEngine | None) -> None:
    """Install a configured engine at startup (or None to reset)."""
    global _engine  # noqa: PLW0603
    _engine = engine
