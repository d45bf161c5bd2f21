"""Global enums shared by every bounded context.

Values are what the API accepts and what the persistence mirror stores.
"""

from enum import Enum


class MarketPhase(str, Enum):
    SANDBOX = "sandbox"
    GRADUATING = "graduating"
    MAIN = "main"
    RESOLVED = "resolved"


class Outcome(str, Enum):
    YES = "YES"
    NO = "NO"


class TradeSide(str, Enum):
    """AMM trade direction."""
    BUY = "BUY"
    SELL = "SELL"


class OrderSide(str, Enum):
    """Limit order side: BID buys the outcome, ASK sells it."""
    BID = "BID"
    ASK = "ASK"


class TimeInForce(str, Enum):
    GTC = "GTC"
    IOC = "IOC"
    FOK = "FOK"


class Resolution(str, Enum):
    YES = "YES"
    NO = "NO"
    MKT = "MKT"
    CANCEL = "CANCEL"


class OracleStatus(str, Enum):
    UNRESOLVED = "UNRESOLVED"
    PROVISIONAL = "PROVISIONAL"
    CHALLENGED = "CHALLENGED"
    FINALIZED = "FINALIZED"


class SourceType(str, Enum):
    CRYPTO_PRICE = "crypto_price"
    MANUAL = "manual"


class PriceCondition(str, Enum):
    GTE = "gte"
    LTE = "lte"
    GT = "gt"
    LT = "lt"
    EQ = "eq"


class LedgerEntryType(str, Enum):
    # AMM trades
    AMM_BUY = "AMM_BUY"
    AMM_SELL = "AMM_SELL"
    LIQUIDITY_ADD = "LIQUIDITY_ADD"
    MARKET_ANTE = "MARKET_ANTE"
    # Limit orders
    ORDER_FREEZE = "ORDER_FREEZE"
    ORDER_UNFREEZE = "ORDER_UNFREEZE"
    FILL_PAYMENT = "FILL_PAYMENT"
    FILL_RECEIPT = "FILL_RECEIPT"
    # Collateral operations
    SPLIT = "SPLIT"
    MERGE = "MERGE"
    NEGRISK_COLLATERAL = "NEGRISK_COLLATERAL"
    # Resolution
    SETTLEMENT_PAYOUT = "SETTLEMENT_PAYOUT"
    SETTLEMENT_REFUND = "SETTLEMENT_REFUND"
    CHALLENGE_BOND = "CHALLENGE_BOND"
    CHALLENGE_REWARD = "CHALLENGE_REWARD"
    CHALLENGE_REFUND = "CHALLENGE_REFUND"
