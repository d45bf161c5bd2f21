"""Unified error codes and custom exceptions.

Every engine error is raised before any state is mutated.

Error code ranges:
  1xxx: Validation
  2xxx: Account
  3xxx: Market state
  4xxx: Order
  5xxx: Position
  6xxx: Liquidity
  7xxx: Oracle
  8xxx: Authorization
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Validation ---

class ValidationError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(1001, f"Invalid request: {detail}", 400)


class InvalidAmountError(AppError):
    def __init__(self, amount: float) -> None:
        super().__init__(1002, f"Amount must be positive, got {amount}", 400)


class AnswerNotFoundError(AppError):
    def __init__(self, answer_id: str) -> None:
        super().__init__(1003, f"Answer not found: {answer_id}", 404)


class InvalidIndexSetError(AppError):
    def __init__(self, index_set: int, answer_count: int) -> None:
        super().__init__(
            1004,
            f"Index set {index_set} is not a valid partial set of {answer_count} answers",
            400,
        )


# --- 2xxx: Account ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: float, available: float) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required:.2f}, available {available:.2f}",
            422,
        )


# --- 3xxx: Market state ---

class MarketNotFoundError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3001, f"Market not found: {market_id}", 404)


class MarketNotTradableError(AppError):
    def __init__(self, market_id: str, phase: str) -> None:
        super().__init__(3002, f"Market {market_id} does not accept trades in phase {phase}", 409)


class MarketResolvedError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3003, f"Market is already resolved: {market_id}", 409)


class LimitOrdersNotAllowedError(AppError):
    def __init__(self, market_id: str, phase: str) -> None:
        super().__init__(
            3004, f"Limit orders require the main phase; market {market_id} is {phase}", 409
        )


class NotDependentMarketError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3005, f"Market {market_id} is not a sum-to-one multi-choice market", 409)


class AnswerResolvedError(AppError):
    def __init__(self, answer_id: str) -> None:
        super().__init__(3006, f"Answer is already resolved: {answer_id}", 409)


# --- 4xxx: Order ---

class PriceOutOfRangeError(AppError):
    def __init__(self, price: float) -> None:
        super().__init__(4001, f"Limit probability must be strictly between 0 and 1: {price}", 422)


class OrderLimitExceededError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4002, f"Order limit exceeded: {detail}", 422)


class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}", 404)


class OrderNotCancellableError(AppError):
    def __init__(self, order_id: str, status: str) -> None:
        super().__init__(4006, f"Order {order_id} in status {status} cannot be cancelled", 422)


# --- 5xxx: Position ---

class InsufficientPositionError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(5001, f"Insufficient position: {detail}", 422)


# --- 6xxx: Liquidity ---

class PoolFloorError(AppError):
    def __init__(self, yes: float, no: float, floor: float) -> None:
        super().__init__(
            6001,
            f"Trade would drain the pool below {floor}: yes={yes:.6f} no={no:.6f}",
            422,
        )


class InsufficientDepthError(AppError):
    def __init__(self, requested: float, available: float) -> None:
        super().__init__(
            6002,
            f"Fill-or-kill order cannot be filled: requested {requested}, crossable {available}",
            422,
        )


# --- 7xxx: Oracle ---

class OracleNotConfiguredError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(7001, f"Market {market_id} has no resolution source", 409)


class OracleStateError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(7002, f"Oracle state conflict: {detail}", 409)


class ChallengeWindowError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(7003, f"Challenge window: {detail}", 409)


class OracleSourceError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(7004, f"Resolution source unavailable: {detail}", 502)


# --- 8xxx: Authorization ---

class NotMarketCreatorError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(8001, f"Only the market creator can resolve market {market_id}", 403)


class NotOrderOwnerError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(8002, f"Only the owner can cancel order {order_id}", 403)


class MissingUserError(AppError):
    def __init__(self) -> None:
        super().__init__(8003, "Missing X-User-Id header", 401)
