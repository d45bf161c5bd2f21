# src/pm_multichoice/application/schemas.py
from pydantic import BaseModel, Field


class ConvertRequest(BaseModel):
    index_set: int = Field(gt=0, description="Bitmask of answer indexes whose NO shares are burned")
    amount: float = Field(gt=0)


class CollateralRequest(BaseModel):
    amount: float = Field(gt=0)
    answer_id: str | None = None


class ConvertResponse(BaseModel):
    market_id: str
    amount: float
    burned_no: list[str]
    minted_yes: list[str]
    collateral_out: float


class CollateralResponse(BaseModel):
    market_id: str
    answer_id: str | None
    amount: float


class RebalanceResponse(BaseModel):
    market_id: str
    sum_before: float
    sum_after: float
