"""
FinSight Backend — Advisor Schemas
====================================

What:  Request body for POST /analyze, and documentation models for the
       shapes the prompts ask the model to return.
Why:   The response models feed the OpenAPI docs only. Completions are passed
       through as extracted, since the model does not reliably honour the
       requested types (numbers arrive as strings and vice versa).
"""

from typing import List, Optional, Union

from pydantic import BaseModel, Field

Scalar = Union[float, int, str]


class AnalyzeRequest(BaseModel):
    price: Optional[Scalar] = Field(default=None, description="Amount to invest (₹)")
    risk: Optional[Scalar] = Field(default=None, description="Risk level, 1 (low) to 5 (high)")
    investmentType: Optional[str] = Field(default=None, description="e.g. stocks, mutual funds")
    duration: Optional[str] = Field(default=None, description="Holding period, e.g. '6 months'")


class Suggestion(BaseModel):
    name: str
    description: str
    current_price: Optional[Scalar] = None
    sell_price: Optional[Scalar] = None
    stop_loss: Optional[Scalar] = None


class SuggestionsResponse(BaseModel):
    suggestions: List[Suggestion]


class MarketIndex(BaseModel):
    name: str
    current: float
    change: float
    change_pct: float


class MarketStatsResponse(BaseModel):
    indices: List[MarketIndex]
