from pydantic import BaseModel, field_validator
from typing import Optional, List, Literal
from datetime import date, datetime

from app.modules.emotions.analysis import parse_emotional_state

TradeSide = Literal["Buy", "Sell"]


class TradeCreate(BaseModel):
    symbol: str
    market: str = "stock"
    side: TradeSide
    quantity: Optional[float] = None
    entry_price: Optional[float] = None
    exit_price: Optional[float] = None
    pnl: Optional[float] = None
    trade_date: date
    entry_time: Optional[str] = None
    exit_time: Optional[str] = None
    emotional_state: List[str] = []
    strategy_id: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("symbol")
    @classmethod
    def symbol_not_blank(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("symbol is required")
        return v

    @field_validator("market")
    @classmethod
    def market_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("market cannot be empty")
        return v

    @field_validator("emotional_state", mode="before")
    @classmethod
    def normalize_emotions(cls, v):
        return parse_emotional_state(v)


class TradeUpdate(BaseModel):
    symbol: Optional[str] = None
    market: Optional[str] = None
    side: Optional[TradeSide] = None
    quantity: Optional[float] = None
    entry_price: Optional[float] = None
    exit_price: Optional[float] = None
    pnl: Optional[float] = None
    trade_date: Optional[date] = None
    entry_time: Optional[str] = None
    exit_time: Optional[str] = None
    emotional_state: Optional[List[str]] = None
    strategy_id: Optional[str] = None
    notes: Optional[str] = None

    # Validators only run on supplied values, so an explicit null is rejected
    @field_validator("market")
    @classmethod
    def market_not_null(cls, v: Optional[str]) -> str:
        if v is None or not v.strip():
            raise ValueError("market cannot be null")
        return v.strip()

    @field_validator("symbol")
    @classmethod
    def symbol_not_null(cls, v: Optional[str]) -> str:
        if v is None or not v.strip():
            raise ValueError("symbol cannot be null")
        return v.strip().upper()

    @field_validator("emotional_state", mode="before")
    @classmethod
    def normalize_emotions(cls, v):
        return parse_emotional_state(v)


class TradeResponse(BaseModel):
    id: str
    user_id: str
    symbol: str
    market: str = "stock"
    side: Optional[str] = None
    quantity: Optional[float] = None
    entry_price: Optional[float] = None
    exit_price: Optional[float] = None
    pnl: Optional[float] = None
    trade_date: Optional[date] = None
    entry_time: Optional[str] = None
    exit_time: Optional[str] = None
    emotional_state: List[str] = []
    strategy_id: Optional[str] = None
    notes: Optional[str] = None
    strategies: Optional[dict] = None  # embedded {id, name}
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("emotional_state", mode="before")
    @classmethod
    def normalize_emotions(cls, v):
        return parse_emotional_state(v)

    @field_validator("market", mode="before")
    @classmethod
    def default_market(cls, v):
        return v or "stock"

    class Config:
        from_attributes = True


class TradeDeleteResponse(BaseModel):
    message: str
    id: str
