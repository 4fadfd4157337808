from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Literal
from datetime import date

from app.modules.trades.schemas import TradeResponse
from app.modules.emotions.schemas import EmotionRadarPoint

PnlFilter = Literal["all", "profitable", "lossable"]
SortColumn = Literal["trade_date", "created_at", "pnl", "symbol", "entry_price", "quantity"]


class TradeFilters(BaseModel):
    """Filters shared by the confluence listing and statistics endpoints"""
    emotional_states: List[str] = []
    strategy_id: Optional[str] = None
    symbol: Optional[str] = None
    market: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    pnl_filter: PnlFilter = "all"
    side: Optional[Literal["Buy", "Sell"]] = None

    @field_validator("emotional_states", mode="before")
    @classmethod
    def split_csv(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        return [s.strip() for s in v if isinstance(s, str) and s.strip()]

    @field_validator("strategy_id", "symbol", "market", "date_from", "date_to", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("side", mode="before")
    @classmethod
    def normalize_side(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v.strip().capitalize() if isinstance(v, str) else v

    @property
    def is_active(self) -> bool:
        return bool(
            self.emotional_states
            or self.strategy_id
            or self.symbol
            or self.market
            or self.date_from
            or self.date_to
            or self.pnl_filter != "all"
            or self.side
        )


class PaginatedTradesResponse(BaseModel):
    trades: List[TradeResponse]
    total_count: int
    current_page: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool
    truncated: bool = False  # emotion-filtered listing hit max_fetch_rows

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PnlPoint(BaseModel):
    """One point of the cumulative P&L chart"""
    date: Optional[str] = None
    pnl: float
    cumulative: float


class VRatingScores(BaseModel):
    profitability: float = 0.0
    risk_management: float = 0.0
    consistency: float = 0.0
    emotional_discipline: float = 0.0
    journaling_adherence: float = 0.0

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VRating(BaseModel):
    """Weighted 0-10 performance rating"""
    overall_rating: float = 0.0
    category_scores: VRatingScores = VRatingScores()
    trade_count: int = 0
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TradeStatistics(BaseModel):
    total_trades: int = 0
    total_pnl: float = Field(0.0, alias="totalPnL")
    win_rate: float = 0.0
    winning_trades: int = 0
    losing_trades: int = 0
    avg_trade_size: float = 0.0
    profit_factor: float = 0.0
    sharpe_ratio: float = 0.0
    avg_time_held: float = 0.0  # minutes
    trading_days: int = 0
    expectancy: float = 0.0  # average P&L per trade
    max_drawdown: float = 0.0
    max_drawdown_percent: float = 0.0
    pnl_series: List[PnlPoint] = []
    vrating: VRating = VRating()

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ConfluenceStatsResponse(TradeStatistics):
    emotional_data: List[EmotionRadarPoint] = []
    discipline_level: Optional[float] = None
    tilt_control: Optional[float] = None
    filters_active: bool = False
    truncated: bool = False  # statistics cover only the first max_fetch_rows trades
