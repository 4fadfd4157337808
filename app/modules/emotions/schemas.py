from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class EmotionRadarPoint(BaseModel):
    """One axis of the emotion radar chart"""
    subject: str
    value: int
    full_mark: float
    leaning: str  # Buy Leaning | Sell Leaning | Balanced
    leaning_value: float  # -100..100
    side: str  # Buy | Sell | NULL
    buy_count: int = 0
    sell_count: int = 0
    total_trades: int = 0

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
