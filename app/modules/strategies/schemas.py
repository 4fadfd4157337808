from pydantic import BaseModel, field_validator
from typing import Optional, List
from datetime import datetime


class StrategyRuleCreate(BaseModel):
    rule_text: str

    @field_validator("rule_text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("rule_text is required")
        return v


class StrategyRuleUpdate(BaseModel):
    rule_text: Optional[str] = None
    is_checked: Optional[bool] = None


class StrategyRuleResponse(BaseModel):
    id: str
    strategy_id: str
    rule_text: str
    rule_order: Optional[int] = None
    is_checked: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StrategyCreate(BaseModel):
    name: str
    description: Optional[str] = None
    is_active: bool = True
    rules: List[str] = []

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v

    @field_validator("rules")
    @classmethod
    def drop_blank_rules(cls, v: List[str]) -> List[str]:
        return [r.strip() for r in v if r and r.strip()]


class StrategyUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class StrategyResponse(BaseModel):
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    is_active: bool = True
    rules: List[StrategyRuleResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
