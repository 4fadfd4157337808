from fastapi import APIRouter, Depends, Query
from app.modules.strategies.schemas import (
    StrategyCreate, StrategyUpdate, StrategyResponse,
    StrategyRuleCreate, StrategyRuleUpdate, StrategyRuleResponse
)
from app.modules.strategies.service import StrategyService
from app.modules.confluence.schemas import TradeStatistics
from app.core.dependencies import get_current_user, get_user_client
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/strategies", tags=["strategies"])


def get_strategy_service(supabase: Client = Depends(get_user_client)) -> StrategyService:
    return StrategyService(supabase)


@router.get("", response_model=List[StrategyResponse])
async def list_strategies(
    active_only: bool = Query(False, alias="activeOnly"),
    current_user: Dict = Depends(get_current_user),
    service: StrategyService = Depends(get_strategy_service)
):
    """List the caller's strategies"""
    return service.list_strategies(current_user["id"], active_only=active_only)


@router.post("", response_model=StrategyResponse, status_code=201)
async def create_strategy(
    strategy_data: StrategyCreate,
    current_user: Dict = Depends(get_current_user),
    service: StrategyService = Depends(get_strategy_service)
):
    """Create a strategy with its rules"""
    return service.create_strategy(strategy_data, current_user["id"])


@router.get("/{strategy_id}", response_model=StrategyResponse)
async def get_strategy(
    strategy_id: str,
    current_user: Dict = Depends(get_current_user),
    service: StrategyService = Depends(get_strategy_service)
):
    return service.get_strategy(strategy_id, current_user["id"])


@router.put("/{strategy_id}", response_model=StrategyResponse)
async def update_strategy(
    strategy_id: str,
    strategy_data: StrategyUpdate,
    current_user: Dict = Depends(get_current_user),
    service: StrategyService = Depends(get_strategy_service)
):
    return service.update_strategy(strategy_id, strategy_data, current_user["id"])


@router.delete("/{strategy_id}", status_code=204)
async def delete_strategy(
    strategy_id: str,
    current_user: Dict = Depends(get_current_user),
    service: StrategyService = Depends(get_strategy_service)
):
    """Delete a strategy and its rules"""
    service.delete_strategy(strategy_id, current_user["id"])
    return None


@router.get("/{strategy_id}/performance", response_model=TradeStatistics)
async def get_strategy_performance(
    strategy_id: str,
    current_user: Dict = Depends(get_current_user),
    service: StrategyService = Depends(get_strategy_service)
):
    """Trade statistics for a strategy"""
    return service.get_performance(strategy_id, current_user["id"])


@router.post("/{strategy_id}/rules", response_model=StrategyRuleResponse, status_code=201)
async def add_rule(
    strategy_id: str,
    rule_data: StrategyRuleCreate,
    current_user: Dict = Depends(get_current_user),
    service: StrategyService = Depends(get_strategy_service)
):
    return service.add_rule(strategy_id, rule_data, current_user["id"])


@router.put("/{strategy_id}/rules/{rule_id}", response_model=StrategyRuleResponse)
async def update_rule(
    strategy_id: str,
    rule_id: str,
    rule_data: StrategyRuleUpdate,
    current_user: Dict = Depends(get_current_user),
    service: StrategyService = Depends(get_strategy_service)
):
    """Edit a rule or tick it as followed"""
    return service.update_rule(strategy_id, rule_id, rule_data, current_user["id"])


@router.delete("/{strategy_id}/rules/{rule_id}", status_code=204)
async def delete_rule(
    strategy_id: str,
    rule_id: str,
    current_user: Dict = Depends(get_current_user),
    service: StrategyService = Depends(get_strategy_service)
):
    service.delete_rule(strategy_id, rule_id, current_user["id"])
    return None
