from fastapi import APIRouter, Depends
from app.modules.trades.schemas import (
    TradeCreate, TradeUpdate, TradeResponse, TradeDeleteResponse
)
from app.modules.trades.service import TradeService
from app.core.dependencies import get_current_user, get_user_client
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/trades", tags=["trades"])


def get_trade_service(supabase: Client = Depends(get_user_client)) -> TradeService:
    return TradeService(supabase)


@router.post("", response_model=TradeResponse, status_code=201)
async def create_trade(
    trade_data: TradeCreate,
    current_user: Dict = Depends(get_current_user),
    service: TradeService = Depends(get_trade_service)
):
    """Log a new trade"""
    return service.create_trade(trade_data, current_user["id"])


@router.get("/{trade_id}", response_model=TradeResponse)
async def get_trade(
    trade_id: str,
    current_user: Dict = Depends(get_current_user),
    service: TradeService = Depends(get_trade_service)
):
    """Get one of the caller's trades"""
    return service.get_trade(trade_id, current_user["id"])


@router.put("/{trade_id}", response_model=TradeResponse)
async def update_trade(
    trade_id: str,
    trade_data: TradeUpdate,
    current_user: Dict = Depends(get_current_user),
    service: TradeService = Depends(get_trade_service)
):
    """Update one of the caller's trades"""
    return service.update_trade(trade_id, trade_data, current_user["id"])


@router.delete("/{trade_id}", response_model=TradeDeleteResponse)
async def delete_trade(
    trade_id: str,
    current_user: Dict = Depends(get_current_user),
    service: TradeService = Depends(get_trade_service)
):
    """Delete one of the caller's trades"""
    return service.delete_trade(trade_id, current_user["id"])
