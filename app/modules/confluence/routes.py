from fastapi import APIRouter, Depends, Query
from pydantic import ValidationError
from app.modules.confluence.schemas import (
    TradeFilters, PaginatedTradesResponse, ConfluenceStatsResponse, SortColumn
)
from app.modules.confluence.service import ConfluenceService
from app.core.dependencies import get_current_user, get_user_client
from app.core.errors import ApiError
from supabase import Client
from typing import Dict, Optional, Literal

router = APIRouter(tags=["confluence"])


def get_confluence_service(supabase: Client = Depends(get_user_client)) -> ConfluenceService:
    return ConfluenceService(supabase)


def get_trade_filters(
    emotional_states: Optional[str] = Query(None, alias="emotionalStates", description="Comma-separated emotion tags"),
    strategy_id: Optional[str] = Query(None, alias="strategyId"),
    symbol: Optional[str] = None,
    market: Optional[str] = None,
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    pnl_filter: str = Query("all", alias="pnlFilter"),
    side: Optional[str] = None,
) -> TradeFilters:
    try:
        return TradeFilters(
            emotional_states=emotional_states,
            strategy_id=strategy_id,
            symbol=symbol,
            market=market,
            date_from=date_from,
            date_to=date_to,
            pnl_filter=pnl_filter,
            side=side,
        )
    except ValidationError as e:
        messages = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
        raise ApiError(422, "Invalid request", messages)


@router.get("/confluence-trades", response_model=PaginatedTradesResponse)
async def list_confluence_trades(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    sort_by: SortColumn = Query("trade_date", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    current_user: Dict = Depends(get_current_user),
    filters: TradeFilters = Depends(get_trade_filters),
    service: ConfluenceService = Depends(get_confluence_service)
):
    """Filtered, paginated trades for the confluence view"""
    return service.list_trades(
        user_id=current_user["id"],
        filters=filters,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/confluence-stats", response_model=ConfluenceStatsResponse)
async def get_confluence_stats(
    current_user: Dict = Depends(get_current_user),
    filters: TradeFilters = Depends(get_trade_filters),
    service: ConfluenceService = Depends(get_confluence_service)
):
    """Summary statistics and emotion radar; with no filters this is the dashboard view"""
    return service.get_statistics(current_user["id"], filters)
