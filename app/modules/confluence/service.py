import logging
import math
from supabase import Client
from app.config.settings import settings
from app.modules.confluence.schemas import (
    TradeFilters, PaginatedTradesResponse, ConfluenceStatsResponse
)
from app.modules.confluence.statistics import compute_trade_statistics
from app.modules.confluence.vrating import calculate_vrating
from app.modules.emotions.analysis import (
    aggregate_emotions, filter_trades_by_emotions, select_aggregation_input,
    discipline_level, tilt_control,
)
from app.modules.trades.models import TRADE_COLUMNS
from app.modules.trades.schemas import TradeResponse
from app.core.errors import ApiError
from app.core.validation import validate_uuid
from typing import List, Optional, Dict, Any, Tuple
from fastapi import HTTPException

logger = logging.getLogger(__name__)

# PostgREST code for an offset past the last row
RANGE_NOT_SATISFIABLE = "PGRST103"


def escape_like(value: str) -> str:
    """Make LIKE wildcards in user input match literally"""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _is_range_error(error: Exception) -> bool:
    return getattr(error, "code", None) == RANGE_NOT_SATISFIABLE or RANGE_NOT_SATISFIABLE in str(error)


def apply_trade_filters(query, filters: TradeFilters):
    """Apply the server-side part of the filters. Emotional states are handled after the fetch."""
    if filters.strategy_id:
        query = query.eq("strategy_id", validate_uuid(filters.strategy_id, "strategy_id"))
    if filters.symbol:
        query = query.ilike("symbol", f"%{escape_like(filters.symbol)}%")
    if filters.market:
        # Stored casing is inconsistent (Stock / stock)
        query = query.ilike("market", escape_like(filters.market))
    if filters.date_from:
        query = query.gte("trade_date", filters.date_from.isoformat())
    if filters.date_to:
        query = query.lte("trade_date", filters.date_to.isoformat())
    if filters.pnl_filter == "profitable":
        query = query.gt("pnl", 0)
    elif filters.pnl_filter == "lossable":
        query = query.lt("pnl", 0)
    if filters.side:
        query = query.eq("side", filters.side)
    return query


class ConfluenceService:
    def __init__(self, supabase: Client, max_fetch_rows: Optional[int] = None):
        self.supabase = supabase
        self.max_fetch_rows = max_fetch_rows or settings.max_fetch_rows

    def _fetch_rows(
        self,
        user_id: str,
        filters: TradeFilters,
        sort_by: str = "trade_date",
        sort_order: str = "desc",
    ) -> Tuple[List[Dict[str, Any]], bool]:
        """Up to max_fetch_rows matching rows, and whether more were available"""
        query = self.supabase.table("trades")\
            .select(TRADE_COLUMNS)\
            .eq("user_id", user_id)
        query = apply_trade_filters(query, filters)
        # one extra row tells a full result apart from a capped one
        result = query.order(sort_by, desc=(sort_order == "desc"))\
            .limit(self.max_fetch_rows + 1)\
            .execute()
        rows = result.data or []
        truncated = len(rows) > self.max_fetch_rows
        if truncated:
            logger.warning(f"[CONFLUENCE] Fetch capped at {self.max_fetch_rows} trades; results are partial")
            rows = rows[:self.max_fetch_rows]
        return rows, truncated

    def _count_rows(self, user_id: str, filters: TradeFilters) -> int:
        query = self.supabase.table("trades")\
            .select("id", count="exact")\
            .eq("user_id", user_id)
        query = apply_trade_filters(query, filters)
        result = query.limit(1).execute()
        return result.count or 0

    def list_trades(
        self,
        user_id: str,
        filters: TradeFilters,
        page: int = 1,
        limit: Optional[int] = None,
        sort_by: str = "trade_date",
        sort_order: str = "desc",
    ) -> PaginatedTradesResponse:
        """Paginated, filtered trades for the caller"""
        try:
            limit = min(limit or settings.default_page_limit, settings.max_page_limit)
            start = (page - 1) * limit
            truncated = False

            if filters.emotional_states:
                rows, truncated = self._fetch_rows(user_id, filters, sort_by, sort_order)
                rows = filter_trades_by_emotions(rows, filters.emotional_states)
                total_count = len(rows)
                page_rows = rows[start:start + limit]
            else:
                query = self.supabase.table("trades")\
                    .select(TRADE_COLUMNS, count="exact")\
                    .eq("user_id", user_id)
                query = apply_trade_filters(query, filters)
                try:
                    result = query.order(sort_by, desc=(sort_order == "desc"))\
                        .range(start, start + limit - 1)\
                        .execute()
                    page_rows = result.data or []
                    total_count = result.count if result.count is not None else len(page_rows)
                except Exception as e:
                    if not _is_range_error(e):
                        raise
                    logger.debug(f"[CONFLUENCE] page={page} is past the last row")
                    page_rows = []
                    total_count = self._count_rows(user_id, filters)

            total_pages = math.ceil(total_count / limit) if total_count else 0
            logger.debug(
                f"[CONFLUENCE] page={page} limit={limit} total={total_count} "
                f"filters_active={filters.is_active}"
            )
            return PaginatedTradesResponse(
                trades=[TradeResponse(**row) for row in page_rows],
                total_count=total_count,
                current_page=page,
                total_pages=total_pages,
                has_next_page=page * limit < total_count,
                has_previous_page=page > 1,
                truncated=truncated,
            )
        except HTTPException:
            raise
        except ValueError as e:
            logger.error(f"[CONFLUENCE] Invalid filter: {e}")
            raise ApiError(500, "Failed to fetch trades", str(e))
        except Exception as e:
            logger.error(f"[CONFLUENCE] Error fetching trades: {e}")
            raise ApiError(500, "Failed to fetch trades", str(e))

    def get_statistics(self, user_id: str, filters: TradeFilters) -> ConfluenceStatsResponse:
        """Aggregate statistics and emotion radar over the caller's (filtered) trades"""
        try:
            rows, truncated = self._fetch_rows(user_id, filters)
            if filters.emotional_states:
                filtered = filter_trades_by_emotions(rows, filters.emotional_states)
            else:
                filtered = rows
            trades = select_aggregation_input(rows, filtered, filters.is_active)

            stats = compute_trade_statistics(trades)
            stats.vrating = calculate_vrating(trades)
            emotional_data = aggregate_emotions(trades)
            return ConfluenceStatsResponse(
                **stats.model_dump(),
                emotional_data=emotional_data,
                discipline_level=discipline_level(emotional_data),
                tilt_control=tilt_control(emotional_data),
                filters_active=filters.is_active,
                truncated=truncated,
            )
        except HTTPException:
            raise
        except ValueError as e:
            logger.error(f"[CONFLUENCE] Invalid filter: {e}")
            raise ApiError(500, "Failed to compute statistics", str(e))
        except Exception as e:
            logger.error(f"[CONFLUENCE] Error computing statistics: {e}")
            raise ApiError(500, "Failed to compute statistics", str(e))
