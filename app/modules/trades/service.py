import logging
from supabase import Client
from app.modules.trades.models import TRADE_COLUMNS
from app.modules.trades.schemas import (
    TradeCreate, TradeUpdate, TradeResponse, TradeDeleteResponse
)
from app.core.errors import ApiError
from app.core.validation import validate_uuid
from typing import Dict, Any
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class TradeService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _fetch_owned_trade(self, trade_id: str, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("trades")\
            .select(TRADE_COLUMNS)\
            .eq("id", trade_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()

        if not result.data:
            raise ApiError(404, "Trade not found")
        return result.data[0]

    def _ensure_strategy_owned(self, strategy_id: str, user_id: str) -> str:
        strategy_id = validate_uuid(strategy_id, "strategy_id")
        result = self.supabase.table("strategies")\
            .select("id")\
            .eq("id", strategy_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise ApiError(404, "Strategy not found")
        return strategy_id

    def create_trade(self, trade_data: TradeCreate, user_id: str) -> TradeResponse:
        """Log a new trade for the user"""
        try:
            payload = trade_data.model_dump(mode="json")
            if payload.get("strategy_id"):
                payload["strategy_id"] = self._ensure_strategy_owned(payload["strategy_id"], user_id)
            payload["user_id"] = user_id

            result = self.supabase.table("trades").insert(payload).execute()

            if not result.data:
                raise ApiError(500, "Failed to create trade")

            logger.info(f"[TRADES] Created trade {result.data[0]['id']} ({payload['symbol']})")
            return TradeResponse(**result.data[0])
        except HTTPException:
            raise
        except ValueError as e:
            raise ApiError(500, "Failed to create trade", str(e))
        except Exception as e:
            logger.error(f"[TRADES] Error creating trade: {e}")
            raise ApiError(500, "Failed to create trade", str(e))

    def get_trade(self, trade_id: str, user_id: str) -> TradeResponse:
        """Get a trade owned by the user"""
        try:
            trade_id = validate_uuid(trade_id, "trade_id")
            return TradeResponse(**self._fetch_owned_trade(trade_id, user_id))
        except HTTPException:
            raise
        except ValueError as e:
            logger.error(f"[TRADES] Invalid trade id: {e}")
            raise ApiError(500, "Failed to fetch trade", str(e))
        except Exception as e:
            logger.error(f"[TRADES] Error fetching trade {trade_id}: {e}")
            raise ApiError(500, "Failed to fetch trade", str(e))

    def update_trade(self, trade_id: str, trade_data: TradeUpdate, user_id: str) -> TradeResponse:
        """Update fields of a trade owned by the user"""
        try:
            trade_id = validate_uuid(trade_id, "trade_id")
            existing = self._fetch_owned_trade(trade_id, user_id)

            update_data = trade_data.model_dump(mode="json", exclude_unset=True)
            if not update_data:
                # No changes, return existing
                return TradeResponse(**existing)

            if update_data.get("strategy_id"):
                update_data["strategy_id"] = self._ensure_strategy_owned(update_data["strategy_id"], user_id)

            result = self.supabase.table("trades")\
                .update(update_data)\
                .eq("id", trade_id)\
                .eq("user_id", user_id)\
                .execute()

            if not result.data:
                raise ApiError(404, "Trade not found")

            logger.info(f"[TRADES] Updated trade {trade_id}: {sorted(update_data)}")
            # re-read so the embedded strategy reflects the new strategy_id
            return TradeResponse(**self._fetch_owned_trade(trade_id, user_id))
        except HTTPException:
            raise
        except ValueError as e:
            logger.error(f"[TRADES] Invalid id on update: {e}")
            raise ApiError(500, "Failed to update trade", str(e))
        except Exception as e:
            logger.error(f"[TRADES] Error updating trade {trade_id}: {e}")
            raise ApiError(500, "Failed to update trade", str(e))

    def delete_trade(self, trade_id: str, user_id: str) -> TradeDeleteResponse:
        """Delete a trade owned by the user"""
        try:
            trade_id = validate_uuid(trade_id, "trade_id")
            self._fetch_owned_trade(trade_id, user_id)

            self.supabase.table("trades")\
                .delete()\
                .eq("id", trade_id)\
                .eq("user_id", user_id)\
                .execute()

            logger.info(f"[TRADES] Deleted trade {trade_id}")
            return TradeDeleteResponse(message="Trade deleted successfully", id=trade_id)
        except HTTPException:
            raise
        except ValueError as e:
            logger.error(f"[TRADES] Invalid trade id on delete: {e}")
            raise ApiError(500, "Failed to delete trade", str(e))
        except Exception as e:
            logger.error(f"[TRADES] Error deleting trade {trade_id}: {e}")
            raise ApiError(500, "Failed to delete trade", str(e))
