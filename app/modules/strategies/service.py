import logging
from supabase import Client
from app.modules.strategies.schemas import (
    StrategyCreate, StrategyUpdate, StrategyResponse,
    StrategyRuleCreate, StrategyRuleUpdate, StrategyRuleResponse
)
from app.modules.confluence.schemas import TradeStatistics
from app.modules.confluence.statistics import compute_trade_statistics
from app.modules.confluence.vrating import calculate_vrating
from app.modules.trades.models import TRADE_COLUMNS
from app.core.errors import ApiError
from app.core.validation import validate_uuid
from app.config.settings import settings
from typing import List, Dict, Any
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class StrategyService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _fetch_owned_strategy(self, strategy_id: str, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("strategies")\
            .select("*")\
            .eq("id", strategy_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()

        if not result.data:
            raise ApiError(404, "Strategy not found")
        return result.data[0]

    def _rules_for(self, strategy_ids: List[str]) -> Dict[str, List[StrategyRuleResponse]]:
        grouped: Dict[str, List[StrategyRuleResponse]] = {sid: [] for sid in strategy_ids}
        if not strategy_ids:
            return grouped
        result = self.supabase.table("strategy_rules")\
            .select("*")\
            .in_("strategy_id", strategy_ids)\
            .order("rule_order")\
            .execute()
        for row in result.data or []:
            grouped.setdefault(row["strategy_id"], []).append(StrategyRuleResponse(**row))
        return grouped

    def _fetch_rule(self, strategy_id: str, rule_id: str) -> Dict[str, Any]:
        result = self.supabase.table("strategy_rules")\
            .select("*")\
            .eq("id", rule_id)\
            .eq("strategy_id", strategy_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise ApiError(404, "Rule not found")
        return result.data[0]

    def list_strategies(self, user_id: str, active_only: bool = False) -> List[StrategyResponse]:
        """List the user's strategies with their rules"""
        try:
            query = self.supabase.table("strategies")\
                .select("*")\
                .eq("user_id", user_id)
            if active_only:
                query = query.eq("is_active", True)
            result = query.order("created_at", desc=True).execute()

            strategies = result.data or []
            rules = self._rules_for([s["id"] for s in strategies])
            return [StrategyResponse(**{**s, "rules": rules.get(s["id"], [])}) for s in strategies]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"[STRATEGIES] Error listing strategies: {e}")
            raise ApiError(500, "Failed to fetch strategies", str(e))

    def get_strategy(self, strategy_id: str, user_id: str) -> StrategyResponse:
        """Get one strategy with its rules"""
        try:
            strategy_id = validate_uuid(strategy_id, "strategy_id")
            strategy = self._fetch_owned_strategy(strategy_id, user_id)
            rules = self._rules_for([strategy_id])
            return StrategyResponse(**{**strategy, "rules": rules[strategy_id]})
        except HTTPException:
            raise
        except ValueError as e:
            raise ApiError(500, "Failed to fetch strategy", str(e))
        except Exception as e:
            logger.error(f"[STRATEGIES] Error fetching strategy {strategy_id}: {e}")
            raise ApiError(500, "Failed to fetch strategy", str(e))

    def create_strategy(self, strategy_data: StrategyCreate, user_id: str) -> StrategyResponse:
        """Create a strategy and its ordered rules"""
        try:
            result = self.supabase.table("strategies").insert({
                "name": strategy_data.name,
                "description": strategy_data.description,
                "is_active": strategy_data.is_active,
                "user_id": user_id
            }).execute()

            if not result.data:
                raise ApiError(500, "Failed to create strategy")
            strategy = result.data[0]

            rules: List[StrategyRuleResponse] = []
            if strategy_data.rules:
                rules_result = self.supabase.table("strategy_rules").insert([
                    {"strategy_id": strategy["id"], "rule_text": text, "rule_order": index, "is_checked": False}
                    for index, text in enumerate(strategy_data.rules)
                ]).execute()
                rules = [StrategyRuleResponse(**r) for r in rules_result.data or []]

            logger.info(f"[STRATEGIES] Created strategy {strategy['id']} with {len(rules)} rules")
            return StrategyResponse(**{**strategy, "rules": rules})
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"[STRATEGIES] Error creating strategy: {e}")
            raise ApiError(500, "Failed to create strategy", str(e))

    def update_strategy(self, strategy_id: str, strategy_data: StrategyUpdate, user_id: str) -> StrategyResponse:
        """Update strategy fields"""
        try:
            strategy_id = validate_uuid(strategy_id, "strategy_id")
            self._fetch_owned_strategy(strategy_id, user_id)

            update_data = {}
            if strategy_data.name is not None and strategy_data.name.strip():
                update_data["name"] = strategy_data.name.strip()
            if strategy_data.description is not None:
                update_data["description"] = strategy_data.description
            if strategy_data.is_active is not None:
                update_data["is_active"] = strategy_data.is_active

            if update_data:
                self.supabase.table("strategies")\
                    .update(update_data)\
                    .eq("id", strategy_id)\
                    .eq("user_id", user_id)\
                    .execute()

            return self.get_strategy(strategy_id, user_id)
        except HTTPException:
            raise
        except ValueError as e:
            raise ApiError(500, "Failed to update strategy", str(e))
        except Exception as e:
            logger.error(f"[STRATEGIES] Error updating strategy {strategy_id}: {e}")
            raise ApiError(500, "Failed to update strategy", str(e))

    def delete_strategy(self, strategy_id: str, user_id: str) -> bool:
        """Delete a strategy and its rules; trades keep existing with strategy_id set to null by the FK"""
        try:
            strategy_id = validate_uuid(strategy_id, "strategy_id")
            self._fetch_owned_strategy(strategy_id, user_id)

            self.supabase.table("strategy_rules")\
                .delete()\
                .eq("strategy_id", strategy_id)\
                .execute()

            result = self.supabase.table("strategies")\
                .delete()\
                .eq("id", strategy_id)\
                .eq("user_id", user_id)\
                .execute()

            logger.info(f"[STRATEGIES] Deleted strategy {strategy_id}")
            return len(result.data or []) > 0
        except HTTPException:
            raise
        except ValueError as e:
            raise ApiError(500, "Failed to delete strategy", str(e))
        except Exception as e:
            logger.error(f"[STRATEGIES] Error deleting strategy {strategy_id}: {e}")
            raise ApiError(500, "Failed to delete strategy", str(e))

    def add_rule(self, strategy_id: str, rule_data: StrategyRuleCreate, user_id: str) -> StrategyRuleResponse:
        """Append a rule to the strategy"""
        try:
            strategy_id = validate_uuid(strategy_id, "strategy_id")
            self._fetch_owned_strategy(strategy_id, user_id)

            existing = self._rules_for([strategy_id])[strategy_id]
            next_order = max((r.rule_order or 0 for r in existing), default=-1) + 1

            result = self.supabase.table("strategy_rules").insert({
                "strategy_id": strategy_id,
                "rule_text": rule_data.rule_text,
                "rule_order": next_order,
                "is_checked": False
            }).execute()

            if not result.data:
                raise ApiError(500, "Failed to add rule")
            return StrategyRuleResponse(**result.data[0])
        except HTTPException:
            raise
        except ValueError as e:
            raise ApiError(500, "Failed to add rule", str(e))
        except Exception as e:
            logger.error(f"[STRATEGIES] Error adding rule to {strategy_id}: {e}")
            raise ApiError(500, "Failed to add rule", str(e))

    def update_rule(self, strategy_id: str, rule_id: str, rule_data: StrategyRuleUpdate, user_id: str) -> StrategyRuleResponse:
        """Edit a rule's text or tick it"""
        try:
            strategy_id = validate_uuid(strategy_id, "strategy_id")
            rule_id = validate_uuid(rule_id, "rule_id")
            self._fetch_owned_strategy(strategy_id, user_id)
            rule = self._fetch_rule(strategy_id, rule_id)

            update_data = {}
            if rule_data.rule_text is not None and rule_data.rule_text.strip():
                update_data["rule_text"] = rule_data.rule_text.strip()
            if rule_data.is_checked is not None:
                update_data["is_checked"] = rule_data.is_checked

            if not update_data:
                return StrategyRuleResponse(**rule)

            result = self.supabase.table("strategy_rules")\
                .update(update_data)\
                .eq("id", rule_id)\
                .eq("strategy_id", strategy_id)\
                .execute()

            if not result.data:
                raise ApiError(404, "Rule not found")
            return StrategyRuleResponse(**result.data[0])
        except HTTPException:
            raise
        except ValueError as e:
            raise ApiError(500, "Failed to update rule", str(e))
        except Exception as e:
            logger.error(f"[STRATEGIES] Error updating rule {rule_id}: {e}")
            raise ApiError(500, "Failed to update rule", str(e))

    def delete_rule(self, strategy_id: str, rule_id: str, user_id: str) -> bool:
        try:
            strategy_id = validate_uuid(strategy_id, "strategy_id")
            rule_id = validate_uuid(rule_id, "rule_id")
            self._fetch_owned_strategy(strategy_id, user_id)
            self._fetch_rule(strategy_id, rule_id)

            result = self.supabase.table("strategy_rules")\
                .delete()\
                .eq("id", rule_id)\
                .eq("strategy_id", strategy_id)\
                .execute()
            return len(result.data or []) > 0
        except HTTPException:
            raise
        except ValueError as e:
            raise ApiError(500, "Failed to delete rule", str(e))
        except Exception as e:
            logger.error(f"[STRATEGIES] Error deleting rule {rule_id}: {e}")
            raise ApiError(500, "Failed to delete rule", str(e))

    def get_performance(self, strategy_id: str, user_id: str) -> TradeStatistics:
        """Statistics over the user's trades tagged with this strategy"""
        try:
            strategy_id = validate_uuid(strategy_id, "strategy_id")
            self._fetch_owned_strategy(strategy_id, user_id)

            result = self.supabase.table("trades")\
                .select(TRADE_COLUMNS)\
                .eq("user_id", user_id)\
                .eq("strategy_id", strategy_id)\
                .order("trade_date")\
                .limit(settings.max_fetch_rows)\
                .execute()

            rows = result.data or []
            stats = compute_trade_statistics(rows)
            stats.vrating = calculate_vrating(rows)
            return stats
        except HTTPException:
            raise
        except ValueError as e:
            raise ApiError(500, "Failed to compute strategy performance", str(e))
        except Exception as e:
            logger.error(f"[STRATEGIES] Error computing performance for {strategy_id}: {e}")
            raise ApiError(500, "Failed to compute strategy performance", str(e))
