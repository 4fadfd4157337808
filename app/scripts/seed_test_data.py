"""
Seed Test Data Script
Creates the template strategies (with their rules) and a batch of generated
trades for one user, so the dashboard and confluence views have data.
Runs with the service role key, so it bypasses RLS; user_id scoping is
applied explicitly.

Usage:
    python -m app.scripts.seed_test_data <user_id> [--trades 100] [--win-rate 0.71] [--seed 42]
"""

import argparse
import logging
import random
import sys
from datetime import date, timedelta
from typing import Dict, List, Optional

from supabase import Client

from app.core.validation import validate_uuid
from app.database.supabase_client import SupabaseClient

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

TRADING_SYMBOLS = [
    "AAPL", "GOOGL", "MSFT", "TSLA", "AMZN", "META", "NVDA", "AMD", "NFLX",
    "BTCUSD", "ETHUSD", "SPY", "QQQ", "IWM", "GLD", "SLV", "OIL", "NG",
]

MARKETS = ["stock", "crypto", "forex", "futures"]

EMOTIONAL_STATES = [
    "CONFIDENT", "FEARFUL", "DISCIPLINED", "IMPULSIVE", "PATIENT", "ANXIOUS", "GREEDY", "CALM",
]

STRATEGY_TEMPLATES = [
    {
        "name": "Momentum Breakout Strategy",
        "description": "Identifies momentum breakouts and rides the trend",
        "rules": [
            "Wait for confirmation breakout above resistance",
            "Enter trade on first pullback",
            "Use 2:1 risk/reward ratio",
            "Take partial profits at key levels",
            "Stop loss below breakout candle low",
        ],
    },
    {
        "name": "Mean Reversion Strategy",
        "description": "Trades price reversals after extreme movements",
        "rules": [
            "Identify overbought/oversold conditions",
            "Wait for reversal confirmation",
            "Enter on first reversal signal",
            "Use tight stop losses",
            "Target previous support/resistance levels",
        ],
    },
    {
        "name": "Scalping Strategy",
        "description": "Quick in-and-out trades capturing small price movements",
        "rules": [
            "Trade only during high volume sessions",
            "Take 5-10 pip profits quickly",
            "Use immediate breakeven stops",
            "No overnight positions",
            "Maximum 2 trades per hour",
        ],
    },
    {
        "name": "Swing Trading Strategy",
        "description": "Medium-term trades capturing larger swings over several days",
        "rules": [
            "Trade with the dominant trend",
            "Use wider stop losses for volatility",
            "Scale into positions gradually",
            "Take profits at key Fibonacci levels",
            "Hold trades 2-5 days typically",
        ],
    },
    {
        "name": "Options Income Strategy",
        "description": "Consistent income through options selling",
        "rules": [
            "Sell options with 30-45 days DTE",
            "Target 0.5-2% monthly returns",
            "Manage Greeks actively",
            "Roll positions when necessary",
            "Maintain defined risk per trade",
        ],
    },
]


def random_weekday(rng: random.Random, today: date, days_back: int = 60) -> date:
    """Random date in the last ``days_back`` days, moved back to Friday if it lands on a weekend"""
    day = today - timedelta(days=rng.randint(0, days_back - 2))
    if day.weekday() >= 5:
        day -= timedelta(days=day.weekday() - 4)
    return day


def random_session_times(rng: random.Random) -> tuple:
    """Entry and exit between 06:00 and 15:59, exit not before entry"""
    entry = rng.randint(6 * 60, 16 * 60 - 2)
    exit_ = rng.randint(entry + 1, 16 * 60 - 1)
    return f"{entry // 60:02d}:{entry % 60:02d}", f"{exit_ // 60:02d}:{exit_ % 60:02d}"


def generate_trades(
    user_id: str,
    strategy_ids: List[str],
    total: int = 100,
    win_rate: float = 0.71,
    rng: Optional[random.Random] = None,
    today: Optional[date] = None,
) -> List[Dict]:
    """Build trade rows; emotions rotate so every tag appears about equally often."""
    rng = rng or random.Random()
    today = today or date.today()
    wins = round(total * win_rate)
    outcomes = [True] * wins + [False] * (total - wins)
    rng.shuffle(outcomes)

    trades = []
    for index, is_win in enumerate(outcomes):
        side = rng.choice(["Buy", "Sell"])
        quantity = rng.randint(100, 1000)
        entry_price = float(rng.randint(10, 910))
        pnl = float(rng.randint(50, 500)) if is_win else -float(rng.randint(25, 300))
        exit_price = entry_price + pnl / quantity if side == "Buy" else entry_price - pnl / quantity
        entry_time, exit_time = random_session_times(rng)

        emotions = [EMOTIONAL_STATES[index % len(EMOTIONAL_STATES)]]
        if rng.random() < 0.3:
            others = [e for e in EMOTIONAL_STATES if e != emotions[0]]
            emotions += rng.sample(others, rng.randint(1, 2))

        trades.append({
            "user_id": user_id,
            "symbol": rng.choice(TRADING_SYMBOLS),
            "market": rng.choice(MARKETS),
            "strategy_id": strategy_ids[index % len(strategy_ids)] if strategy_ids else None,
            "trade_date": random_weekday(rng, today).isoformat(),
            "side": side,
            "quantity": quantity,
            "entry_price": entry_price,
            "exit_price": round(exit_price, 4),
            "pnl": pnl,
            "entry_time": entry_time,
            "exit_time": exit_time,
            "emotional_state": emotions,
            "notes": f"Generated test trade {index + 1} of {total} - {'WIN' if is_win else 'LOSS'}",
        })
    return trades


def seed_strategies(supabase: Client, user_id: str) -> List[str]:
    """Create template strategies that do not exist yet; returns all template strategy ids"""
    logger.info("Seeding strategies...")
    strategy_ids = []
    created_count = 0

    for template in STRATEGY_TEMPLATES:
        existing = supabase.table("strategies")\
            .select("id")\
            .eq("user_id", user_id)\
            .eq("name", template["name"])\
            .execute()

        if existing.data:
            strategy_ids.append(existing.data[0]["id"])
            logger.debug(f"Strategy exists: {template['name']}")
            continue

        result = supabase.table("strategies").insert({
            "user_id": user_id,
            "name": template["name"],
            "description": template["description"],
            "is_active": True
        }).execute()
        strategy_id = result.data[0]["id"]
        supabase.table("strategy_rules").insert([
            {"strategy_id": strategy_id, "rule_text": text, "rule_order": order, "is_checked": False}
            for order, text in enumerate(template["rules"])
        ]).execute()
        strategy_ids.append(strategy_id)
        created_count += 1
        logger.debug(f"Created strategy: {template['name']}")

    logger.info(f"Strategies seeded: {created_count} created, {len(strategy_ids) - created_count} existing")
    return strategy_ids


def seed_trades(supabase: Client, trades: List[Dict], batch_size: int = 50) -> int:
    logger.info(f"Seeding {len(trades)} trades...")
    inserted = 0
    for start in range(0, len(trades), batch_size):
        batch = trades[start:start + batch_size]
        result = supabase.table("trades").insert(batch).execute()
        inserted += len(result.data or [])
    logger.info(f"Trades seeded: {inserted} inserted")
    return inserted


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed strategies and trades for a user")
    parser.add_argument("user_id", help="Supabase auth user id that will own the data")
    parser.add_argument("--trades", type=int, default=100, help="number of trades to generate")
    parser.add_argument("--win-rate", type=float, default=0.71, help="fraction of winning trades")
    parser.add_argument("--seed", type=int, default=None, help="random seed for reproducible data")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    """Main function to seed strategies and trades"""
    args = parse_args(argv)
    try:
        user_id = validate_uuid(args.user_id, "user_id")
        if not 0 <= args.win_rate <= 1:
            raise ValueError("--win-rate must be between 0 and 1")

        supabase = SupabaseClient.get_service_client()

        logger.info(f"Starting test data seeding for user {user_id}...")
        strategy_ids = seed_strategies(supabase, user_id)
        trades = generate_trades(user_id, strategy_ids, args.trades, args.win_rate, random.Random(args.seed))
        trade_count = seed_trades(supabase, trades)

        logger.info("Seeding completed successfully!")
        logger.info(f"Total: {len(strategy_ids)} strategies, {trade_count} trades")
    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
