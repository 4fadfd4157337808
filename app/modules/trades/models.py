# Supabase table: trades
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key, default gen_random_uuid())
- user_id: uuid (foreign key to auth.users.id, on delete cascade) - owner
- market: text (not null) - stock, futures, forex, crypto
- symbol: text (not null)
- strategy_id: uuid (foreign key to strategies.id, on delete set null, nullable)
- trade_date: date (not null)
- side: text (check side in ('Buy', 'Sell'))
- quantity: numeric
- entry_price: numeric
- exit_price: numeric
- pnl: numeric
- entry_time: time
- exit_time: time
- emotional_state: text[] - upper-case emotion tags
- notes: text
- created_at: timestamptz (default: now())
- updated_at: timestamptz (default: now(), maintained by trigger)

RLS: select/insert/update/delete only where auth.uid() = user_id
"""

TRADE_COLUMNS = (
    "id, user_id, symbol, market, side, quantity, entry_price, exit_price, pnl, "
    "trade_date, entry_time, exit_time, emotional_state, strategy_id, notes, "
    "created_at, updated_at, strategies(id, name)"
)
