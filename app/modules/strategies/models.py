# Supabase tables: strategies, strategy_rules
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

strategies:
- id: uuid (primary key, default gen_random_uuid())
- user_id: uuid (foreign key to auth.users.id, on delete cascade) - owner
- name: text (not null)
- description: text (nullable)
- is_active: boolean (default true)
- created_at: timestamptz (default: now())
- updated_at: timestamptz (default: now(), maintained by trigger)

strategy_rules:
- id: uuid (primary key)
- strategy_id: uuid (foreign key to strategies.id, on delete cascade)
- rule_text: text (not null)
- rule_order: integer
- is_checked: boolean (default false) - ticked by hand, no automated compliance
- created_at: timestamptz (default: now())
"""
