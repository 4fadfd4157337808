# Supabase Auth
# This module relies on Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - User registration and login (done by the web client)
# - JWT token generation and validation
# - Session refresh

"""
The API only consumes the access token:
- auth.get_user(jwt) - resolve the caller behind a bearer token

The resolved user id scopes every trades/strategies query, alongside
the RLS policies defined on those tables.
"""
