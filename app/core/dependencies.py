"""
Core dependencies for route protection and per-request Supabase access
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import SupabaseClient, get_supabase
from app.modules.auth.service import AuthService
from app.core.errors import ApiError
from supabase import Client
from typing import Optional, Dict, Any, Iterator
import logging

logger = logging.getLogger(__name__)

# auto_error is off so a missing header yields our 401 envelope instead of FastAPI's default
security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> str:
    """Extract JWT token from Authorization header"""
    if credentials is None or not credentials.credentials:
        raise ApiError(401, "Authentication required", "Missing Authorization: Bearer <token> header")
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    """Resolve the caller from the bearer token"""
    return auth_service.get_current_user(token)


def get_user_client(token: str = Depends(get_bearer_token)) -> Iterator[Client]:
    """Supabase client acting as the caller, so RLS policies apply to every query"""
    client = SupabaseClient.for_token(token)
    try:
        yield client
    finally:
        SupabaseClient.close(client)
