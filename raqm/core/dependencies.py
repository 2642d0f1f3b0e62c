"""
Core dependencies for route protection
"""

from fastapi import Depends, HTTPException, Security, WebSocket, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from raqm.database.supabase_client import get_supabase, get_auth_supabase
from raqm.modules.auth.service import AuthService
from supabase import Client
from typing import Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()

# WebSocket close codes (4000-4999 are reserved for applications)
WS_UNAUTHORIZED = 4401
WS_FORBIDDEN = 4403
WS_NOT_FOUND = 4404


def get_auth_service(
    auth_client: Client = Depends(get_auth_supabase),
    supabase: Client = Depends(get_supabase)
) -> AuthService:
    return AuthService(auth_client, supabase)


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(token)


def load_profile(user_id: str, supabase: Client) -> Dict[str, Any]:
    """Profile row for an authenticated user; 403 when registration was never completed"""
    result = supabase.table("profiles")\
        .select("*")\
        .eq("id", user_id)\
        .limit(1)\
        .execute()
    if not result.data:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Profile not found. Please complete registration"
        )
    return result.data[0]


def get_current_profile(
    user_data: Dict[str, Any] = Depends(get_current_user),
    supabase: Client = Depends(get_supabase)
) -> Dict[str, Any]:
    return load_profile(user_data["id"], supabase)


def ensure_verified(profile: Dict[str, Any]) -> Dict[str, Any]:
    if not profile.get("is_mulkiya_verified"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Mulkiya verification required"
        )
    return profile


def get_verified_user(
    profile: Dict[str, Any] = Depends(get_current_profile)
) -> Dict[str, Any]:
    """Authenticated user whose Mulkiya ID has been verified"""
    return ensure_verified(profile)


def authenticate_websocket(token: str, auth_service: AuthService, supabase: Client) -> Dict[str, Any]:
    """Resolve a ?token= query parameter to a verified profile.

    Raises HTTPException; callers translate it into a WebSocket close code.
    """
    user_data = auth_service.get_current_user(token)
    return ensure_verified(load_profile(user_data["id"], supabase))


async def reject_websocket(websocket: WebSocket, exc: HTTPException) -> None:
    """Accept then close, so the client sees the application close code"""
    code = {
        status.HTTP_401_UNAUTHORIZED: WS_UNAUTHORIZED,
        status.HTTP_404_NOT_FOUND: WS_NOT_FOUND,
    }.get(exc.status_code, WS_FORBIDDEN)
    await websocket.accept()
    await websocket.close(code=code, reason=str(exc.detail))
