import hashlib
import logging
import re
import time
from supabase import Client
from raqm.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from raqm.modules.profiles.service import normalize_plate_number
from fastapi import HTTPException
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

PLATE_NUMBER_RE = re.compile(r"^[A-Z0-9\-\s]+$", re.IGNORECASE)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def clear_auth_cache() -> None:
    _AUTH_USER_CACHE.clear()


class AuthService:
    def __init__(self, auth_client: Client, supabase: Optional[Client] = None):
        self.auth_client = auth_client
        self.supabase = supabase or auth_client

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user and create their profile"""
        plate_number = normalize_plate_number(register_data.plate_number)
        full_name = register_data.full_name.strip()
        if not plate_number or not full_name or not register_data.password:
            raise HTTPException(status_code=400, detail="Please fill in all fields")
        if not PLATE_NUMBER_RE.match(plate_number):
            raise HTTPException(status_code=400, detail="Please enter a valid plate number")

        try:
            existing = self.supabase.table("profiles")\
                .select("id")\
                .eq("plate_number", plate_number)\
                .limit(1)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=400, detail="This plate number is already registered")

            auth_response = self.auth_client.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": {"full_name": full_name, "plate_number": plate_number}
                }
            })

            if not auth_response.user:
                raise HTTPException(status_code=400, detail="Failed to register user")

            self.supabase.table("profiles").insert({
                "id": auth_response.user.id,
                "full_name": full_name,
                "plate_number": plate_number,
                "is_mulkiya_verified": False,
                "show_phone_number": False,
            }).execute()

            logger.info(f"Registered user {auth_response.user.id} with plate {plate_number}")
            return RegisterResponse(
                user_id=auth_response.user.id,
                email=auth_response.user.email or register_data.email,
                plate_number=plate_number,
                message="Registration successful! Please verify your Mulkiya ID."
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            logger.error(f"Registration failed: {error_message}")
            raise HTTPException(status_code=500, detail=f"Registration failed: {error_message}")

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth; unconfirmed emails are rejected"""
        try:
            auth_response = self.auth_client.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

        if not auth_response.user or not auth_response.session:
            raise HTTPException(status_code=401, detail="Invalid credentials")

        if not auth_response.user.email_confirmed_at:
            self.logout(auth_response.session.access_token)
            raise HTTPException(status_code=403, detail="Please verify your email before logging in")

        return TokenResponse(
            access_token=auth_response.session.access_token,
            refresh_token=auth_response.session.refresh_token,
            token_type="bearer",
            user_id=auth_response.user.id,
            email=auth_response.user.email or login_data.email
        )

    def refresh(self, refresh_token: str) -> TokenResponse:
        """Exchange a refresh token for a new session"""
        try:
            auth_response = self.auth_client.auth.refresh_session(refresh_token)
        except Exception as e:
            logger.warning(f"Session refresh failed: {e}")
            raise HTTPException(status_code=401, detail="Invalid or expired refresh token")
        if not auth_response.user or not auth_response.session:
            raise HTTPException(status_code=401, detail="Invalid or expired refresh token")
        return TokenResponse(
            access_token=auth_response.session.access_token,
            refresh_token=auth_response.session.refresh_token,
            user_id=auth_response.user.id,
            email=auth_response.user.email or ""
        )

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user_data, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return user_data
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.auth_client.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user = user_response.user
            user_data = {
                "id": user.id,
                "email": user.email,
                "user_metadata": user.user_metadata or {},
                "app_metadata": user.app_metadata or {},
                "created_at": user.created_at,
                "updated_at": user.updated_at
            }
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
            return user_data
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def get_session_user(self, user_data: Dict[str, Any]) -> Dict[str, Any]:
        """Auth user merged with their profile row; flags users who never finished registration"""
        result = self.supabase.table("profiles")\
            .select("*")\
            .eq("id", user_data["id"])\
            .limit(1)\
            .execute()
        if not result.data:
            logger.info(f"Profile not found for user {user_data['id']}, registration incomplete")
            return {**user_data, "profile_complete": False}
        return {**user_data, **result.data[0], "profile_complete": True}

    def logout(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        try:
            _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
            # Revokes the session of this token, not the session stored on the shared client
            self.auth_client.auth.admin.sign_out(token)
            return True
        except Exception as e:
            logger.warning(f"Sign out failed: {e}")
            return False
