import hashlib
import time
from supabase import Client
from sitebuilder.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, Caller
from fastapi import HTTPException
from typing import Any, Dict, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


def caller_from_user(user_data: Dict[str, Any]) -> Caller:
    """Reduce a Supabase user to an explicit (identity, role) pair."""
    user_metadata = user_data.get("user_metadata") or {}
    app_metadata = user_data.get("app_metadata") or {}
    identity = user_metadata.get("mobile_number") or user_data["id"]
    if app_metadata.get("type") == "super_user":
        role = "admin"
    else:
        role = app_metadata.get("role") or "user"
    return Caller(
        user_id=user_data["id"],
        identity=str(identity),
        role=role,
        email=user_data.get("email"),
    )


class TokenCache:
    """Bounded map of token digest -> Caller with a short TTL."""

    def __init__(self, ttl_seconds: float = 60, max_size: int = 500):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._entries: Dict[str, Tuple[Caller, float]] = {}

    @staticmethod
    def _key(token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()

    def get(self, token: str) -> Optional[Caller]:
        key = self._key(token)
        entry = self._entries.get(key)
        if entry is None:
            return None
        caller, expires_at = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return caller

    def put(self, token: str, caller: Caller) -> None:
        now = time.monotonic()
        if len(self._entries) >= self.max_size:
            self._entries = {k: v for k, v in self._entries.items() if v[1] > now}
        if len(self._entries) < self.max_size:
            self._entries[self._key(token)] = (caller, now + self.ttl_seconds)


_token_cache = TokenCache()


def _mentions(error: Exception, *needles: str) -> bool:
    message = str(error).lower()
    return any(needle in message for needle in needles)


class AuthService:
    def __init__(self, supabase: Client, token_cache: Optional[TokenCache] = None):
        self.supabase = supabase
        self.token_cache = token_cache or _token_cache

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Create a Supabase Auth account; the mobile number becomes the site identity."""
        metadata = {"mobile_number": register_data.mobile_number}
        if register_data.full_name:
            metadata["full_name"] = register_data.full_name
        try:
            response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {"data": metadata},
            })
        except Exception as e:
            if _mentions(e, "already registered", "already exists"):
                raise HTTPException(status_code=400, detail="User already exists")
            logger.error(f"Registration of {register_data.email} failed: {str(e)}")
            raise HTTPException(status_code=500, detail="Registration failed")
        if not response.user:
            raise HTTPException(status_code=400, detail="Failed to register user")
        logger.info(f"Registered user {response.user.id} for {register_data.mobile_number}")
        return RegisterResponse(
            user_id=response.user.id,
            email=response.user.email or register_data.email,
            message="User registered successfully",
        )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        try:
            response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password,
            })
        except Exception as e:
            if _mentions(e, "invalid", "credentials"):
                raise HTTPException(status_code=401, detail="Invalid email or password")
            logger.error(f"Login of {login_data.email} failed: {str(e)}")
            raise HTTPException(status_code=500, detail="Login failed")
        if not response.user or not response.session:
            raise HTTPException(status_code=401, detail="Invalid credentials")
        return TokenResponse(
            access_token=response.session.access_token,
            user_id=response.user.id,
            email=response.user.email or login_data.email,
        )

    def resolve_token(self, token: str) -> Caller:
        """Caller behind a bearer token. Lookups are cached briefly per token."""
        cached = self.token_cache.get(token)
        if cached is not None:
            return cached
        try:
            response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            logger.warning(f"Token verification failed: {str(e)}")
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        if not response or not response.user:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        user = response.user
        caller = caller_from_user({
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
            "app_metadata": user.app_metadata or {},
        })
        self.token_cache.put(token, caller)
        return caller
