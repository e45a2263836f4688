from fastapi import APIRouter, Depends
from sitebuilder.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, Caller, MeResponse
)
from sitebuilder.modules.auth.service import AuthService
from sitebuilder.core.dependencies import get_auth_service, get_caller
from sitebuilder.config.permissions_config import get_accessible_resources, get_access_matrix

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.get("/me", response_model=MeResponse)
async def get_me(caller: Caller = Depends(get_caller)):
    """Current caller plus the resources their role can reach (for frontend UI)."""
    return MeResponse(
        user_id=caller.user_id,
        identity=caller.identity,
        role=caller.role,
        email=caller.email,
        resources=get_accessible_resources(caller.role),
        access_matrix=get_access_matrix(),
    )
