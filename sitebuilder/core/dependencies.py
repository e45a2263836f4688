"""
Core dependencies for route protection and access checks.

Handlers resolve the bearer token once into an explicit Caller and pass it
down; the checks below are plain functions of their arguments.
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sitebuilder.config.permissions_config import has_resource_access
from sitebuilder.database.supabase_client import get_supabase
from sitebuilder.modules.auth.schemas import Caller
from sitebuilder.modules.auth.service import AuthService
from supabase import Client
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Caller:
    """Resolve the bearer token into the calling user"""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized - Please log in"
        )
    return auth_service.resolve_token(credentials.credentials)


def ensure_resource_access(caller: Caller, resource: str) -> Caller:
    if not has_resource_access(resource, caller.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied"
        )
    return caller


def require_resource(resource: str):
    """Factory function to create a resource access dependency"""
    def check_resource(caller: Caller = Depends(get_caller)) -> Caller:
        return ensure_resource_access(caller, resource)
    return check_resource


def can_manage_site(caller: Caller, site_owner: str) -> bool:
    """Admins (user-management) may act on any site; others only on their own with file-manager access."""
    if has_resource_access("user-management", caller.role):
        return True
    return caller.identity == site_owner and has_resource_access("file-manager", caller.role)


def check_site_access(caller: Caller, site_owner: str) -> Caller:
    if not can_manage_site(caller, site_owner):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. You need file manager permissions to manage these files."
        )
    return caller


def is_template_visible(template: Dict[str, Any], identity: str) -> bool:
    """Active templates are visible when public, or when privately scoped to identity."""
    if not template.get("is_active"):
        return False
    if template.get("is_public"):
        return not template.get("custom_identity")
    return template.get("custom_identity") == identity
