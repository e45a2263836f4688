"""
Resource Access Configuration
Maps each protected resource to the roles allowed to use it.
Checked by sitebuilder.core.dependencies through has_resource_access.
"""
from typing import Dict, List

ROLES = ["admin", "devops", "manager", "user"]

# Resource -> roles granted access
RESOURCE_ACCESS = {
    "website-manager": {
        "roles": ["admin", "devops"],
        "description": "Template catalogue and template file management"
    },
    "file-manager": {
        "roles": ["admin", "devops", "manager", "user"],
        "description": "Manage files of one's own website"
    },
    "user-management": {
        "roles": ["admin"],
        "description": "Act on any user's website"
    },
}

# Fallback when a resource is not listed
DEFAULT_ROLES = ["admin"]


def has_resource_access(resource: str, role: str) -> bool:
    """True if role may use resource. Unknown resources are admin only."""
    entry = RESOURCE_ACCESS.get(resource)
    allowed = entry["roles"] if entry else DEFAULT_ROLES
    return role in allowed


def get_accessible_resources(role: str) -> List[str]:
    return [name for name in RESOURCE_ACCESS if has_resource_access(name, role)]


def get_access_matrix() -> Dict[str, Dict[str, bool]]:
    """
    Returns {resource: {role: allowed}} for every configured resource.
    Used by /auth/me so the frontend can hide unavailable sections.
    """
    return {
        resource: {role: has_resource_access(resource, role) for role in ROLES}
        for resource in RESOURCE_ACCESS
    }
