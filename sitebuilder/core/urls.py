"""
Public URL helpers for deployed sites and templates.
S3 URLs are used for management, CloudFront (when configured) for serving.
"""
from typing import Optional
from sitebuilder.config import settings

SITES_ROOT = "sites"
TEMPLATES_ROOT = "web-templates"


def site_prefix(user_id: str) -> str:
    return f"{SITES_ROOT}/{user_id}/"


def template_prefix(template_id: str) -> str:
    return f"{TEMPLATES_ROOT}/{template_id}/"


def _clean(path: str) -> str:
    return path[1:] if path.startswith("/") else path


def get_s3_url(path: str) -> str:
    return f"{settings.storage_base_url}/{_clean(path)}"


def get_cloudfront_url(path: str) -> Optional[str]:
    if not settings.cloudfront_base_url:
        return None
    return f"{settings.cloudfront_base_url.rstrip('/')}/{_clean(path)}"


def get_website_url(user_id: str, file_path: str = "index.html") -> str:
    """Serving URL for a user's site: CloudFront if configured, S3 otherwise"""
    full_path = f"{site_prefix(user_id)}{_clean(file_path)}"
    return get_cloudfront_url(full_path) or get_s3_url(full_path)


def get_template_preview_url(template_id: str) -> str:
    return get_s3_url(f"{template_prefix(template_id)}index.html")


def get_preview_path(user_id: str) -> str:
    return f"/site/{user_id}/index.html"
