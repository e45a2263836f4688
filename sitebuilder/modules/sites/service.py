from fastapi import HTTPException
from sitebuilder.core.urls import (
    site_prefix, get_s3_url, get_website_url, get_cloudfront_url, get_preview_path
)
from sitebuilder.modules.auth.schemas import Caller
from sitebuilder.modules.deployments.service import DeploymentService
from sitebuilder.modules.sites.schemas import SiteResponse
import logging

logger = logging.getLogger(__name__)


class SiteService:
    def __init__(self, deployments: DeploymentService):
        self.deployments = deployments
        self.storage = deployments.storage

    def get_site(self, caller: Caller) -> SiteResponse:
        """State of the caller's site. Interrupted deployments are resolved first."""
        prefix = site_prefix(caller.identity)
        try:
            self.deployments.recover_prefix(prefix)
            has_content = self.storage.has_objects(prefix)
            has_index_html = has_content and self.storage.file_exists(f"{prefix}index.html")
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Failed to read site {prefix}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to fetch site")
        return SiteResponse(
            owner=caller.identity,
            prefix=prefix,
            has_content=has_content,
            has_index_html=has_index_html,
            website_url=get_website_url(caller.identity),
            s3_url=get_s3_url(f"{prefix}index.html"),
            cloudfront_url=get_cloudfront_url(f"{prefix}index.html"),
            preview_url=get_preview_path(caller.identity),
        )
