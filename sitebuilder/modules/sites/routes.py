from fastapi import APIRouter, Depends, UploadFile, File
from sitebuilder.modules.auth.schemas import Caller
from sitebuilder.modules.deployments.routes import get_deployment_service
from sitebuilder.modules.deployments.schemas import (
    DeployTemplateRequest, DeployTemplateResponse, SiteArchiveResponse
)
from sitebuilder.modules.deployments.service import DeploymentService
from sitebuilder.modules.sites.schemas import SiteResponse
from sitebuilder.modules.sites.service import SiteService
from sitebuilder.core.dependencies import get_caller

router = APIRouter(prefix="/sites", tags=["sites"])


def get_site_service(
    deployments: DeploymentService = Depends(get_deployment_service),
) -> SiteService:
    return SiteService(deployments)


@router.get("/me", response_model=SiteResponse)
async def get_my_site(
    caller: Caller = Depends(get_caller),
    service: SiteService = Depends(get_site_service),
):
    return service.get_site(caller)


@router.post("/upload-archive", response_model=SiteArchiveResponse)
async def upload_site_archive(
    zip_file: UploadFile = File(...),
    caller: Caller = Depends(get_caller),
    service: DeploymentService = Depends(get_deployment_service),
):
    """
    Replace the caller's website with an uploaded ZIP.
    Existing files are removed before the new ones are written.
    """
    data = await zip_file.read()
    return service.deploy_archive_to_site(caller, zip_file.filename, data)


@router.post("/deploy-template", response_model=DeployTemplateResponse)
async def deploy_template(
    request: DeployTemplateRequest,
    caller: Caller = Depends(get_caller),
    service: DeploymentService = Depends(get_deployment_service),
):
    """Copy a template into the caller's website (409 if a site exists and replace_existing is false)"""
    return service.deploy_template_to_site(caller, request)
