from fastapi import APIRouter, Depends, UploadFile, File
from sitebuilder.database.supabase_client import get_supabase
from sitebuilder.modules.auth.schemas import Caller
from sitebuilder.modules.templates.schemas import (
    TemplateCreate, TemplateUpdate, TemplateResponse, TemplateListResponse
)
from sitebuilder.modules.templates.service import TemplateService, to_response
from sitebuilder.modules.deployments.schemas import TemplateArchiveResponse
from sitebuilder.modules.deployments.routes import get_deployment_service
from sitebuilder.modules.deployments.service import DeploymentService
from sitebuilder.core.dependencies import get_caller, require_resource
from sitebuilder.storage.s3_storage import S3Storage, get_storage
from supabase import Client
from typing import Optional

router = APIRouter(prefix="/templates", tags=["templates"])
admin_router = APIRouter(prefix="/admin/templates", tags=["admin-templates"])


def get_template_service(
    supabase: Client = Depends(get_supabase),
    storage: S3Storage = Depends(get_storage),
) -> TemplateService:
    return TemplateService(supabase, storage)


@router.get("", response_model=TemplateListResponse)
async def list_public_templates(
    category: Optional[str] = None,
    type: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 12,
    caller: Caller = Depends(get_caller),
    service: TemplateService = Depends(get_template_service),
):
    """Active public templates, with the categories and types in use."""
    return service.list_public_templates(
        category=category, template_type=type, search=search, page=page, limit=limit
    )


@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template(
    template_id: str,
    caller: Caller = Depends(get_caller),
    service: TemplateService = Depends(get_template_service),
):
    """A template the caller may deploy (public, or scoped to the caller)."""
    return to_response(service.get_visible_template(template_id, caller.identity))


@admin_router.get("", response_model=TemplateListResponse)
async def admin_list_templates(
    category: Optional[str] = None,
    type: Optional[str] = None,
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    is_public: Optional[bool] = None,
    page: int = 1,
    limit: int = 10,
    caller: Caller = Depends(require_resource("website-manager")),
    service: TemplateService = Depends(get_template_service),
):
    return service.list_templates(
        category=category,
        template_type=type,
        search=search,
        is_active=is_active,
        is_public=is_public,
        page=page,
        limit=limit,
    )


@admin_router.post("", response_model=TemplateResponse, status_code=201)
async def create_template(
    template_data: TemplateCreate,
    caller: Caller = Depends(require_resource("website-manager")),
    service: TemplateService = Depends(get_template_service),
):
    """Create a new website template"""
    return service.create_template(template_data, caller)


@admin_router.get("/{template_id}", response_model=TemplateResponse)
async def admin_get_template(
    template_id: str,
    caller: Caller = Depends(require_resource("website-manager")),
    service: TemplateService = Depends(get_template_service),
):
    return service.get_template_by_id(template_id)


@admin_router.put("/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: str,
    template_data: TemplateUpdate,
    caller: Caller = Depends(require_resource("website-manager")),
    service: TemplateService = Depends(get_template_service),
):
    """Update template"""
    return service.update_template(template_id, template_data)


@admin_router.delete("/{template_id}")
async def delete_template(
    template_id: str,
    hard: bool = False,
    caller: Caller = Depends(require_resource("website-manager")),
    service: TemplateService = Depends(get_template_service),
):
    """Deactivate a template, or with hard=true delete the record and its files"""
    if hard:
        removed = service.delete_template(template_id)
        return {"message": "Template deleted successfully", "files_deleted": removed}
    service.deactivate_template(template_id)
    return {"message": "Template deactivated successfully"}


@admin_router.post("/{template_id}/upload-archive", response_model=TemplateArchiveResponse)
async def upload_template_archive(
    template_id: str,
    zip_file: UploadFile = File(...),
    caller: Caller = Depends(require_resource("website-manager")),
    service: DeploymentService = Depends(get_deployment_service),
):
    """
    Upload a website ZIP into the template's storage prefix.
    The archive must contain an index.html; a single shared root folder is stripped.
    """
    data = await zip_file.read()
    return service.deploy_archive_to_template(template_id, caller, zip_file.filename, data)
