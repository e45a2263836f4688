from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from sitebuilder.core.dependencies import check_site_access, get_caller, require_resource
from sitebuilder.core.urls import site_prefix, template_prefix
from sitebuilder.database.supabase_client import get_supabase
from sitebuilder.modules.auth.schemas import Caller
from sitebuilder.modules.files.schemas import (
    CreateEntryRequest, CreateFileRequest, DeleteRequest, FileContentResponse,
    FileListResponse, FileOperationResponse, RenameRequest, UpdateFileRequest
)
from sitebuilder.modules.files.service import FileManagerService
from sitebuilder.modules.templates.metadata import MetadataRecorder
from sitebuilder.modules.templates.service import TemplateService
from sitebuilder.storage.s3_storage import S3Storage, get_storage
from supabase import Client
from typing import Callable

site_files_router = APIRouter(prefix="/sites/{user_id}/files", tags=["files"])
template_files_router = APIRouter(prefix="/admin/templates/{template_id}/files", tags=["admin-templates"])


def get_site_file_manager(
    user_id: str,
    caller: Caller = Depends(get_caller),
    storage: S3Storage = Depends(get_storage),
) -> FileManagerService:
    check_site_access(caller, user_id)
    return FileManagerService(storage, site_prefix(user_id))


def get_template_file_manager(
    template_id: str,
    caller: Caller = Depends(require_resource("website-manager")),
    supabase: Client = Depends(get_supabase),
    storage: S3Storage = Depends(get_storage),
) -> FileManagerService:
    TemplateService(supabase, storage).get_template_row(template_id)
    return FileManagerService(
        storage,
        template_prefix(template_id),
        recorder=MetadataRecorder(supabase, storage),
        template_id=template_id,
    )


def _register_routes(router: APIRouter, get_service: Callable[..., FileManagerService]) -> None:
    """Attach the file manager endpoints to a scope-specific router."""

    @router.get("", response_model=FileListResponse)
    async def list_files(path: str = "", service: FileManagerService = Depends(get_service)):
        return service.list_files(path)

    @router.get("/content", response_model=FileContentResponse)
    async def get_file_content(path: str, service: FileManagerService = Depends(get_service)):
        return service.read_text(path)

    @router.get("/download")
    async def download_file(path: str, service: FileManagerService = Depends(get_service)):
        content, content_type, filename = service.download(path)
        return Response(
            content=content,
            media_type=content_type,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @router.post("", response_model=FileOperationResponse, status_code=201)
    async def create_entry(request: CreateEntryRequest, service: FileManagerService = Depends(get_service)):
        """Create an empty or pre-filled file, or a folder"""
        if isinstance(request, CreateFileRequest):
            return service.create_file(request.path, request.name, request.content)
        return service.create_folder(request.path, request.name)

    @router.post("/upload", response_model=FileOperationResponse)
    async def upload_file(
        file: UploadFile = File(...),
        path: str = Form(""),
        service: FileManagerService = Depends(get_service),
    ):
        content = await file.read()
        return service.upload(path, file.filename, content)

    @router.put("", response_model=FileOperationResponse)
    async def update_file(request: UpdateFileRequest, service: FileManagerService = Depends(get_service)):
        return service.update_file(request.path, request.content)

    @router.post("/rename", response_model=FileOperationResponse)
    async def rename_file(request: RenameRequest, service: FileManagerService = Depends(get_service)):
        return service.rename(request.path, request.new_name)

    @router.delete("", response_model=FileOperationResponse)
    async def delete_entry(request: DeleteRequest, service: FileManagerService = Depends(get_service)):
        """Delete a file, or a folder recursively when is_directory is set"""
        return service.delete(request.path, request.is_directory)


_register_routes(site_files_router, get_site_file_manager)
_register_routes(template_files_router, get_template_file_manager)
