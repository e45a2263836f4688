from fastapi import APIRouter, Depends
from sitebuilder.database.supabase_client import get_supabase, get_service_supabase
from sitebuilder.modules.auth.schemas import Caller
from sitebuilder.modules.deployments.schemas import DeploymentResponse
from sitebuilder.modules.deployments.service import DeploymentService
from sitebuilder.core.dependencies import get_caller
from sitebuilder.storage.s3_storage import S3Storage, get_storage
from supabase import Client
from typing import List

router = APIRouter(prefix="/deployments", tags=["deployments"])


def get_deployment_service(
    supabase: Client = Depends(get_supabase),
    storage: S3Storage = Depends(get_storage),
    profiles: Client = Depends(get_service_supabase),
) -> DeploymentService:
    return DeploymentService(supabase, storage, profiles=profiles)


@router.get("", response_model=List[DeploymentResponse])
async def list_deployments(
    limit: int = 20,
    caller: Caller = Depends(get_caller),
    service: DeploymentService = Depends(get_deployment_service),
):
    """Deployments requested by the caller, newest first."""
    return service.list_deployments(caller, limit=limit)


@router.get("/{deployment_id}", response_model=DeploymentResponse)
async def get_deployment(
    deployment_id: str,
    caller: Caller = Depends(get_caller),
    service: DeploymentService = Depends(get_deployment_service),
):
    """Get one deployment intent (requester or admin only)"""
    return service.get_deployment(deployment_id, caller)
