from fastapi import APIRouter, Depends, Path, Request
from sitebuilder.database.supabase_client import get_supabase
from sitebuilder.modules.auth.schemas import Caller
from sitebuilder.modules.templates.schemas import IDENTITY_PATTERN
from sitebuilder.modules.widgets.schemas import (
    ContactMessageResponse, ContactSubmission, ContactWidgetSettings, GallerySettings,
    MarkReadRequest, ShopStatus, SubmissionResponse,
    WIDGET_CONTACT_US, WIDGET_IMAGE_GALLERY, WIDGET_SHOP_STATUS
)
from sitebuilder.modules.widgets.service import WidgetService
from sitebuilder.core.dependencies import get_caller, check_site_access
from supabase import Client
from typing import Annotated, List, Optional

# Widgets embedded in published sites read settings and submit forms
# anonymously; everything else is restricted to the site's manager.
router = APIRouter(prefix="/widgets/{owner}", tags=["widgets"])

Owner = Annotated[str, Path(pattern=IDENTITY_PATTERN)]


def get_widget_service(supabase: Client = Depends(get_supabase)) -> WidgetService:
    return WidgetService(supabase)


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else None


# Contact form

@router.get("/contact-us", response_model=ContactWidgetSettings)
async def get_contact_settings(
    owner: Owner,
    service: WidgetService = Depends(get_widget_service),
):
    return service.get_settings(owner, WIDGET_CONTACT_US, ContactWidgetSettings)


@router.put("/contact-us", response_model=ContactWidgetSettings)
async def update_contact_settings(
    settings: ContactWidgetSettings,
    owner: Owner,
    caller: Caller = Depends(get_caller),
    service: WidgetService = Depends(get_widget_service),
):
    check_site_access(caller, owner)
    return service.save_settings(owner, WIDGET_CONTACT_US, settings)


@router.post("/contact-us/messages", response_model=SubmissionResponse, status_code=201)
async def submit_contact_form(
    submission: ContactSubmission,
    request: Request,
    owner: Owner,
    service: WidgetService = Depends(get_widget_service),
):
    """Public endpoint used by the contact form on a published site"""
    return service.submit_message(
        owner, submission,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


@router.get("/contact-us/messages", response_model=List[ContactMessageResponse])
async def list_contact_messages(
    owner: Owner,
    caller: Caller = Depends(get_caller),
    service: WidgetService = Depends(get_widget_service),
):
    check_site_access(caller, owner)
    return service.list_messages(owner)


@router.patch("/contact-us/messages/{message_id}", response_model=ContactMessageResponse)
async def mark_contact_message(
    message_id: str,
    request: MarkReadRequest,
    owner: Owner,
    caller: Caller = Depends(get_caller),
    service: WidgetService = Depends(get_widget_service),
):
    check_site_access(caller, owner)
    return service.mark_read(owner, message_id, request.is_read)


@router.delete("/contact-us/messages/{message_id}")
async def delete_contact_message(
    message_id: str,
    owner: Owner,
    caller: Caller = Depends(get_caller),
    service: WidgetService = Depends(get_widget_service),
):
    check_site_access(caller, owner)
    service.delete_message(owner, message_id)
    return {"message": "Message deleted successfully"}


# Image gallery

@router.get("/image-gallery", response_model=GallerySettings)
async def get_gallery(
    owner: Owner,
    service: WidgetService = Depends(get_widget_service),
):
    return service.get_settings(owner, WIDGET_IMAGE_GALLERY, GallerySettings)


@router.put("/image-gallery", response_model=GallerySettings)
async def update_gallery(
    settings: GallerySettings,
    owner: Owner,
    caller: Caller = Depends(get_caller),
    service: WidgetService = Depends(get_widget_service),
):
    check_site_access(caller, owner)
    return service.save_settings(owner, WIDGET_IMAGE_GALLERY, settings)


# Shop status

@router.get("/shop-status", response_model=ShopStatus)
async def get_shop_status(
    owner: Owner,
    service: WidgetService = Depends(get_widget_service),
):
    return service.get_settings(owner, WIDGET_SHOP_STATUS, ShopStatus)


@router.put("/shop-status", response_model=ShopStatus)
async def update_shop_status(
    status: ShopStatus,
    owner: Owner,
    caller: Caller = Depends(get_caller),
    service: WidgetService = Depends(get_widget_service),
):
    check_site_access(caller, owner)
    return service.save_settings(owner, WIDGET_SHOP_STATUS, status)
