from supabase import Client
from sitebuilder.modules.templates.schemas import (
    TemplateCreate, TemplateUpdate, TemplateResponse, TemplateListResponse, Pagination
)
from sitebuilder.modules.auth.schemas import Caller
from sitebuilder.core.dependencies import is_template_visible
from sitebuilder.core.urls import TEMPLATES_ROOT, template_prefix, get_template_preview_url
from sitebuilder.storage.s3_storage import S3Storage
from sitebuilder.modules.deployments.pipeline import clear_prefix
from typing import List, Optional, Dict, Any
from datetime import datetime, timezone
from fastapi import HTTPException
import math
import random
import string
import time
import logging

logger = logging.getLogger(__name__)

TABLE = "web_templates"
_BASE36 = string.digits + string.ascii_lowercase


def generate_template_id() -> str:
    suffix = "".join(random.choices(_BASE36, k=9))
    return f"template_{int(time.time() * 1000)}_{suffix}"


def _search_filter(search: str) -> Optional[str]:
    # PostgREST or-filter syntax; commas and parentheses would split the expression
    term = "".join(c for c in search if c not in ",()").strip()
    if not term:
        return None
    return f"name.ilike.%{term}%,description.ilike.%{term}%"


def _pagination(page: int, limit: int, total: int) -> Pagination:
    pages = math.ceil(total / limit) if limit else 0
    return Pagination(
        current=page,
        pages=pages,
        total=total,
        has_next=page < pages,
        has_prev=page > 1,
    )


def to_response(row: Dict[str, Any]) -> TemplateResponse:
    resp = TemplateResponse(**row)
    if resp.has_index_html:
        resp.preview_url = get_template_preview_url(resp.id)
    return resp


class TemplateService:
    def __init__(self, supabase: Client, storage: Optional[S3Storage] = None):
        self.supabase = supabase
        self.storage = storage

    def create_template(self, template_data: TemplateCreate, caller: Caller) -> TemplateResponse:
        """Create a new template record with an empty metadata summary"""
        template_id = generate_template_id()
        try:
            result = self.supabase.table(TABLE).insert({
                "id": template_id,
                "name": template_data.name,
                "description": template_data.description,
                "business_category": template_data.business_category,
                "template_type": template_data.template_type,
                "tags": template_data.tags,
                "s3_path": f"{TEMPLATES_ROOT}/{template_id}",
                "preview_image": template_data.preview_image,
                "is_active": template_data.is_active,
                "is_public": template_data.is_public,
                "custom_identity": template_data.custom_identity,
                "created_by": caller.identity,
                "has_index_html": False,
                "file_count": 0,
                "total_size": 0,
                "last_modified": datetime.now(timezone.utc).isoformat(),
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create template")

            logger.info(f"Created template {template_id} ({template_data.name})")
            return to_response(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            if "duplicate" in str(e).lower() or "23505" in str(e):
                raise HTTPException(status_code=409, detail="Template with this name already exists")
            logger.error(f"Error creating template: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to create template")

    def get_template_row(self, template_id: str) -> Dict[str, Any]:
        """Raw template record regardless of visibility (admin paths)."""
        try:
            result = self.supabase.table(TABLE).select("*").eq("id", template_id).maybe_single().execute()
        except Exception as e:
            logger.error(f"Error loading template {template_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to fetch template")
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Template not found")
        return result.data

    def get_template_by_id(self, template_id: str) -> TemplateResponse:
        return to_response(self.get_template_row(template_id))

    def get_visible_template(self, template_id: str, identity: str) -> Dict[str, Any]:
        """Template record if active and visible to identity, else 404."""
        try:
            row = self.get_template_row(template_id)
        except HTTPException as e:
            if e.status_code == 404:
                raise HTTPException(status_code=404, detail="Template not found or not available")
            raise
        if not is_template_visible(row, identity):
            raise HTTPException(status_code=404, detail="Template not found or not available")
        return row

    def update_template(self, template_id: str, template_data: TemplateUpdate) -> TemplateResponse:
        """Update the fields present in the request"""
        self.get_template_row(template_id)
        update_data = template_data.model_dump(exclude_unset=True)
        if template_data.is_public:
            update_data["custom_identity"] = None
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table(TABLE)\
                .update(update_data)\
                .eq("id", template_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating template {template_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to update template")
        if not result.data:
            raise HTTPException(status_code=404, detail="Template not found")
        return to_response(result.data[0])

    def _query(
        self,
        filters: Dict[str, Any],
        category: Optional[str],
        template_type: Optional[str],
        search: Optional[str],
        page: int,
        limit: int,
    ):
        page = max(page, 1)
        limit = max(min(limit, 100), 1)
        query = self.supabase.table(TABLE).select("*", count="exact")
        for column, value in filters.items():
            query = query.eq(column, value)
        if category and category != "all":
            query = query.eq("business_category", category)
        if template_type and template_type != "all":
            query = query.eq("template_type", template_type)
        if search:
            expr = _search_filter(search)
            if expr:
                query = query.or_(expr)
        start = (page - 1) * limit
        result = query.order("created_at", desc=True).range(start, start + limit - 1).execute()
        total = result.count if result.count is not None else len(result.data or [])
        return result.data or [], _pagination(page, limit, total)

    def list_templates(
        self,
        category: Optional[str] = None,
        template_type: Optional[str] = None,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        is_public: Optional[bool] = None,
        page: int = 1,
        limit: int = 10,
    ) -> TemplateListResponse:
        """Admin listing across all templates."""
        filters: Dict[str, Any] = {}
        if is_active is not None:
            filters["is_active"] = is_active
        if is_public is not None:
            filters["is_public"] = is_public
        try:
            rows, pagination = self._query(filters, category, template_type, search, page, limit)
        except Exception as e:
            logger.error(f"Templates list error: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to fetch templates")
        return TemplateListResponse(templates=[to_response(r) for r in rows], pagination=pagination)

    def list_public_templates(
        self,
        category: Optional[str] = None,
        template_type: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 12,
    ) -> TemplateListResponse:
        """Active public templates for the template gallery."""
        filters = {"is_active": True, "is_public": True}
        try:
            rows, pagination = self._query(filters, category, template_type, search, page, limit)
        except Exception as e:
            logger.error(f"Public templates list error: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to fetch templates")
        return TemplateListResponse(
            templates=[to_response(r) for r in rows],
            pagination=pagination,
            categories=self._distinct("business_category"),
            types=self._distinct("template_type"),
        )

    def _distinct(self, column: str) -> List[str]:
        try:
            result = self.supabase.table(TABLE)\
                .select(column)\
                .eq("is_active", True)\
                .eq("is_public", True)\
                .execute()
            return sorted({r[column] for r in result.data or [] if r.get(column)})
        except Exception as e:
            logger.error(f"Error fetching distinct {column}: {e}")
            return []

    def deactivate_template(self, template_id: str) -> TemplateResponse:
        """Soft delete: hide the template from requesters, keep its files."""
        return self.update_template(template_id, TemplateUpdate(is_active=False))

    def delete_template(self, template_id: str) -> int:
        """Delete the record and every object under the template prefix. Returns objects removed."""
        self.get_template_row(template_id)
        if self.storage is None:
            raise HTTPException(status_code=500, detail="Object storage is not configured")
        try:
            cleared = clear_prefix(self.storage, template_prefix(template_id))
            self.supabase.table(TABLE).delete().eq("id", template_id).execute()
        except Exception as e:
            logger.error(f"Failed to delete template {template_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to delete template")
        logger.info(f"Deleted template {template_id} and {cleared.deleted} stored objects")
        return cleared.deleted
