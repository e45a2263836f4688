"""
Keeps the metadata summary of a template (file count, total size,
last-modified, has-index flag) in step with its stored files.

Counters are adjusted incrementally per operation. The has-index flag is
re-derived from object storage on every call (one HEAD on the root
index.html), so deleting or renaming the entry point anywhere is reflected.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from fastapi import HTTPException
from supabase import Client
import logging

from sitebuilder.core.urls import template_prefix
from sitebuilder.storage.s3_storage import S3Storage, is_directory_marker
from sitebuilder.modules.templates.schemas import TemplateMetadata

logger = logging.getLogger(__name__)

TABLE = "web_templates"
ENTRY_POINT = "index.html"


class MetadataRecorder:
    def __init__(self, supabase: Client, storage: S3Storage):
        self.supabase = supabase
        self.storage = storage

    def _current(self, template_id: str) -> Dict[str, Any]:
        result = self.supabase.table(TABLE)\
            .select("id, file_count, total_size")\
            .eq("id", template_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Template not found")
        return result.data

    def _save(self, template_id: str, file_count: int, total_size: int) -> TemplateMetadata:
        has_index_html = self.storage.file_exists(f"{template_prefix(template_id)}{ENTRY_POINT}")
        metadata = TemplateMetadata(
            template_id=template_id,
            has_index_html=has_index_html,
            file_count=max(file_count, 0),
            total_size=max(total_size, 0),
            last_modified=datetime.now(timezone.utc),
        )
        self.supabase.table(TABLE).update({
            "has_index_html": metadata.has_index_html,
            "file_count": metadata.file_count,
            "total_size": metadata.total_size,
            "last_modified": metadata.last_modified.isoformat(),
        }).eq("id", template_id).execute()
        return metadata

    def record_write(self, template_id: str, size: int, previous_size: Optional[int] = None) -> TemplateMetadata:
        """A file was written; previous_size is the size of the object it replaced, if any."""
        current = self._current(template_id)
        file_count = current.get("file_count") or 0
        total_size = current.get("total_size") or 0
        if previous_size is None:
            file_count += 1
            total_size += size
        else:
            total_size += size - previous_size
        return self._save(template_id, file_count, total_size)

    def record_delete(self, template_id: str, removed_count: int, removed_bytes: int) -> TemplateMetadata:
        current = self._current(template_id)
        return self._save(
            template_id,
            (current.get("file_count") or 0) - removed_count,
            (current.get("total_size") or 0) - removed_bytes,
        )

    def touch(self, template_id: str) -> TemplateMetadata:
        """Files moved without changing count or size (rename)."""
        current = self._current(template_id)
        return self._save(template_id, current.get("file_count") or 0, current.get("total_size") or 0)

    def recompute(self, template_id: str) -> TemplateMetadata:
        """Authoritative rebuild from a full listing of the template prefix."""
        self._current(template_id)
        file_count = 0
        total_size = 0
        for obj in self.storage.iter_objects(template_prefix(template_id)):
            if is_directory_marker(obj.key):
                continue
            file_count += 1
            total_size += obj.size
        logger.info(f"Recomputed metadata for template {template_id}: {file_count} files, {total_size} bytes")
        return self._save(template_id, file_count, total_size)
