from supabase import Client
from pydantic import TypeAdapter
from sitebuilder.config import settings
from sitebuilder.config.permissions_config import has_resource_access
from sitebuilder.core.urls import (
    site_prefix, template_prefix, get_s3_url, get_website_url, get_cloudfront_url,
    get_template_preview_url, get_preview_path
)
from sitebuilder.modules.auth.schemas import Caller
from sitebuilder.modules.deployments.archive import (
    ArchiveEntry, ArchiveError, extract_archive
)
from sitebuilder.modules.deployments.pipeline import (
    clear_prefix, copy_files, list_source_files, write_entries
)
from sitebuilder.modules.deployments.schemas import (
    DeploymentResponse, DeployTemplateRequest, DeployTemplateResponse,
    SiteArchiveResponse, TemplateArchiveResponse
)
from sitebuilder.modules.templates.metadata import MetadataRecorder
from sitebuilder.modules.templates.service import TemplateService
from sitebuilder.storage.s3_storage import S3Storage, is_directory_marker
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from fastapi import HTTPException
import uuid
import logging

logger = logging.getLogger(__name__)

TABLE = "site_deployments"
SITE_KINDS = ("site_archive", "site_from_template")
COMMIT_ATTEMPTS = 3

# Intent phases: "started" until the target is ready for writing (for a
# replace, until the old content is fully cleared); "writing" afterwards.
PHASE_STARTED = "started"
PHASE_WRITING = "writing"

_timestamp = TypeAdapter(datetime)


def _parse_timestamp(value: Any) -> datetime:
    # PostgREST trims trailing zeros from fractional seconds
    ts = _timestamp.validate_python(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _check_zip_name(filename: Optional[str]) -> None:
    if not filename or not filename.lower().endswith(".zip"):
        raise HTTPException(status_code=400, detail="The uploaded file is not a ZIP archive")


class DeploymentService:
    def __init__(
        self,
        supabase: Client,
        storage: S3Storage,
        template_service: Optional[TemplateService] = None,
        metadata: Optional[MetadataRecorder] = None,
        profiles: Optional[Client] = None,
    ):
        self.supabase = supabase
        # profile rows sit behind RLS; the service-role client writes site_url
        self.profiles = profiles or supabase
        self.storage = storage
        self.template_service = template_service or TemplateService(supabase, storage)
        self.metadata = metadata or MetadataRecorder(supabase, storage)

    # Deployment intents

    def _open_rows(self, target_prefix: str) -> List[Dict[str, Any]]:
        """Pending and failed intents for target_prefix, newest first."""
        result = self.supabase.table(TABLE)\
            .select("*")\
            .eq("target_prefix", target_prefix)\
            .in_("status", ["pending", "failed"])\
            .order("created_at", desc=True)\
            .execute()
        return result.data or []

    def _latest_commit(self, target_prefix: str) -> Optional[datetime]:
        result = self.supabase.table(TABLE)\
            .select("created_at")\
            .eq("target_prefix", target_prefix)\
            .eq("status", "committed")\
            .order("created_at", desc=True)\
            .limit(1)\
            .execute()
        rows = result.data or []
        return _parse_timestamp(rows[0]["created_at"]) if rows else None

    def _is_stale(self, row: Dict[str, Any]) -> bool:
        age = datetime.now(timezone.utc) - _parse_timestamp(row["created_at"])
        return age.total_seconds() > settings.deployment_stale_after_seconds

    def _update(self, deployment_id: str, **fields) -> None:
        update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
        update_data.update(fields)
        self.supabase.table(TABLE).update(update_data).eq("id", deployment_id).execute()

    def _set_status(self, deployment_id: str, status: str, **fields) -> None:
        self._update(deployment_id, status=status, **fields)

    def _mark_writing(self, deployment_id: str) -> None:
        self._update(deployment_id, phase=PHASE_WRITING)

    def _count_files(self, prefix: str) -> int:
        return sum(1 for obj in self.storage.iter_objects(prefix) if not is_directory_marker(obj.key))

    def _roll_back(self, row: Dict[str, Any]) -> str:
        """Undo what an interrupted intent left behind. Returns the status to record."""
        prefix = row["target_prefix"]
        if row["kind"] in SITE_KINDS:
            if row.get("phase") != PHASE_WRITING:
                # nothing new was written; whatever is stored is the previous site
                logger.warning(f"Deployment {row['id']} stopped before writing; {prefix} left as is")
                return "rolled_back"
            expected = row.get("expected_files")
            if expected and self._count_files(prefix) == expected:
                # every file landed; only the final status write was lost
                logger.warning(f"Deployment {row['id']} found complete under {prefix}; marking committed")
                return "committed"
            cleared = clear_prefix(self.storage, prefix)
            logger.warning(
                f"Rolled back interrupted deployment {row['id']}: removed {cleared.deleted} objects under {prefix}"
            )
        elif row.get("template_id"):
            self.metadata.recompute(row["template_id"])
            logger.warning(
                f"Rolled back interrupted deployment {row['id']}: recomputed metadata of template {row['template_id']}"
            )
        return "rolled_back"

    def recover_prefix(self, target_prefix: str) -> int:
        """
        Resolve failed and stale pending intents for target_prefix.
        Intents superseded by a later committed deployment are only marked;
        the others are rolled back, or committed if their writes all landed.
        Returns the number of intents resolved.
        """
        rows = self._open_rows(target_prefix)
        if not rows:
            return 0
        latest_commit = self._latest_commit(target_prefix)
        resolved = 0
        for row in rows:
            interrupted = row["status"] == "failed" or (row["status"] == "pending" and self._is_stale(row))
            if not interrupted:
                continue
            superseded = latest_commit is not None and latest_commit > _parse_timestamp(row["created_at"])
            status = "rolled_back" if superseded else self._roll_back(row)
            self._set_status(row["id"], status)
            resolved += 1
        return resolved

    def _begin(
        self,
        target_prefix: str,
        kind: str,
        caller: Caller,
        template_id: Optional[str] = None,
        source: Optional[str] = None,
        expected_files: Optional[int] = None,
    ) -> str:
        """Record a pending intent for target_prefix; 409 if one is already in flight."""
        try:
            self.recover_prefix(target_prefix)
            in_flight = [
                r for r in self._open_rows(target_prefix)
                if r["status"] == "pending" and not self._is_stale(r)
            ]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Failed to check deployments for {target_prefix}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to start deployment")
        if in_flight:
            raise HTTPException(status_code=409, detail="Another deployment to this destination is in progress")

        deployment_id = str(uuid.uuid4())
        try:
            self.supabase.table(TABLE).insert({
                "id": deployment_id,
                "target_prefix": target_prefix,
                "kind": kind,
                "template_id": template_id,
                "source": source,
                "requested_by": caller.identity,
                "status": "pending",
                "phase": PHASE_STARTED,
                "expected_files": expected_files,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }).execute()
        except Exception as e:
            if "duplicate" in str(e).lower() or "23505" in str(e):
                raise HTTPException(status_code=409, detail="Another deployment to this destination is in progress")
            logger.error(f"Failed to record deployment intent: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to start deployment")
        logger.info(f"Deployment {deployment_id} ({kind}) started for {target_prefix}")
        return deployment_id

    def _commit(self, deployment_id: str, file_count: int) -> None:
        """
        Mark the intent committed. The objects are already in place, so a
        failing status write is retried and then logged, never raised. Recovery
        resolves the pending row once it goes stale.
        """
        for attempt in range(1, COMMIT_ATTEMPTS + 1):
            try:
                self._set_status(deployment_id, "committed", file_count=file_count)
            except Exception as e:
                logger.warning(f"Commit of deployment {deployment_id} failed (attempt {attempt}): {e}")
                continue
            logger.info(f"Deployment {deployment_id} committed ({file_count} files)")
            return
        logger.error(f"Deployment {deployment_id} completed but could not be marked committed")

    def _fail(self, deployment_id: str, error: Exception) -> None:
        logger.error(f"Deployment {deployment_id} failed: {error}")
        try:
            self._set_status(deployment_id, "failed", error_message=str(error)[:1000])
        except Exception as e:
            # the pending row goes stale and is recovered on next access
            logger.error(f"Could not mark deployment {deployment_id} as failed: {e}")

    def _extract(self, data: bytes) -> List[ArchiveEntry]:
        try:
            return extract_archive(
                data,
                max_entries=settings.max_archive_entries,
                max_bytes=settings.max_archive_bytes,
            )
        except ArchiveError as e:
            raise HTTPException(status_code=400, detail=str(e))

    def _record_site_url(self, caller: Caller, website_url: str) -> None:
        try:
            self.profiles.table("users")\
                .update({"site_url": website_url})\
                .eq("id", caller.user_id)\
                .execute()
        except Exception as e:
            logger.warning(f"Could not store site_url for user {caller.user_id}: {e}")

    # Deployments

    def deploy_archive_to_site(self, caller: Caller, filename: Optional[str], data: bytes) -> SiteArchiveResponse:
        """Replace the caller's site with the contents of an uploaded ZIP"""
        _check_zip_name(filename)
        entries = self._extract(data)
        prefix = site_prefix(caller.identity)

        deployment_id = self._begin(
            prefix, "site_archive", caller, source=filename,
            expected_files=len({entry.path for entry in entries}),
        )
        try:
            clear_prefix(self.storage, prefix)
            self._mark_writing(deployment_id)
            written = write_entries(self.storage, prefix, entries)
        except Exception as e:
            self._fail(deployment_id, e)
            raise HTTPException(status_code=500, detail="Failed to process ZIP file for S3 upload")
        self._commit(deployment_id, written.file_count)

        website_url = get_website_url(caller.identity)
        self._record_site_url(caller, website_url)
        return SiteArchiveResponse(
            message="Website ZIP uploaded to S3 successfully",
            deployment_id=deployment_id,
            s3_url=get_s3_url(f"{prefix}index.html"),
            website_url=website_url,
            files_uploaded=written.file_count,
            total_size=written.total_size,
        )

    def deploy_archive_to_template(
        self, template_id: str, caller: Caller, filename: Optional[str], data: bytes
    ) -> TemplateArchiveResponse:
        """Write an uploaded ZIP into a template's prefix and refresh its metadata"""
        _check_zip_name(filename)
        self.template_service.get_template_row(template_id)
        entries = self._extract(data)
        prefix = template_prefix(template_id)

        deployment_id = self._begin(
            prefix, "template_archive", caller, template_id=template_id, source=filename,
            expected_files=len({entry.path for entry in entries}),
        )
        try:
            self._mark_writing(deployment_id)
            written = write_entries(self.storage, prefix, entries)
            self.metadata.recompute(template_id)
        except Exception as e:
            self._fail(deployment_id, e)
            raise HTTPException(status_code=500, detail="Failed to upload template")
        self._commit(deployment_id, written.file_count)

        return TemplateArchiveResponse(
            message="Template uploaded successfully",
            deployment_id=deployment_id,
            template_id=template_id,
            template_url=get_template_preview_url(template_id),
            file_count=written.file_count,
            total_size=written.total_size,
        )

    def deploy_template_to_site(self, caller: Caller, request: DeployTemplateRequest) -> DeployTemplateResponse:
        """Copy a visible template into the caller's site prefix"""
        template = self.template_service.get_visible_template(request.template_id, caller.identity)
        source = template_prefix(request.template_id)
        destination = site_prefix(caller.identity)

        try:
            self.recover_prefix(destination)
            has_existing = self.storage.has_objects(destination)
            if has_existing and not request.replace_existing:
                raise HTTPException(
                    status_code=409,
                    detail={
                        "error": "You already have a website. Set replace_existing to true to replace it.",
                        "has_existing_website": True,
                    },
                )
            files = list_source_files(self.storage, source)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Template deployment pre-check failed: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to deploy template")
        if not files:
            raise HTTPException(status_code=400, detail="Template has no files to deploy")

        deployment_id = self._begin(
            destination, "site_from_template", caller, template_id=request.template_id, source=source,
            expected_files=len(files),
        )
        logger.info(f"Copying {len(files)} files from template {request.template_id} to {destination}")
        try:
            if has_existing:
                clear_prefix(self.storage, destination)
            self._mark_writing(deployment_id)
            copied = copy_files(self.storage, files, source, destination)
        except Exception as e:
            self._fail(deployment_id, e)
            raise HTTPException(status_code=500, detail="Failed to deploy template")
        self._commit(deployment_id, copied.file_count)

        website_url = get_website_url(caller.identity)
        self._record_site_url(caller, website_url)
        return DeployTemplateResponse(
            message="Template deployed successfully to your website",
            deployment_id=deployment_id,
            template_id=request.template_id,
            template_name=template["name"],
            files_deployed=copied.file_count,
            website_url=get_s3_url(f"{destination}index.html"),
            cloudfront_url=get_cloudfront_url(f"{destination}index.html"),
            preview_url=get_preview_path(caller.identity),
        )

    # Queries

    def list_deployments(self, caller: Caller, limit: int = 20) -> List[DeploymentResponse]:
        try:
            result = self.supabase.table(TABLE)\
                .select("*")\
                .eq("requested_by", caller.identity)\
                .order("created_at", desc=True)\
                .limit(max(min(limit, 100), 1))\
                .execute()
        except Exception as e:
            logger.error(f"Error listing deployments: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to list deployments")
        return [DeploymentResponse(**row) for row in result.data or []]

    def get_deployment(self, deployment_id: str, caller: Caller) -> DeploymentResponse:
        try:
            result = self.supabase.table(TABLE)\
                .select("*")\
                .eq("id", deployment_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            logger.error(f"Error getting deployment: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to fetch deployment")
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Deployment not found")
        row = result.data
        if row["requested_by"] != caller.identity and not has_resource_access("user-management", caller.role):
            raise HTTPException(status_code=404, detail="Deployment not found")
        return DeploymentResponse(**row)
