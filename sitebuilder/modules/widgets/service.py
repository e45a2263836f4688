from supabase import Client
from fastapi import HTTPException
from pydantic import BaseModel
from sitebuilder.modules.widgets.schemas import (
    ContactMessageResponse, ContactSubmission, SubmissionResponse, MESSAGE_LIST_LIMIT
)
from typing import List, Optional, Type, TypeVar
from datetime import datetime, timezone
import uuid
import logging

logger = logging.getLogger(__name__)

SETTINGS_TABLE = "widget_settings"
MESSAGES_TABLE = "contact_messages"

SettingsModel = TypeVar("SettingsModel", bound=BaseModel)


class WidgetService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    # Settings

    def get_settings(self, owner: str, widget: str, model: Type[SettingsModel]) -> SettingsModel:
        """Stored settings of a widget, or the model defaults when the owner never saved any"""
        try:
            result = self.supabase.table(SETTINGS_TABLE)\
                .select("settings")\
                .eq("owner", owner)\
                .eq("widget", widget)\
                .maybe_single()\
                .execute()
        except Exception as e:
            logger.error(f"Error loading {widget} settings for {owner}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to fetch settings")
        if not result or not result.data:
            return model()
        return model.model_validate(result.data["settings"])

    def save_settings(self, owner: str, widget: str, settings: SettingsModel) -> SettingsModel:
        row = {
            "settings": settings.model_dump(mode="json"),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            updated = self.supabase.table(SETTINGS_TABLE)\
                .update(row)\
                .eq("owner", owner)\
                .eq("widget", widget)\
                .execute()
            if not updated.data:
                self.supabase.table(SETTINGS_TABLE).insert({"owner": owner, "widget": widget, **row}).execute()
        except Exception as e:
            logger.error(f"Error saving {widget} settings for {owner}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to update settings")
        logger.info(f"Saved {widget} settings for {owner}")
        return settings

    # Contact messages

    def submit_message(
        self,
        owner: str,
        submission: ContactSubmission,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SubmissionResponse:
        message_id = str(uuid.uuid4())
        try:
            self.supabase.table(MESSAGES_TABLE).insert({
                "id": message_id,
                "owner": owner,
                "form_data": submission.form_data,
                "submitted_at": datetime.now(timezone.utc).isoformat(),
                "ip_address": ip_address,
                "user_agent": user_agent,
                "is_read": False,
            }).execute()
        except Exception as e:
            logger.error(f"Error storing contact message for {owner}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to submit form")
        return SubmissionResponse(message_id=message_id)

    def list_messages(self, owner: str) -> List[ContactMessageResponse]:
        """Newest messages first, at most MESSAGE_LIST_LIMIT"""
        try:
            result = self.supabase.table(MESSAGES_TABLE)\
                .select("*")\
                .eq("owner", owner)\
                .order("submitted_at", desc=True)\
                .limit(MESSAGE_LIST_LIMIT)\
                .execute()
        except Exception as e:
            logger.error(f"Error listing contact messages for {owner}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to fetch messages")
        return [ContactMessageResponse(**row) for row in result.data or []]

    def mark_read(self, owner: str, message_id: str, is_read: bool) -> ContactMessageResponse:
        try:
            result = self.supabase.table(MESSAGES_TABLE)\
                .update({"is_read": is_read})\
                .eq("id", message_id)\
                .eq("owner", owner)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating contact message {message_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to update message")
        if not result.data:
            raise HTTPException(status_code=404, detail="Message not found")
        return ContactMessageResponse(**result.data[0])

    def delete_message(self, owner: str, message_id: str) -> None:
        try:
            result = self.supabase.table(MESSAGES_TABLE)\
                .delete()\
                .eq("id", message_id)\
                .eq("owner", owner)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting contact message {message_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to delete message")
        if not result.data:
            raise HTTPException(status_code=404, detail="Message not found")
        logger.info(f"Deleted contact message {message_id} of {owner}")
