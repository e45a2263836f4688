from pydantic import BaseModel, ConfigDict, Field, StrictBool
from typing import Annotated, Any, Dict, List, Literal, Optional
from datetime import datetime

WIDGET_CONTACT_US = "contact-us"
WIDGET_IMAGE_GALLERY = "image-gallery"
WIDGET_SHOP_STATUS = "shop-status"

MESSAGE_LIST_LIMIT = 100
GALLERY_BACKGROUND = "rgba(245, 247, 250, 1)"

Opacity = Annotated[float, Field(ge=0, le=1)]


class ContactField(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    type: Literal["text", "email", "textarea", "tel"]
    label: str
    placeholder: str = ""
    required: bool = False
    order: int


def default_contact_fields() -> List[ContactField]:
    return [
        ContactField(id="name", name="name", type="text", label="Your Name",
                     placeholder="Enter your name", required=True, order=1),
        ContactField(id="email", name="email", type="email", label="Your Email",
                     placeholder="Enter your email", required=True, order=2),
        ContactField(id="message", name="message", type="textarea", label="Your Message",
                     placeholder="Enter your message", required=True, order=3),
    ]


class ContactWidgetSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = "Contact Us"
    subtitle: str = "Get in touch with us"
    fields: List[ContactField] = Field(default_factory=default_contact_fields)
    background_color: str = "#ffffff"
    background_opacity: Opacity = 1
    text_color: str = "#333333"
    text_opacity: Opacity = 1
    button_color: str = "#3b82f6"
    button_opacity: Opacity = 1
    button_text_color: str = "#ffffff"
    button_text_opacity: Opacity = 1
    placeholder_color: str = "#9ca3af"
    placeholder_opacity: Opacity = 1
    placeholder_bg_color: str = "#ffffff"
    placeholder_bg_opacity: Opacity = 1
    template: str = "modern-card"
    title_font_size: int = Field(default=24, ge=16, le=48)


class GalleryItem(BaseModel):
    url: str = Field(min_length=1)
    caption: Optional[str] = None
    link: Optional[str] = None


class GallerySettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    view: str = Field(default="slideshow", min_length=1)
    items: List[GalleryItem] = Field(default_factory=list)
    background_color: str = GALLERY_BACKGROUND


class ShopStatus(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: Literal["ON", "OFF"] = "OFF"


class ContactSubmission(BaseModel):
    form_data: Dict[str, Any] = Field(min_length=1)


class SubmissionResponse(BaseModel):
    success: bool = True
    message_id: str


class ContactMessageResponse(BaseModel):
    id: str
    owner: str
    form_data: Dict[str, Any]
    submitted_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    is_read: bool = False

    class Config:
        from_attributes = True


class MarkReadRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    is_read: StrictBool
