from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List, Literal
from datetime import datetime

BUSINESS_CATEGORIES = [
    "e-commerce", "restaurant", "portfolio", "business", "blog", "education",
    "healthcare", "real-estate", "travel", "fitness", "technology", "creative",
    "non-profit", "other",
]
TEMPLATE_TYPES = [
    "landing-page", "multi-page", "blog", "e-commerce", "portfolio",
    "corporate", "personal", "other",
]

BusinessCategory = Literal[
    "e-commerce", "restaurant", "portfolio", "business", "blog", "education",
    "healthcare", "real-estate", "travel", "fitness", "technology", "creative",
    "non-profit", "other",
]
TemplateType = Literal[
    "landing-page", "multi-page", "blog", "e-commerce", "portfolio",
    "corporate", "personal", "other",
]

IDENTITY_PATTERN = r"^\d{10}$"


class TemplateCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=500)
    business_category: BusinessCategory
    template_type: TemplateType
    tags: List[str] = Field(default_factory=list)
    preview_image: Optional[str] = None
    is_active: bool = True
    is_public: bool = True
    custom_identity: Optional[str] = Field(default=None, pattern=IDENTITY_PATTERN)

    @model_validator(mode="after")
    def check_scope(self):
        if not self.is_public and not self.custom_identity:
            raise ValueError("Mobile number is required for custom templates")
        return self


class TemplateUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    business_category: Optional[BusinessCategory] = None
    template_type: Optional[TemplateType] = None
    tags: Optional[List[str]] = None
    preview_image: Optional[str] = None
    is_active: Optional[bool] = None
    is_public: Optional[bool] = None
    custom_identity: Optional[str] = Field(default=None, pattern=IDENTITY_PATTERN)

    @model_validator(mode="after")
    def check_scope(self):
        if self.is_public is False and not self.custom_identity:
            raise ValueError("Mobile number is required for custom templates")
        return self


class TemplateResponse(BaseModel):
    id: str
    name: str
    description: str
    business_category: str
    template_type: str
    tags: List[str] = Field(default_factory=list)
    s3_path: str
    preview_image: Optional[str] = None
    is_active: bool = True
    is_public: bool = True
    custom_identity: Optional[str] = None
    created_by: Optional[str] = None
    has_index_html: bool = False
    file_count: int = 0
    total_size: int = 0
    last_modified: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    preview_url: Optional[str] = None

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    current: int
    pages: int
    total: int
    has_next: bool
    has_prev: bool


class TemplateListResponse(BaseModel):
    templates: List[TemplateResponse]
    pagination: Pagination
    categories: Optional[List[str]] = None
    types: Optional[List[str]] = None


class TemplateMetadata(BaseModel):
    template_id: str
    has_index_html: bool
    file_count: int
    total_size: int
    last_modified: datetime
