from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Literal
from datetime import datetime

DeploymentKind = Literal["site_archive", "template_archive", "site_from_template"]
DeploymentStatus = Literal["pending", "committed", "failed", "rolled_back"]


class DeploymentResponse(BaseModel):
    id: str
    target_prefix: str
    kind: DeploymentKind
    template_id: Optional[str] = None
    source: Optional[str] = None
    requested_by: str
    status: DeploymentStatus
    phase: Optional[str] = None
    expected_files: Optional[int] = None
    file_count: Optional[int] = None
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DeployTemplateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    template_id: str = Field(min_length=1)
    replace_existing: bool = False


class DeployTemplateResponse(BaseModel):
    message: str
    deployment_id: str
    template_id: str
    template_name: str
    files_deployed: int
    website_url: str
    cloudfront_url: Optional[str] = None
    preview_url: str


class SiteArchiveResponse(BaseModel):
    message: str
    deployment_id: str
    s3_url: str
    website_url: str
    files_uploaded: int
    total_size: int


class TemplateArchiveResponse(BaseModel):
    message: str
    deployment_id: str
    template_id: str
    template_url: str
    file_count: int
    total_size: int
