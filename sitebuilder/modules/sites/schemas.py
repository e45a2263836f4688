from pydantic import BaseModel
from typing import Optional


class SiteResponse(BaseModel):
    owner: str
    prefix: str
    has_content: bool
    has_index_html: bool
    website_url: str
    s3_url: str
    cloudfront_url: Optional[str] = None
    preview_url: str
