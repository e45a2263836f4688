from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for profile writes under RLS

    # AWS S3 (will read from uppercase env vars automatically)
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "ap-south-1"
    s3_bucket_name: str = "dt-web-sites"
    s3_base_url: Optional[str] = None  # defaults to the bucket's virtual-hosted URL
    cloudfront_base_url: Optional[str] = None

    # Deployments
    deployment_stale_after_seconds: int = 900
    max_archive_entries: int = 0  # 0 disables the check
    max_archive_bytes: int = 0  # 0 disables the check

    # App
    app_name: str = "sitebuilder-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def storage_base_url(self) -> str:
        if self.s3_base_url:
            return self.s3_base_url.rstrip("/")
        return f"https://{self.s3_bucket_name}.s3.{self.aws_region}.amazonaws.com"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
