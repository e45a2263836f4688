import boto3
from botocore.exceptions import ClientError
from sitebuilder.config import settings
from typing import Any, Dict, Iterator, List, Optional
from dataclasses import dataclass
from datetime import datetime
import logging

logger = logging.getLogger(__name__)

# S3 caps both listing pages and DeleteObjects batches at 1000 keys
MAX_KEYS_PER_REQUEST = 1000


class StorageError(Exception):
    """Raised when the object store reports a failure the caller must surface."""


@dataclass
class StorageObject:
    key: str
    size: int = 0
    last_modified: Optional[datetime] = None


@dataclass
class DirectoryListing:
    prefixes: List[str]
    objects: List[StorageObject]


class S3Storage:
    def __init__(self, client: Any = None, bucket_name: Optional[str] = None):
        self.bucket_name = bucket_name or settings.s3_bucket_name
        if client is not None:
            self.s3_client = client
            return
        if not all([settings.aws_access_key_id, settings.aws_secret_access_key, self.bucket_name]):
            raise ValueError("AWS S3 credentials and bucket name must be configured")

        self.s3_client = boto3.client(
            's3',
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region
        )

    def iter_objects(self, prefix: str, page_size: int = MAX_KEYS_PER_REQUEST) -> Iterator[StorageObject]:
        """
        Lazily yield every object under prefix, following continuation tokens.
        Callers may stop early; no further pages are requested once the
        generator is closed.
        """
        params: Dict[str, Any] = {
            "Bucket": self.bucket_name,
            "Prefix": prefix,
            "MaxKeys": page_size,
        }
        while True:
            response = self.s3_client.list_objects_v2(**params)
            for item in response.get("Contents") or []:
                yield StorageObject(
                    key=item["Key"],
                    size=item.get("Size", 0),
                    last_modified=item.get("LastModified"),
                )
            token = response.get("NextContinuationToken")
            if not response.get("IsTruncated") or not token:
                return
            params["ContinuationToken"] = token

    def has_objects(self, prefix: str) -> bool:
        response = self.s3_client.list_objects_v2(
            Bucket=self.bucket_name, Prefix=prefix, MaxKeys=1
        )
        return bool(response.get("Contents"))

    def list_directory(self, prefix: str) -> DirectoryListing:
        """One level of a prefix, S3 'folders' reported as common prefixes."""
        prefixes: List[str] = []
        objects: List[StorageObject] = []
        params: Dict[str, Any] = {
            "Bucket": self.bucket_name,
            "Prefix": prefix,
            "Delimiter": "/",
        }
        while True:
            response = self.s3_client.list_objects_v2(**params)
            prefixes.extend(p["Prefix"] for p in response.get("CommonPrefixes") or [])
            for item in response.get("Contents") or []:
                objects.append(StorageObject(
                    key=item["Key"],
                    size=item.get("Size", 0),
                    last_modified=item.get("LastModified"),
                ))
            token = response.get("NextContinuationToken")
            if not response.get("IsTruncated") or not token:
                return DirectoryListing(prefixes=prefixes, objects=objects)
            params["ContinuationToken"] = token

    def upload_file(self, file_content: bytes, key: str, content_type: str = "application/octet-stream") -> str:
        """Upload bytes to S3 and return the s3:// URI"""
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=file_content,
                ContentType=content_type
            )
            return f"s3://{self.bucket_name}/{key}"
        except ClientError as e:
            logger.error(f"Failed to upload {key} to S3: {str(e)}")
            raise

    def get_file(self, key: str) -> Optional[bytes]:
        """Return object bytes, or None when the key does not exist"""
        try:
            response = self.s3_client.get_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                return None
            logger.error(f"Failed to read {key} from S3: {str(e)}")
            raise
        return response["Body"].read()

    def head_file(self, key: str) -> Optional[StorageObject]:
        try:
            response = self.s3_client.head_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                return None
            raise
        return StorageObject(
            key=key,
            size=response.get("ContentLength", 0),
            last_modified=response.get("LastModified"),
        )

    def file_exists(self, key: str) -> bool:
        return self.head_file(key) is not None

    def copy_file(self, source_key: str, destination_key: str) -> None:
        """Server-side copy within the bucket"""
        try:
            self.s3_client.copy_object(
                Bucket=self.bucket_name,
                CopySource={"Bucket": self.bucket_name, "Key": source_key},
                Key=destination_key,
            )
        except ClientError as e:
            logger.error(f"Failed to copy {source_key} -> {destination_key}: {str(e)}")
            raise

    def delete_file(self, key: str) -> bool:
        """Delete file from S3"""
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            logger.error(f"Failed to delete file from S3: {str(e)}")
            return False

    def delete_files(self, keys: List[str]) -> int:
        """Delete up to MAX_KEYS_PER_REQUEST keys in one request. Returns the count deleted."""
        if not keys:
            return 0
        if len(keys) > MAX_KEYS_PER_REQUEST:
            raise ValueError(f"At most {MAX_KEYS_PER_REQUEST} keys per delete batch")
        response = self.s3_client.delete_objects(
            Bucket=self.bucket_name,
            Delete={"Objects": [{"Key": k} for k in keys], "Quiet": True},
        )
        errors = response.get("Errors") or []
        if errors:
            failed = ", ".join(e.get("Key", "?") for e in errors[:5])
            raise StorageError(f"Failed to delete {len(errors)} object(s): {failed}")
        return len(keys)


def _is_not_found(error: ClientError) -> bool:
    code = str(error.response.get("Error", {}).get("Code", ""))
    return code in ("404", "NoSuchKey", "NotFound")


_storage: Optional[S3Storage] = None


def get_storage() -> S3Storage:
    global _storage
    if _storage is None:
        _storage = S3Storage()
    return _storage


def is_directory_marker(key: str) -> bool:
    """Zero-byte 'folder' objects created by the file manager end with a slash."""
    return key.endswith("/")
