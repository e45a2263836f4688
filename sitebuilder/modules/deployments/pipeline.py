"""
Storage steps of a deployment: write extracted entries, clear a prefix,
copy one prefix onto another. Each step runs sequentially and stops at the
first failing call; nothing already applied is undone here.
"""
from dataclasses import dataclass, field
from typing import Iterable, List
import logging

from sitebuilder.modules.deployments.archive import ArchiveEntry
from sitebuilder.storage.content_types import content_type_for_path
from sitebuilder.storage.s3_storage import (
    MAX_KEYS_PER_REQUEST, S3Storage, StorageObject, is_directory_marker
)

logger = logging.getLogger(__name__)


@dataclass
class WriteResult:
    file_count: int = 0
    total_size: int = 0
    keys: List[str] = field(default_factory=list)


@dataclass
class ClearResult:
    deleted: int = 0  # every key removed, folder markers included
    file_count: int = 0
    total_size: int = 0


@dataclass
class CopyResult:
    file_count: int = 0
    total_size: int = 0


def write_entries(storage: S3Storage, prefix: str, entries: Iterable[ArchiveEntry]) -> WriteResult:
    result = WriteResult()
    for entry in entries:
        key = f"{prefix}{entry.path}"
        storage.upload_file(entry.content, key, content_type_for_path(entry.path))
        result.file_count += 1
        result.total_size += len(entry.content)
        result.keys.append(key)
    logger.info(f"Wrote {result.file_count} objects ({result.total_size} bytes) under {prefix}")
    return result


def clear_prefix(storage: S3Storage, prefix: str) -> ClearResult:
    """Delete every object under prefix in batches of at most 1000 keys."""
    result = ClearResult()
    batch: List[str] = []
    for obj in storage.iter_objects(prefix):
        batch.append(obj.key)
        if not is_directory_marker(obj.key):
            result.file_count += 1
            result.total_size += obj.size
        if len(batch) == MAX_KEYS_PER_REQUEST:
            result.deleted += storage.delete_files(batch)
            batch = []
    if batch:
        result.deleted += storage.delete_files(batch)
    if result.deleted:
        logger.info(f"Deleted {result.deleted} objects under {prefix}")
    return result


def list_source_files(storage: S3Storage, prefix: str) -> List[StorageObject]:
    """Snapshot of the copyable files under prefix (folder markers excluded)."""
    files = []
    for obj in storage.iter_objects(prefix):
        relative = obj.key[len(prefix):]
        if not relative or is_directory_marker(relative):
            continue
        files.append(obj)
    return files


def copy_files(
    storage: S3Storage,
    files: Iterable[StorageObject],
    source_prefix: str,
    destination_prefix: str,
) -> CopyResult:
    result = CopyResult()
    for obj in files:
        relative = obj.key[len(source_prefix):]
        storage.copy_file(obj.key, f"{destination_prefix}{relative}")
        result.file_count += 1
        result.total_size += obj.size
    logger.info(f"Copied {result.file_count} objects from {source_prefix} to {destination_prefix}")
    return result


def copy_prefix(storage: S3Storage, source_prefix: str, destination_prefix: str) -> CopyResult:
    return copy_files(
        storage,
        list_source_files(storage, source_prefix),
        source_prefix,
        destination_prefix,
    )
