import zipfile
import io
from typing import Iterable, List, NamedTuple, Optional
import logging

logger = logging.getLogger(__name__)

ENTRY_POINT = "index.html"


class ArchiveError(Exception):
    """Base class for archives rejected before anything is written."""


class InvalidArchiveError(ArchiveError):
    pass


class MissingEntryPointError(ArchiveError):
    pass


class ArchiveTooLargeError(ArchiveError):
    pass


class ArchiveEntry(NamedTuple):
    path: str
    content: bytes


def has_entry_point(names: Iterable[str]) -> bool:
    """True if any entry is index.html at the root or in a subdirectory (case-insensitive)."""
    for name in names:
        lowered = name.lower()
        if lowered == ENTRY_POINT or lowered.endswith("/" + ENTRY_POINT):
            return True
    return False


def common_root(names: Iterable[str]) -> Optional[str]:
    """
    The single top-level folder shared by every name, or None when names
    span several top-level segments or any file sits at the archive root.
    """
    roots = set()
    for name in names:
        head, sep, _ = name.partition("/")
        if not sep:
            return None
        roots.add(head)
        if len(roots) > 1:
            return None
    return roots.pop() if roots else None


def _safe_path(path: str) -> Optional[str]:
    path = path.lstrip("/")
    if any(part == ".." for part in path.split("/")):
        return None
    return path


def extract_archive(data: bytes, max_entries: int = 0, max_bytes: int = 0) -> List[ArchiveEntry]:
    """
    Unpack a ZIP archive in memory into (relative path, bytes) pairs.

    Directory entries are skipped. When every file lives under one shared
    top-level folder that folder is stripped from the paths. Limits are
    only enforced when set to a positive value.
    """
    try:
        zip_ref = zipfile.ZipFile(io.BytesIO(data), 'r')
    except zipfile.BadZipFile:
        raise InvalidArchiveError("The uploaded file is not a valid ZIP archive")

    with zip_ref:
        infos = zip_ref.infolist()
        if not has_entry_point(info.filename for info in infos):
            raise MissingEntryPointError("The ZIP must contain an index.html file")

        files = [info for info in infos if not info.is_dir()]
        if max_entries and len(files) > max_entries:
            raise ArchiveTooLargeError(f"The ZIP contains more than {max_entries} files")
        if max_bytes and sum(info.file_size for info in files) > max_bytes:
            raise ArchiveTooLargeError(f"The ZIP expands to more than {max_bytes} bytes")

        root = common_root(info.filename for info in files)
        entries = []
        for info in files:
            path = info.filename
            if root:
                path = path[len(root) + 1:]
            if not path:
                continue
            safe = _safe_path(path)
            if not safe:
                logger.warning(f"Skipping archive entry with unsafe path: {info.filename}")
                continue
            try:
                content = zip_ref.read(info)
            except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
                raise InvalidArchiveError(f"Could not read {info.filename}: {e}")
            entries.append(ArchiveEntry(safe, content))
        return entries
