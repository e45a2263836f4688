"""
File manager over one storage prefix (a user's site or a template).

Paths are relative to the scope's prefix. Folders exist either implicitly,
as common prefixes of stored files, or as zero-byte "name/" marker objects.
When a MetadataRecorder is attached (template scope) every mutation is
reported to it.
"""
from fastapi import HTTPException
from typing import Optional, Tuple
import posixpath
import logging

from sitebuilder.modules.deployments.pipeline import clear_prefix
from sitebuilder.modules.files.schemas import (
    FileEntry, FileListResponse, FileContentResponse, FileOperationResponse
)
from sitebuilder.modules.templates.metadata import MetadataRecorder
from sitebuilder.storage.content_types import content_type_for_path
from sitebuilder.storage.s3_storage import S3Storage, is_directory_marker

logger = logging.getLogger(__name__)

FOLDER_CONTENT_TYPE = "application/x-directory"


def normalize_path(path: Optional[str]) -> str:
    """Collapse slashes and '.' segments; reject any attempt to climb out of the scope."""
    parts = [p for p in (path or "").replace("\\", "/").split("/") if p and p != "."]
    if ".." in parts:
        raise HTTPException(status_code=400, detail="Invalid path")
    return "/".join(parts)


def check_name(name: str) -> str:
    name = (name or "").strip()
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise HTTPException(status_code=400, detail="Invalid file name")
    return name


def join_path(directory: str, name: str) -> str:
    return f"{directory}/{name}" if directory else name


def _file_type(name: str) -> str:
    _, ext = posixpath.splitext(name)
    return ext[1:].lower() if ext else "file"


class FileManagerService:
    def __init__(
        self,
        storage: S3Storage,
        prefix: str,
        recorder: Optional[MetadataRecorder] = None,
        template_id: Optional[str] = None,
    ):
        self.storage = storage
        self.prefix = prefix
        self.recorder = recorder
        self.template_id = template_id

    def _key(self, path: str) -> str:
        return f"{self.prefix}{path}"

    def _file_path(self, path: str) -> str:
        path = normalize_path(path)
        if not path:
            raise HTTPException(status_code=400, detail="File path is required")
        return path

    def _recorded(self, method: str, *args) -> None:
        if self.recorder is not None and self.template_id:
            getattr(self.recorder, method)(self.template_id, *args)

    def list_files(self, path: str = "") -> FileListResponse:
        """One directory level, folders first, then files, each sorted by name."""
        directory = normalize_path(path)
        full_prefix = self._key(f"{directory}/" if directory else "")
        try:
            listing = self.storage.list_directory(full_prefix)
        except Exception as e:
            logger.error(f"Error listing {full_prefix}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to fetch files")

        folders = []
        for common_prefix in listing.prefixes:
            name = common_prefix[len(full_prefix):].rstrip("/")
            if name:
                folders.append(FileEntry(
                    name=name,
                    type="folder",
                    is_directory=True,
                    path=join_path(directory, name),
                ))
        files = []
        for obj in listing.objects:
            name = obj.key[len(full_prefix):]
            if not name or is_directory_marker(name):
                continue
            files.append(FileEntry(
                name=name,
                type=_file_type(name),
                size=obj.size,
                last_modified=obj.last_modified,
                path=join_path(directory, name),
            ))
        folders.sort(key=lambda f: f.name)
        files.sort(key=lambda f: f.name)
        return FileListResponse(path=directory, files=folders + files)

    def _read(self, path: str) -> Tuple[str, bytes]:
        path = self._file_path(path)
        try:
            content = self.storage.get_file(self._key(path))
        except Exception as e:
            logger.error(f"Error reading {self._key(path)}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to fetch file content")
        if content is None:
            raise HTTPException(status_code=404, detail="File not found")
        return path, content

    def read_text(self, path: str) -> FileContentResponse:
        path, content = self._read(path)
        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError:
            raise HTTPException(status_code=400, detail="File is not a text file")
        return FileContentResponse(
            path=path,
            content=text,
            content_type=content_type_for_path(path),
            size=len(content),
        )

    def download(self, path: str) -> Tuple[bytes, str, str]:
        """Raw bytes, content type and file name"""
        path, content = self._read(path)
        return content, content_type_for_path(path), posixpath.basename(path)

    def _write(self, path: str, content: bytes, previous_size: Optional[int]) -> None:
        self.storage.upload_file(content, self._key(path), content_type_for_path(path))
        self._recorded("record_write", len(content), previous_size)

    def create_file(self, directory: str, name: str, content: str = "") -> FileOperationResponse:
        path = join_path(normalize_path(directory), check_name(name))
        data = content.encode("utf-8")
        try:
            if self.storage.file_exists(self._key(path)):
                raise HTTPException(status_code=409, detail="File already exists")
            self._write(path, data, None)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating file {self._key(path)}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to create file")
        return FileOperationResponse(message="File created successfully", path=path, size=len(data))

    def create_folder(self, directory: str, name: str) -> FileOperationResponse:
        path = join_path(normalize_path(directory), check_name(name))
        marker = self._key(f"{path}/")
        try:
            if self.storage.has_objects(marker):
                raise HTTPException(status_code=409, detail="Folder already exists")
            self.storage.upload_file(b"", marker, FOLDER_CONTENT_TYPE)
            self._recorded("touch")
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating folder {marker}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to create folder")
        return FileOperationResponse(message="Folder created successfully", path=path)

    def upload(self, directory: str, filename: Optional[str], content: bytes) -> FileOperationResponse:
        """Store an uploaded file, replacing any file of the same name"""
        path = join_path(normalize_path(directory), check_name(posixpath.basename(filename or "")))
        try:
            previous = self.storage.head_file(self._key(path))
            self._write(path, content, previous.size if previous else None)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error uploading {self._key(path)}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to upload file")
        return FileOperationResponse(message="File uploaded successfully", path=path, size=len(content))

    def update_file(self, path: str, content: str) -> FileOperationResponse:
        path = self._file_path(path)
        data = content.encode("utf-8")
        try:
            previous = self.storage.head_file(self._key(path))
            if previous is None:
                raise HTTPException(status_code=404, detail="File not found")
            self._write(path, data, previous.size)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating {self._key(path)}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to update file")
        return FileOperationResponse(message="File updated successfully", path=path, size=len(data))

    def rename(self, path: str, new_name: str) -> FileOperationResponse:
        """Rename a file within its folder (copy, then delete the original)"""
        path = self._file_path(path)
        new_path = join_path(posixpath.dirname(path), check_name(new_name))
        if new_path == path:
            raise HTTPException(status_code=400, detail="New name must differ from the current name")
        try:
            if not self.storage.file_exists(self._key(path)):
                raise HTTPException(status_code=404, detail="File not found")
            if self.storage.file_exists(self._key(new_path)):
                raise HTTPException(status_code=409, detail="A file with that name already exists")
            self.storage.copy_file(self._key(path), self._key(new_path))
            if not self.storage.delete_file(self._key(path)):
                raise RuntimeError(f"original {path} was copied but not removed")
            self._recorded("touch")
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error renaming {self._key(path)}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to rename file")
        return FileOperationResponse(message="File renamed successfully", path=new_path)

    def delete(self, path: str, is_directory: bool = False) -> FileOperationResponse:
        """Delete one file, or a folder and everything below it"""
        path = self._file_path(path)
        try:
            if is_directory:
                cleared = clear_prefix(self.storage, self._key(f"{path}/"))
                if not cleared.deleted:
                    raise HTTPException(status_code=404, detail="Folder not found")
                self._recorded("record_delete", cleared.file_count, cleared.total_size)
                return FileOperationResponse(
                    message="Folder deleted successfully", path=path, deleted=cleared.deleted
                )

            existing = self.storage.head_file(self._key(path))
            if existing is None:
                raise HTTPException(status_code=404, detail="File not found")
            if not self.storage.delete_file(self._key(path)):
                raise RuntimeError(f"delete of {path} was rejected")
            self._recorded("record_delete", 1, existing.size)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting {self._key(path)}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to delete")
        return FileOperationResponse(message="File deleted successfully", path=path, deleted=1)
