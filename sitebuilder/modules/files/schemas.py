from pydantic import BaseModel, ConfigDict, Field
from typing import Annotated, List, Literal, Optional, Union
from datetime import datetime


class FileEntry(BaseModel):
    name: str
    type: str  # extension, "file" or "folder"
    size: int = 0
    last_modified: Optional[datetime] = None
    is_directory: bool = False
    path: str


class FileListResponse(BaseModel):
    path: str
    files: List[FileEntry]


class FileContentResponse(BaseModel):
    path: str
    content: str
    content_type: str
    size: int


class CreateFileRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["file"]
    path: str = ""
    name: str = Field(min_length=1)
    content: str = ""


class CreateFolderRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["folder"]
    path: str = ""
    name: str = Field(min_length=1)


CreateEntryRequest = Annotated[
    Union[CreateFileRequest, CreateFolderRequest],
    Field(discriminator="kind"),
]


class UpdateFileRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str = Field(min_length=1)
    content: str


class RenameRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str = Field(min_length=1)
    new_name: str = Field(min_length=1)


class DeleteRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str = Field(min_length=1)
    is_directory: bool = False


class FileOperationResponse(BaseModel):
    message: str
    path: str
    size: Optional[int] = None
    deleted: Optional[int] = None
