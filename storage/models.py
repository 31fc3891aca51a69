"""
Payload, location descriptor and stats models shared by the storage backends.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import Annotated


@dataclass
class UploadedFile:
    """Raw file payload extracted by an upload handler."""

    content: bytes
    content_type: str
    filename: str
    size: int = field(default=-1)

    def __post_init__(self):
        if self.size < 0:
            self.size = len(self.content)

    @property
    def extension(self) -> str:
        """Extension of the original filename, including the dot."""
        name = self.filename.rsplit("/", 1)[-1]
        if "." not in name.lstrip("."):
            return ""
        return "." + name.rsplit(".", 1)[-1]


class _Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    file_name: str
    original_name: Optional[str] = None

    def as_file(self) -> Dict[str, Any]:
        """Serialise as a primary-media descriptor."""
        data = {"fileUrl": self.url, "fileName": self.file_name}
        if self.original_name is not None:
            data["originalName"] = self.original_name
        return data

    def as_thumbnail(self) -> Dict[str, Any]:
        """Serialise as a thumbnail descriptor."""
        return {"thumbnailUrl": self.url, "fileName": self.file_name}


class LocalLocation(_Location):
    """File stored on the local filesystem. Addressed by its URL only."""

    backend: Literal["local"] = "local"


class CloudLocation(_Location):
    """Object stored in the object store. The key is the only handle for later operations."""

    backend: Literal["cloud"] = "cloud"
    key: str

    def as_file(self) -> Dict[str, Any]:
        data = super().as_file()
        data["key"] = self.key
        return data

    def as_thumbnail(self) -> Dict[str, Any]:
        data = super().as_thumbnail()
        data["key"] = self.key
        return data


StoredLocation = Annotated[Union[LocalLocation, CloudLocation], Field(discriminator="backend")]


class LocalFileStats(BaseModel):
    size: int
    created_at: datetime
    modified_at: datetime


class ObjectStats(BaseModel):
    size: int
    last_modified: Optional[datetime] = None
    content_type: Optional[str] = None


class StorageStats(BaseModel):
    total_size: int = 0
    file_count: int = 0
