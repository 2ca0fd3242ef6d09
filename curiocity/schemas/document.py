"""Document schemas."""

from pydantic import Field, field_validator, model_validator
from typing import Optional, List, Dict

from .base import CamelModel
from .resource import ResourceCompressed

DEFAULT_FOLDER = "General"


class Folder(CamelModel):
    """Named list of resources embedded in a Document (not a storage row)."""
    name: str
    resources: List[ResourceCompressed] = []


class PendingDelete(CamelModel):
    """Cascade cursor persisted before a document delete starts."""
    started_at: str
    resource_ids: List[str] = []


class Document(CamelModel):
    """A user-owned document with its folder tree embedded."""
    id: str
    owner_id: str = Field(..., alias="ownerID")
    name: str
    text: str = ""
    folders: Dict[str, Folder] = {}
    date_added: str = ""
    last_opened: str = ""
    tags: List[str] = []
    version: int = 1
    updated_at: Optional[str] = None
    pending_delete: Optional[PendingDelete] = None

    @model_validator(mode="after")
    def sync_folder_names(self) -> "Document":
        """Keep ``folders[k].name == k`` whatever the stored or sent value."""
        for key, folder in self.folders.items():
            if folder.name != key:
                folder.name = key
        return self

    def resource_ids(self) -> List[str]:
        """Ids of every resource in every folder, in folder order."""
        return [
            resource.id
            for folder in self.folders.values()
            for resource in folder.resources
        ]


class DocumentCreate(CamelModel):
    """Schema for creating a document."""
    name: str = Field(..., min_length=1)
    owner_id: str = Field(..., alias="ownerID", min_length=1)
    text: str = ""
    date_added: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"name": "Report A", "ownerID": "u1", "text": ""}
            ]
        }
    }


class DocumentPatch(CamelModel):
    """Whitelisted partial update of a document.

    Only the fields named here can change; anything else in the body
    (including ``resources``) is ignored. ``version``, when sent, must match
    the stored version or the update is rejected with 409.
    """
    id: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    text: Optional[str] = None
    folders: Optional[Dict[str, Folder]] = None
    tags: Optional[List[str]] = None
    date_added: Optional[str] = None
    last_opened: Optional[str] = None
    owner_id: Optional[str] = Field(None, alias="ownerID", min_length=1)
    version: Optional[int] = None

    def changes(self) -> dict:
        """Fields the client actually sent, as storage keys."""
        return self.model_dump(
            by_alias=True, exclude_unset=True, exclude_none=True, exclude={"id", "version"}
        )


class DocumentDelete(CamelModel):
    id: str = Field(..., min_length=1)


class FolderCreate(CamelModel):
    folder_name: str = Field(..., min_length=1)


class FolderRename(CamelModel):
    old_name: str = Field(..., min_length=1)
    new_name: str = Field(..., min_length=1)


class TagCreate(CamelModel):
    tag: str = Field(..., min_length=1)

    @field_validator("tag")
    @classmethod
    def strip_tag(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Tag cannot be blank")
        return v


class MessageResponse(CamelModel):
    msg: str
