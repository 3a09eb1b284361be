from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional
from datetime import datetime


class PasteFileRead(BaseModel):
    file_id: str
    filename: str
    mime_type: str
    size_bytes: int

    model_config = ConfigDict(from_attributes=True)


class PasteCreate(BaseModel):
    content: str = ""
    filename: Optional[str] = None
    delete_after_view: bool = False


class PasteCreated(BaseModel):
    key: str
    created_at: datetime
    expires_at: datetime
    delete_after_view: bool
    files: list[PasteFileRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class PasteView(BaseModel):
    key: str
    content: str
    filename: Optional[str] = None
    views: int
    previous_views: int
    created_at: datetime
    expires_at: datetime
    delete_after_view: bool
    # "paste": the record was removed after this view.
    # "files": the record stays; each file is consumed on download.
    deletion_scope: Optional[Literal["paste", "files"]] = None
    files: list[PasteFileRead] = Field(default_factory=list)


class PasteDeleteResponse(BaseModel):
    success: bool = True
    deleted: bool
    message: str


class CleanupResponse(BaseModel):
    success: bool = True
    deletedCount: int
    message: str


class ViewedPaste(BaseModel):
    """Result of the atomic view increment; ``views`` is the post-increment count."""

    paste_id: int
    key: str
    content: str
    filename: Optional[str] = None
    views: int
    created_at: datetime
    expires_at: datetime
    delete_after_view: bool

    @property
    def previous_views(self) -> int:
        return self.views - 1
