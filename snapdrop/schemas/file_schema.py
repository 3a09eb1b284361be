from pydantic import BaseModel


class FileDownload(BaseModel):
    """Result of the atomic download claim."""

    file_id: str
    paste_id: int
    storage_path: str
    filename: str
    mime_type: str
    should_delete: bool


class PasteFileCreate(BaseModel):
    file_id: str
    paste_id: int
    filename: str
    mime_type: str
    size_bytes: int
    storage_path: str


class IncomingFile(BaseModel):
    filename: str
    mime_type: str
    data: bytes
