"""
Booking models and schemas
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Union

# Form-defined values: plain strings, or lists of strings for multi-select fields
FieldValue = Union[str, List[str]]
Submission = Dict[str, FieldValue]


class FileMetadata(BaseModel):
    """What is persisted about an uploaded file; never the bytes"""
    originalname: str
    mimetype: str
    size: int = Field(..., ge=0)


class Attachment(BaseModel):
    """Raw upload held in memory for the lifetime of one request"""
    filename: str
    content_type: str
    content: bytes

    @property
    def metadata(self) -> FileMetadata:
        return FileMetadata(
            originalname=self.filename,
            mimetype=self.content_type,
            size=len(self.content),
        )


class SubmitBookingResponse(BaseModel):
    message: str
    id: str


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    store: str
    store_ready: bool
