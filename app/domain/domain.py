"""Domain models for registered domains and operation results."""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Literal, Optional
from pydantic import BaseModel, Field

from app.core.exceptions import DomainError


class Domain(BaseModel):
    """A registered domain: metadata plus one mapper file and one image.

    Field aliases match the document keys stored in MongoDB and the JSON
    returned to clients.
    """
    id: str = Field(alias="_id")
    title: str
    url: str
    description: str
    file_name: str = Field(alias="fileName")
    mapper_file_url: str = Field(alias="mapperFileUrl")
    image_path: str = Field(alias="imagePath")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "_id": "665f1c2e8b3e4a1d9c0f1234",
                "title": "Acme",
                "url": "https://acme.example.com",
                "description": "Acme supplier mapping",
                "fileName": "Acme_mapper",
                "mapperFileUrl": "uploads/Acme_mapper.xlsx",
                "imagePath": "uploads/acme.png"
            }
        }

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Domain":
        """Build a Domain from a raw MongoDB document."""
        data = dict(document)
        data["_id"] = str(data["_id"])
        return cls.model_validate(data)


@dataclass
class IncomingFile:
    """An uploaded file already decoded by the HTTP layer."""
    filename: str
    content_type: Optional[str]
    stream: BinaryIO


@dataclass
class StoredFile:
    """A stored file resolved on disk and ready to stream back."""
    path: Path
    filename: str
    media_type: str


class OperationResult(BaseModel):
    """Uniform outcome of a record manager operation.

    Failures are carried as data: ``status`` is ``"failed"`` and
    ``message``/``error``/``error_type`` describe what went wrong.
    """
    status: Literal["success", "failed"]
    message: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = Field(default=None, alias="errorType")
    domain: Optional[Domain] = None
    domains: Optional[List[Domain]] = None
    file: Optional[StoredFile] = None
    status_code: int = 200

    class Config:
        populate_by_name = True
        arbitrary_types_allowed = True

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @classmethod
    def success(cls, message: Optional[str] = None, **payload: Any) -> "OperationResult":
        return cls(status="success", message=message, **payload)

    @classmethod
    def failure(cls, exc: DomainError) -> "OperationResult":
        return cls(
            status="failed",
            message=exc.message,
            error=exc.error,
            error_type=exc.error_type,
            status_code=exc.status_code,
        )

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for the HTTP response."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude={"file", "status_code"},
        )
