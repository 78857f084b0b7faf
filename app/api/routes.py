"""FastAPI routes for the domain registry.

Multipart uploads are decoded here and handed to the DomainRecordManager.
Failures are answered with ``{"status": "failed", ...}``; the HTTP status
stays 200 unless STRICT_STATUS_CODES is enabled.
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse, JSONResponse

from app.core.config import settings
from app.core.logging import get_logger
from app.domain.domain import IncomingFile, OperationResult
from app.infrastructure.file_store import FileStore, UploadConfig
from app.infrastructure.mongo import get_domains_collection
from app.services.domains import DomainRecordManager

logger = get_logger(__name__)
router = APIRouter(prefix=settings.api_prefix, tags=["domains"])

# Record manager (lazy initialization)
_manager: Optional[DomainRecordManager] = None


def get_domain_manager() -> DomainRecordManager:
    """Build the shared record manager on first use."""
    global _manager
    if _manager is None:
        files = FileStore(settings.storage_root, UploadConfig.from_settings(settings))
        files.ensure_upload_dir()
        _manager = DomainRecordManager(get_domains_collection(), files)
        logger.info(f"Domain manager initialized, uploads in {files.upload_path}")
    return _manager


def _incoming(upload: Optional[UploadFile]) -> Optional[IncomingFile]:
    """Convert an UploadFile; a form part without a file name counts as absent."""
    if upload is None or not upload.filename:
        return None
    return IncomingFile(
        filename=upload.filename,
        content_type=upload.content_type,
        stream=upload.file,
    )


def _respond(result: OperationResult) -> JSONResponse:
    status_code = result.status_code if settings.strict_status_codes and not result.ok else 200
    return JSONResponse(status_code=status_code, content=result.to_payload())


def _file_response(result: OperationResult, inline: bool):
    """Stream a resolved file; read errors surface in the request middleware."""
    if not result.ok:
        return _respond(result)
    stored = result.file
    return FileResponse(
        stored.path,
        media_type=stored.media_type,
        filename=stored.filename,
        content_disposition_type="inline" if inline else "attachment",
    )


# -----------------
# DOMAIN ENDPOINTS
# -----------------

@router.post("/createDomain")
def create_domain(
    title: Optional[str] = Form(None),
    url: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    image: Optional[UploadFile] = File(None),
    manager: DomainRecordManager = Depends(get_domain_manager),
):
    """Register a domain from multipart form data.

    Example:
        curl -X POST http://localhost:5000/domain/createDomain \\
          -F "title=Acme" -F "url=https://acme.example.com" \\
          -F "description=Acme supplier mapping" \\
          -F "file=@mapper.xlsx" -F "image=@logo.png"
    """
    result = manager.create(title, url, description, _incoming(file), _incoming(image))
    return _respond(result)


@router.get("/getDomain/{domain_id}")
def get_domain(domain_id: str, manager: DomainRecordManager = Depends(get_domain_manager)):
    """Return one domain by id."""
    return _respond(manager.get(domain_id))


@router.get("/getAllDomains")
def get_all_domains(manager: DomainRecordManager = Depends(get_domain_manager)):
    """Return every registered domain."""
    return _respond(manager.list_domains())


@router.put("/updateDomain")
def update_domain(
    id: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    url: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    image: Optional[UploadFile] = File(None),
    manager: DomainRecordManager = Depends(get_domain_manager),
):
    """Partially update a domain; omitted fields and files keep their values."""
    result = manager.update(
        id,
        title=title,
        url=url,
        description=description,
        mapper_file=_incoming(file),
        image_file=_incoming(image),
    )
    return _respond(result)


@router.delete("/deleteDomain/{domain_id}")
def delete_domain(domain_id: str, manager: DomainRecordManager = Depends(get_domain_manager)):
    """Delete a domain together with its mapper file and image."""
    return _respond(manager.delete(domain_id))


# -----------------
# FILE ENDPOINTS
# -----------------

@router.get("/downloadMapper/{domain_id}")
def download_mapper(domain_id: str, manager: DomainRecordManager = Depends(get_domain_manager)):
    """Download the mapper spreadsheet as an attachment."""
    return _file_response(manager.mapper_download(domain_id), inline=False)


@router.get("/renderImage/{domain_id}")
def render_image(domain_id: str, manager: DomainRecordManager = Depends(get_domain_manager)):
    """Serve the domain image inline."""
    return _file_response(manager.image_render(domain_id), inline=True)
