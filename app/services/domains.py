"""Domain record manager.

Keeps a domain's MongoDB document and its two stored files (mapper
spreadsheet and image) consistent across create, update and delete, and
resolves stored files for download and inline rendering.

Every public operation returns an OperationResult; failures are reported as
data and never raised to the caller.
"""
from functools import wraps
from pathlib import PurePosixPath
from typing import List, Optional, Tuple

from bson import ObjectId
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from app.core.exceptions import (
    ConflictError,
    DomainError,
    FileMissingError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from app.core.logging import get_logger, LogTimer
from app.domain.domain import Domain, IncomingFile, OperationResult
from app.infrastructure.file_store import FileStore, IMAGE, MAPPER
from app.infrastructure.mongo import parse_object_id
from app.utils.text import clean_field, is_blank, original_basename, safe_name_component, strip_extension

logger = get_logger(__name__)

REQUIRED_FIELDS = ("title", "url", "description")


def operation_boundary(operation: str):
    """Time an operation and convert any failure into a failed result."""
    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs) -> OperationResult:
            with LogTimer(logger, f"domain.{operation}"):
                try:
                    return func(self, *args, **kwargs)
                except DomainError as exc:
                    logger.warning(
                        f"domain.{operation} failed: {exc.message}",
                        extra={"operation": operation, "error_type": exc.error_type, "details": exc.details},
                    )
                    return OperationResult.failure(exc)
                except (PyMongoError, OSError) as exc:
                    logger.error(f"domain.{operation} storage failure: {exc}", exc_info=True)
                    return OperationResult.failure(StorageError("Storage error", error=str(exc)))
                except Exception as exc:
                    logger.error(f"domain.{operation} unexpected failure: {exc}", exc_info=True)
                    return OperationResult.failure(StorageError("Server error", error=str(exc)))
        return wrapper
    return decorator


class DomainRecordManager:
    """Create, read, update and delete domains together with their files."""

    def __init__(self, collection: Collection, files: FileStore):
        self.collection = collection
        self.files = files

    # -----------------
    # HELPERS
    # -----------------

    def _find(self, domain_id) -> Tuple[ObjectId, Domain]:
        oid = parse_object_id(domain_id)
        if oid is None:
            raise NotFoundError(domain_id)
        document = self.collection.find_one({"_id": oid})
        if not document:
            raise NotFoundError(domain_id)
        return oid, Domain.from_document(document)

    def _check_upload(self, kind: str, incoming: Optional[IncomingFile]) -> None:
        if incoming is not None and not self.files.config.accepts(kind, incoming):
            raise ValidationError(
                kind,
                f"Unsupported file type for '{kind}': {incoming.filename}",
            )

    def _mapper_name(self, title: str, incoming: IncomingFile) -> str:
        return f"{safe_name_component(title)}_{original_basename(incoming.filename)}"

    def _image_name(self, title: str, incoming: IncomingFile) -> str:
        name = original_basename(incoming.filename)
        if self.files.config.prefix_image_names:
            return f"{safe_name_component(title)}_{name}"
        return name

    def _original_mapper_name(self, domain: Domain) -> str:
        """Uploaded mapper name, without the title prefix added when it was stored.

        Files stored under an earlier title keep their stored name.
        """
        stored = PurePosixPath(domain.mapper_file_url).name
        prefix = f"{safe_name_component(domain.title)}_"
        if stored.startswith(prefix) and len(stored) > len(prefix):
            return stored[len(prefix):]
        return stored

    # -----------------
    # OPERATIONS
    # -----------------

    @operation_boundary("create")
    def create(
        self,
        title: Optional[str],
        url: Optional[str],
        description: Optional[str],
        mapper_file: Optional[IncomingFile],
        image_file: Optional[IncomingFile],
    ) -> OperationResult:
        """Register a new domain with its mapper file and image."""
        if mapper_file is None or image_file is None:
            raise ValidationError("file", "Both file and image are required")

        values = {"title": title, "url": url, "description": description}
        for name in REQUIRED_FIELDS:
            if is_blank(values[name]):
                raise ValidationError(name, f"{name} field should not be empty or null.")
        title, url, description = (clean_field(values[name]) for name in REQUIRED_FIELDS)

        self._check_upload(MAPPER, mapper_file)
        self._check_upload(IMAGE, image_file)

        # Not atomic with the insert below; concurrent creates may both pass.
        if self.collection.find_one({"title": title}):
            raise ConflictError(title)

        mapper_path = self.files.save(mapper_file, self._mapper_name(title, mapper_file))
        image_path = self.files.save(image_file, self._image_name(title, image_file))

        document = {
            "title": title,
            "url": url,
            "description": description,
            "fileName": strip_extension(mapper_path),
            "mapperFileUrl": mapper_path,
            "imagePath": image_path,
        }
        try:
            inserted = self.collection.insert_one(document)
        except PyMongoError as exc:
            self.files.discard([mapper_path, image_path])
            raise StorageError("Error inserting the domain document.", error=str(exc)) from exc

        document["_id"] = inserted.inserted_id
        domain = Domain.from_document(document)
        logger.info(f"Domain created: {title}", extra={"domain_id": domain.id, "title": title})
        return OperationResult.success("Domain created successfully.", domain=domain)

    @operation_boundary("get")
    def get(self, domain_id: str) -> OperationResult:
        """Fetch one domain by identifier."""
        _, domain = self._find(domain_id)
        return OperationResult.success(domain=domain)

    @operation_boundary("list")
    def list_domains(self) -> OperationResult:
        """All domains in the collection's natural order."""
        domains: List[Domain] = [Domain.from_document(doc) for doc in self.collection.find({})]
        return OperationResult.success(domains=domains)

    @operation_boundary("update")
    def update(
        self,
        domain_id: Optional[str],
        title: Optional[str] = None,
        url: Optional[str] = None,
        description: Optional[str] = None,
        mapper_file: Optional[IncomingFile] = None,
        image_file: Optional[IncomingFile] = None,
    ) -> OperationResult:
        """Partially update a domain, replacing stored files when new ones are adopted.

        Omitted or blank fields keep their stored value. A supplied file whose
        base name equals the stored one is not adopted: the record keeps its
        current path.
        """
        if is_blank(domain_id):
            raise ValidationError("id", "id field should not be empty or null.")
        oid, existing = self._find(domain_id)

        new_title = clean_field(title) or existing.title
        new_url = clean_field(url) or existing.url
        new_description = clean_field(description) or existing.description

        self._check_upload(MAPPER, mapper_file)
        self._check_upload(IMAGE, image_file)

        if new_title != existing.title and self.collection.find_one({"title": new_title}):
            raise ConflictError(new_title)

        superseded: List[str] = []

        mapper_path, file_name = existing.mapper_file_url, existing.file_name
        if mapper_file is not None:
            stored = self.files.save(mapper_file, self._mapper_name(new_title, mapper_file))
            if strip_extension(stored) == existing.file_name:
                logger.info(
                    "Mapper file name unchanged, keeping stored path",
                    extra={"domain_id": existing.id, "file_path": existing.mapper_file_url},
                )
            else:
                superseded.append(existing.mapper_file_url)
                mapper_path, file_name = stored, strip_extension(stored)

        image_path = existing.image_path
        if image_file is not None:
            stored = self.files.save(image_file, self._image_name(new_title, image_file))
            if strip_extension(stored) == strip_extension(existing.image_path):
                logger.info(
                    "Image name unchanged, keeping stored path",
                    extra={"domain_id": existing.id, "file_path": existing.image_path},
                )
            else:
                superseded.append(existing.image_path)
                image_path = stored

        if superseded:
            # Every old file must be removable before any is removed
            missing = [path for path in superseded if not self.files.exists(path)]
            if missing:
                raise StorageError(f"Error deleting file: {missing[0]} does not exist", error=missing[0])
            report = self.files.delete_files(superseded)
            if not report.ok:
                raise StorageError(report.message)

        changes = {
            "title": new_title,
            "url": new_url,
            "description": new_description,
            "fileName": file_name,
            "mapperFileUrl": mapper_path,
            "imagePath": image_path,
        }
        result = self.collection.update_one({"_id": oid}, {"$set": changes})
        if result.matched_count == 0:
            raise NotFoundError(domain_id)

        domain = Domain.from_document({"_id": oid, **changes})
        logger.info(f"Domain updated: {new_title}", extra={"domain_id": domain.id, "title": new_title})
        return OperationResult.success("Domain updated successfully.", domain=domain)

    @operation_boundary("delete")
    def delete(self, domain_id: str) -> OperationResult:
        """Remove both stored files, then the document.

        If any file cannot be removed the document is kept.
        """
        oid, domain = self._find(domain_id)

        report = self.files.delete_files([domain.mapper_file_url, domain.image_path])
        if not report.ok:
            raise StorageError(report.message)

        if self.collection.find_one_and_delete({"_id": oid}) is None:
            raise StorageError("Error deleting the domain document.")

        logger.info(f"Domain deleted: {domain.title}", extra={"domain_id": domain.id, "title": domain.title})
        return OperationResult.success("Domain and its associated files deleted successfully.")

    @operation_boundary("download_mapper")
    def mapper_download(self, domain_id: str) -> OperationResult:
        """Resolve the mapper file for download as an attachment."""
        _, domain = self._find(domain_id)
        if not self.files.exists(domain.mapper_file_url):
            raise FileMissingError(domain.mapper_file_url, "Mapper file")
        return OperationResult.success(
            file=self.files.stored_file(domain.mapper_file_url, filename=self._original_mapper_name(domain))
        )

    @operation_boundary("render_image")
    def image_render(self, domain_id: str) -> OperationResult:
        """Resolve the image for inline rendering."""
        _, domain = self._find(domain_id)
        if not self.files.exists(domain.image_path):
            raise FileMissingError(domain.image_path, "Image")
        return OperationResult.success(file=self.files.stored_file(domain.image_path))
