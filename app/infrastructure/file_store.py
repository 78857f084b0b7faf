"""Local file store for mapper files and images.

Files live under ``<storage_root>/<upload_dir>``; records keep the path
relative to the storage root (``uploads/Acme_mapper.xlsx``).
"""
import mimetypes
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import FrozenSet, Iterable, List, Optional

from pydantic import BaseModel

from app.core.config import Settings
from app.core.logging import get_logger
from app.domain.domain import IncomingFile, StoredFile

logger = get_logger(__name__)

MAPPER = "file"
IMAGE = "image"


class UploadConfig(BaseModel):
    """Upload rules built once at startup and handed to the FileStore."""
    upload_dir: str = "uploads"
    prefix_image_names: bool = False
    mapper_content_types: FrozenSet[str] = frozenset()
    mapper_extensions: FrozenSet[str] = frozenset()
    image_content_types: FrozenSet[str] = frozenset()
    image_extensions: FrozenSet[str] = frozenset()

    class Config:
        frozen = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "UploadConfig":
        return cls(
            upload_dir=settings.upload_dir,
            prefix_image_names=settings.prefix_image_names,
            mapper_content_types=frozenset(settings.mapper_content_types),
            mapper_extensions=frozenset(e.lower() for e in settings.mapper_extensions),
            image_content_types=frozenset(settings.image_content_types),
            image_extensions=frozenset(e.lower() for e in settings.image_extensions),
        )

    def accepts(self, kind: str, incoming: IncomingFile) -> bool:
        """Whether an upload is allowed in the given slot (``file`` or ``image``).

        A file is accepted when either its declared content type or its
        extension is on the slot's allow list.
        """
        if kind == MAPPER:
            types, extensions = self.mapper_content_types, self.mapper_extensions
        else:
            types, extensions = self.image_content_types, self.image_extensions
        suffix = PurePosixPath(incoming.filename).suffix.lower()
        return incoming.content_type in types or suffix in extensions


@dataclass
class FileDeletion:
    path: str
    status: str
    error: Optional[str] = None


@dataclass
class DeletionReport:
    """Per-file outcome of a batch delete."""
    results: List[FileDeletion] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(r.status == "success" for r in self.results)

    @property
    def message(self) -> str:
        if self.ok:
            return "All files successfully deleted"
        failed = next(r for r in self.results if r.status == "failed")
        return f"Error deleting file: {failed.error}"


class FileStore:
    """Filesystem operations the record manager depends on."""

    def __init__(self, root: Path, config: UploadConfig):
        self.root = Path(root)
        self.config = config

    @property
    def upload_path(self) -> Path:
        return self.root / self.config.upload_dir

    def ensure_upload_dir(self) -> Path:
        """Create the upload directory if it does not exist yet."""
        self.upload_path.mkdir(parents=True, exist_ok=True)
        return self.upload_path

    def relative_path(self, stored_name: str) -> str:
        return str(PurePosixPath(self.config.upload_dir) / stored_name)

    def resolve(self, relative: str) -> Path:
        return self.root / relative

    def exists(self, relative: str) -> bool:
        return self.resolve(relative).is_file()

    def save(self, incoming: IncomingFile, stored_name: str) -> str:
        """Write an upload under the upload directory.

        An existing file with the same name is overwritten.

        Returns:
            Path of the stored file relative to the storage root
        """
        self.ensure_upload_dir()
        relative = self.relative_path(stored_name)
        target = self.resolve(relative)

        incoming.stream.seek(0)
        with open(target, "wb") as out:
            shutil.copyfileobj(incoming.stream, out)

        logger.info(f"Stored upload {stored_name}", extra={"file_path": relative})
        return relative

    def delete_files(self, paths: Iterable[str]) -> DeletionReport:
        """Delete every path, collecting success or failure for each.

        All paths are attempted even after a failure.
        """
        report = DeletionReport()
        for relative in paths:
            target = self.resolve(relative)
            try:
                target.unlink()
                report.results.append(FileDeletion(path=relative, status="success"))
            except OSError as e:
                logger.warning(f"Could not delete {relative}: {e}", extra={"file_path": relative})
                report.results.append(FileDeletion(path=relative, status="failed", error=str(e)))
        return report

    def discard(self, paths: Iterable[str]) -> None:
        """Best-effort removal of freshly written files after a failed insert."""
        for relative in paths:
            try:
                self.resolve(relative).unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not discard {relative}: {e}", extra={"file_path": relative})

    def stored_file(
        self,
        relative: str,
        filename: Optional[str] = None,
        default_media_type: str = "application/octet-stream",
    ) -> StoredFile:
        """Resolve a recorded path into a StoredFile with a guessed media type.

        ``filename`` is the name offered to clients; the stored name by default.
        """
        path = self.resolve(relative)
        media_type, _ = mimetypes.guess_type(path.name)
        return StoredFile(path=path, filename=filename or path.name, media_type=media_type or default_media_type)
