"""Core application configuration and settings.

Handles environment variables for the MongoDB record store, the local
upload directory and the HTTP surface.
"""
import os
from pathlib import Path
from typing import List
from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings


# Load environment variables
ROOT = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=ROOT / ".env", override=True)
load_dotenv(override=True)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # MongoDB record store
    mongo_url: str = Field(
        default_factory=lambda: (
            os.getenv("MONGO_URL")
            or os.getenv("MONGODB_URI")
            or "mongodb://localhost:27017"
        ),
        alias="MONGO_URL"
    )
    mongo_db: str = Field(default="domain_registry", alias="MONGO_DB")
    domains_collection: str = Field(default="domains", alias="DOMAINS_COLLECTION")
    mongo_timeout_ms: int = Field(default=5000, alias="MONGO_TIMEOUT_MS")

    # File store
    storage_root: Path = Field(default_factory=Path.cwd, alias="STORAGE_ROOT")
    upload_dir: str = Field(default="uploads", alias="UPLOAD_DIR")
    prefix_image_names: bool = Field(default=False, alias="PREFIX_IMAGE_NAMES")
    mapper_content_types: List[str] = Field(
        default_factory=lambda: [
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",  # .xlsx
            "application/vnd.ms-excel",  # .xls
        ],
        alias="MAPPER_CONTENT_TYPES"
    )
    mapper_extensions: List[str] = Field(
        default_factory=lambda: [".xlsx", ".xls"],
        alias="MAPPER_EXTENSIONS"
    )
    image_content_types: List[str] = Field(
        default_factory=lambda: ["image/jpeg", "image/png"],
        alias="IMAGE_CONTENT_TYPES"
    )
    image_extensions: List[str] = Field(
        default_factory=lambda: [".jpg", ".jpeg", ".png"],
        alias="IMAGE_EXTENSIONS"
    )

    # Application Settings
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    port: int = Field(default=5000, alias="PORT")

    # API Settings
    api_prefix: str = Field(default="/domain", alias="API_PREFIX")
    strict_status_codes: bool = Field(default=False, alias="STRICT_STATUS_CODES")
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000"
        ],
        alias="CORS_ORIGINS"
    )

    class Config:
        case_sensitive = False
        env_file = ".env"
        populate_by_name = True
        extra = "ignore"

    @property
    def upload_path(self) -> Path:
        """Absolute directory holding uploaded mapper files and images."""
        return Path(self.storage_root) / self.upload_dir

    def validate_required_settings(self):
        """Validate that required settings are present."""
        if not self.mongo_url.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError(
                "MONGO_URL must be a mongodb:// or mongodb+srv:// connection string."
            )
        if not self.upload_dir or Path(self.upload_dir).is_absolute():
            raise ValueError(
                "UPLOAD_DIR must be a relative directory name (e.g., uploads)."
            )


# Global settings instance
settings = Settings()


# Validate settings on module import (only in non-test environments)
if settings.environment != "test":
    try:
        settings.validate_required_settings()
    except ValueError as e:
        print(f"Configuration Error: {e}")
        # Don't raise in development to allow partial setup
        if settings.environment == "production":
            raise
