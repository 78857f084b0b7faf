"""MongoDB client for the domain record store.

Provides one pooled MongoClient per process, the ``domains`` collection
handle and identifier parsing for path parameters.
"""
from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from app.core.logging import get_logger
from app.core.config import settings

logger = get_logger(__name__)

# Mongo client (lazy initialization)
_mongo_client: Optional[MongoClient] = None


def get_mongo_client(url: Optional[str] = None) -> MongoClient:
    """Get or create the process-wide MongoClient.

    The client connects lazily; the first operation against the server
    surfaces connection problems as ``PyMongoError``.

    Args:
        url: Connection string (default from MONGO_URL env)

    Returns:
        Shared MongoClient instance
    """
    global _mongo_client

    if _mongo_client is None:
        url = url or settings.mongo_url
        logger.info("Initializing MongoDB client", extra={"operation": "mongo.connect"})
        _mongo_client = MongoClient(
            url,
            serverSelectionTimeoutMS=settings.mongo_timeout_ms,
            connectTimeoutMS=settings.mongo_timeout_ms,
        )

    return _mongo_client


def get_domains_collection(client: Optional[MongoClient] = None) -> Collection:
    """Return the collection holding domain documents."""
    client = client or get_mongo_client()
    return client[settings.mongo_db][settings.domains_collection]


def ping() -> bool:
    """Check that MongoDB answers; used by the readiness probe."""
    try:
        get_mongo_client().admin.command("ping")
        return True
    except PyMongoError as e:
        logger.warning(f"MongoDB ping failed: {e}")
        return False


def close_mongo_client() -> None:
    """Close the shared client on application shutdown."""
    global _mongo_client

    if _mongo_client is not None:
        _mongo_client.close()
        _mongo_client = None
        logger.info("MongoDB client closed")


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """Parse a path/form identifier into an ObjectId.

    Returns None when the value is not a valid 24-hex identifier.
    """
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value).strip())
    except (InvalidId, TypeError):
        return None
