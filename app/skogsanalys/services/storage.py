"""
Key-value blob storage on top of SQLAlchemy.
"""

import logging
import uuid

from fastapi import Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..models_db import StoredBlob

logger = logging.getLogger(__name__)

UPLOAD_PREFIX = "uploads/"


def new_upload_key(suffix: str = ".pdf") -> str:
    """Generate a fresh random key under the uploads prefix."""
    return f"{UPLOAD_PREFIX}{uuid.uuid4()}{suffix}"


class BlobStore:
    """
    Put and get binary blobs by key.

    Keys are opaque strings chosen by the caller. Putting an existing key
    replaces its content.
    """

    def __init__(self, db: Session):
        self.db = db

    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> StoredBlob:
        blob = self.db.get(StoredBlob, key)
        if blob is None:
            blob = StoredBlob(key=key)
            self.db.add(blob)

        blob.content = data
        blob.content_type = content_type
        blob.size_bytes = len(data)
        self.db.commit()
        self.db.refresh(blob)

        logger.info("Stored blob %s (%d bytes, %s)", key, len(data), content_type)
        return blob

    def get(self, key: str) -> StoredBlob | None:
        """Return the blob, or None when the key is unknown."""
        blob = self.db.get(StoredBlob, key)
        if blob is None:
            logger.info("Blob not found: %s", key)
        return blob


def get_blob_store(db: Session = Depends(get_db)) -> BlobStore:
    """FastAPI dependency providing a request-scoped blob store."""
    return BlobStore(db)
