"""
SQLAlchemy database models.

Uploaded prospectuses are kept as opaque blobs addressed by key.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, LargeBinary, String
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


class StoredBlob(Base):
    """A binary object stored under an opaque key, e.g. ``uploads/<uuid>.pdf``."""

    __tablename__ = "stored_blobs"

    key: Mapped[str] = mapped_column(
        String(512),
        primary_key=True,
    )
    content: Mapped[bytes] = mapped_column(
        LargeBinary,
        nullable=False,
    )
    content_type: Mapped[str] = mapped_column(
        String(255),
        default="application/octet-stream",
        nullable=False,
    )
    size_bytes: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<StoredBlob(key={self.key}, size_bytes={self.size_bytes})>"
