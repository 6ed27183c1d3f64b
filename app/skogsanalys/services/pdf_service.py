"""
PDF handling for prospectus extraction.

Validates uploaded PDFs, cuts the byte slice that is sent to the model when
no text is available, and renders selected pages to images with pdf2image
(poppler) for image-based extraction.
"""

import base64
import logging
from dataclasses import dataclass
from typing import BinaryIO

from PIL import Image

logger = logging.getLogger(__name__)

DEFAULT_SLICE_BYTES = 300_000
MIN_SLICE_BYTES = 120_000
MAX_SLICE_BYTES = 800_000


class PDFConversionError(Exception):
    """Raised when a PDF is invalid or cannot be converted."""

    pass


@dataclass(frozen=True)
class SliceInfo:
    """How much of the PDF was sent to the model."""

    input_size_bytes: int
    slice_bytes_used: int
    partial: bool


def clamp_slice_bytes(requested: int | None) -> int:
    """Clamp a requested slice size to the supported range (default 300 kB)."""
    if not requested or requested <= 0:
        return DEFAULT_SLICE_BYTES
    return min(MAX_SLICE_BYTES, max(MIN_SLICE_BYTES, requested))


def _read_bytes(file_bytes: bytes | BinaryIO) -> bytes:
    if hasattr(file_bytes, "read"):
        return file_bytes.read()
    return file_bytes


class PDFService:
    """
    Prospectus PDF handling: header check, byte slicing and page rendering.

    Rendering goes through pdf2image, which needs the poppler utilities.
    """

    def __init__(self, dpi: int = 150, image_format: str = "PNG"):
        """
        Args:
            dpi: Render resolution in dots per inch.
            image_format: Format pdf2image renders to.
        """
        self.dpi = dpi
        self.image_format = image_format

    def validate_pdf(self, file_bytes: bytes | BinaryIO) -> bytes:
        """
        Check that the content looks like a PDF.

        Returns:
            The PDF as bytes.

        Raises:
            PDFConversionError: If the content is empty or lacks the PDF header.
        """
        pdf_bytes = _read_bytes(file_bytes)

        if not pdf_bytes:
            raise PDFConversionError("Empty PDF file provided")

        # Validate PDF magic bytes
        if pdf_bytes[:4] != b"%PDF":
            raise PDFConversionError(
                "Invalid PDF file: does not start with PDF header"
            )
        return pdf_bytes

    def slice_bytes(self, pdf_bytes: bytes, limit: int | None = None) -> tuple[bytes, SliceInfo]:
        """
        Take the leading part of the PDF, up to ``limit`` bytes.

        Args:
            pdf_bytes: Full PDF content.
            limit: Requested slice size, clamped with ``clamp_slice_bytes``.

        Returns:
            Tuple of (slice, SliceInfo).
        """
        size = clamp_slice_bytes(limit)
        chunk = pdf_bytes[:size]
        info = SliceInfo(
            input_size_bytes=len(pdf_bytes),
            slice_bytes_used=len(chunk),
            partial=len(pdf_bytes) > len(chunk),
        )
        logger.info(
            "Sliced PDF: %d of %d bytes (partial=%s)",
            info.slice_bytes_used,
            info.input_size_bytes,
            info.partial,
        )
        return chunk, info

    def encode_base64(self, data: bytes) -> str:
        """Base64-encode bytes for embedding in a prompt."""
        return base64.b64encode(data).decode("ascii")

    def render_pages(
        self,
        file_bytes: bytes | BinaryIO,
        pages: list[int] | None = None,
    ) -> list[Image.Image]:
        """
        Render prospectus pages for image-based extraction.

        Args:
            file_bytes: The PDF.
            pages: 1-indexed pages to render, duplicates ignored. None or an
                empty list renders the whole document.

        Returns:
            Rendered pages in ascending page order.

        Raises:
            PDFConversionError: If the PDF is invalid or rendering fails.
        """
        from pdf2image import convert_from_bytes
        from pdf2image.exceptions import (
            PDFInfoNotInstalledError,
            PDFPageCountError,
            PDFSyntaxError,
        )

        pdf_bytes = self.validate_pdf(file_bytes)
        wanted = sorted({p for p in pages if p >= 1}) if pages else []
        fmt = self.image_format.lower()

        logger.info("Rendering pages %s at %d dpi", wanted or "all", self.dpi)
        try:
            if not wanted:
                images = convert_from_bytes(pdf_bytes, dpi=self.dpi, fmt=fmt)
            else:
                images = []
                for page in wanted:
                    images.extend(
                        convert_from_bytes(
                            pdf_bytes,
                            dpi=self.dpi,
                            fmt=fmt,
                            first_page=page,
                            last_page=page,
                        )
                    )
        except PDFInfoNotInstalledError as e:
            logger.error("poppler is missing: %s", e)
            raise PDFConversionError(
                "Page rendering needs poppler (apt-get install poppler-utils)"
            ) from e
        except (PDFPageCountError, PDFSyntaxError) as e:
            logger.error("Unreadable PDF: %s", e)
            raise PDFConversionError(f"Could not read the PDF: {e}") from e
        except Exception as e:
            logger.exception("Page rendering failed")
            raise PDFConversionError(f"PDF rendering failed: {e}") from e

        logger.info("Rendered %d page(s)", len(images))
        return images


_pdf_service: PDFService | None = None


def get_pdf_service() -> PDFService:
    """Shared PDFService instance."""
    global _pdf_service
    if _pdf_service is None:
        _pdf_service = PDFService()
    return _pdf_service
