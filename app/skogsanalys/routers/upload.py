"""
Router for prospectus uploads.

Handles:
- PDF upload into blob storage
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from ..models import UploadResponse
from ..services.pdf_service import PDFConversionError, get_pdf_service
from ..services.storage import BlobStore, get_blob_store, new_upload_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["upload"])


@router.post("/upload", response_model=UploadResponse)
async def upload_prospectus(
    file: Annotated[UploadFile, File(description="Prospectus PDF")],
    store: BlobStore = Depends(get_blob_store),
) -> UploadResponse:
    """
    Store an uploaded prospectus PDF.

    Returns the storage key to pass to /process.
    """
    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No filename provided",
        )

    content_type = file.content_type or ""
    if not file.filename.lower().endswith(".pdf") and not content_type.startswith("application/pdf"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only PDF files are accepted",
        )

    try:
        file_bytes = await file.read()

        if not file_bytes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Empty file provided",
            )

        try:
            get_pdf_service().validate_pdf(file_bytes)
        except PDFConversionError as e:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=str(e),
            )

        key = new_upload_key()
        store.put(key, file_bytes, "application/pdf")
        logger.info("Uploaded prospectus %s as %s (%d bytes)", file.filename, key, len(file_bytes))

        return UploadResponse(key=key, size_bytes=len(file_bytes))

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Unexpected error storing upload")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Internal error: {e}",
        )
    finally:
        await file.close()
