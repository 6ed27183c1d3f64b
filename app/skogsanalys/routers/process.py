"""
Router for extraction + analysis of a stored prospectus.

Handles:
- Fetching the uploaded PDF
- Building the extraction payload (client text, byte slice or page images)
- Running the requested analyzers on the extracted record
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ..analysis import run_analyzers
from ..models import ProcessRequest, ProcessResponse
from ..services.ai import AIService, ExtractionPayload, get_ai_service
from ..services.pdf_service import SliceInfo, get_pdf_service
from ..services.storage import BlobStore, get_blob_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["process"])


@router.post("/process", response_model=ProcessResponse)
async def process_prospectus(
    request: ProcessRequest,
    store: BlobStore = Depends(get_blob_store),
    ai_service: AIService = Depends(get_ai_service),
) -> ProcessResponse:
    """
    Extract property data from an uploaded prospectus and analyze it.

    PDF and AI failures are turned into 422/503 responses by the
    application exception handlers.
    """
    blob = store.get(request.key)
    if blob is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"File not found: {request.key}",
        )

    pdf_service = get_pdf_service()
    content = blob.content
    whole_file = SliceInfo(
        input_size_bytes=len(content),
        slice_bytes_used=len(content),
        partial=False,
    )

    text = request.text.strip() if request.text else ""
    if text:
        payload = ExtractionPayload(text=text, pages=request.pages)
        slice_info = whole_file
    elif request.render_pages:
        images = pdf_service.render_pages(content, request.pages)
        payload = ExtractionPayload(images=images, pages=request.pages)
        slice_info = whole_file
    else:
        chunk, slice_info = pdf_service.slice_bytes(content, request.slice_bytes)
        payload = ExtractionPayload(
            pdf_base64=pdf_service.encode_base64(chunk),
            pages=request.pages,
        )

    model = request.model or ai_service.model
    outcome = await ai_service.extract_property(payload, model=model)

    results = run_analyzers(request.analyses, outcome.record, request.options)

    logger.info(
        "Processed %s: %d analyzer(s), %d warning(s)",
        request.key,
        len(results),
        len(outcome.warnings),
    )

    return ProcessResponse(
        key=request.key,
        model=model,
        input_size_bytes=slice_info.input_size_bytes,
        slice_bytes_used=slice_info.slice_bytes_used,
        partial=slice_info.partial,
        data=outcome.record,
        analyses=results,
        warnings=outcome.warnings,
        raw=outcome.raw,
    )
