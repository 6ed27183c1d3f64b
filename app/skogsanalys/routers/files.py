"""
Router for retrieving stored files.
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ..services.storage import BlobStore, get_blob_store

router = APIRouter(prefix="/files", tags=["files"])


@router.get("/{key:path}")
async def get_file(
    key: str,
    store: BlobStore = Depends(get_blob_store),
) -> Response:
    """Return a stored blob with its content type (e.g. a PDF for preview)."""
    blob = store.get(key)
    if blob is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"File not found: {key}",
        )

    return Response(content=blob.content, media_type=blob.content_type)
