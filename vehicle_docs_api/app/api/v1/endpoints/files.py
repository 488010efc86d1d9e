"""
Download endpoint for files kept by the local blob store.

URLs handed out by ``LocalBlobStore.create_signed_url`` point here.
They carry their own expiry and HMAC signature, so no bearer token is
required.  With the managed backend, signed URLs point at the storage
provider instead and this route always answers 404.
"""

import mimetypes

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import FileResponse

from vehicle_docs_api.app.core.backends import get_blob_store
from vehicle_docs_api.app.core.blobs import LocalBlobStore, normalize_blob_path
from vehicle_docs_api.app.core.security import verify_blob_signature

router = APIRouter()


@router.get("/files/{path:path}")
async def download_file(
    path: str,
    expires: int = Query(...),
    signature: str = Query(...),
) -> FileResponse:
    store = get_blob_store()
    if not isinstance(store, LocalBlobStore):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    clean = normalize_blob_path(path)
    if not verify_blob_signature(clean, expires, signature):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or expired signature")
    target = store.resolve(clean)
    if not target.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    media_type = mimetypes.guess_type(target.name)[0] or "application/octet-stream"
    return FileResponse(target, media_type=media_type, filename=target.name)
