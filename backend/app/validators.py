import os

from fastapi import HTTPException, Request, UploadFile


MAX_UPLOAD_MB = int(os.environ.get("MAX_UPLOAD_MB", "25"))


async def enforce_max_upload_size(request: Request) -> None:
    cl = request.headers.get("content-length")
    if not cl:
        return
    try:
        size = int(cl)
    except ValueError:
        return
    if size > MAX_UPLOAD_MB * 1024 * 1024:
        raise HTTPException(status_code=413, detail="Upload too large")


def read_image_upload(upload: UploadFile) -> bytes:
    data = upload.file.read(MAX_UPLOAD_MB * 1024 * 1024 + 1)
    if not data:
        raise HTTPException(status_code=422, detail=f"{upload.filename or 'upload'} is empty")
    if len(data) > MAX_UPLOAD_MB * 1024 * 1024:
        raise HTTPException(status_code=413, detail="Upload too large")
    return data
