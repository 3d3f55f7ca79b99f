import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from api.backend import BackendAPI, MAX_UPLOAD_BYTES, UploadedDocument
from api.dependencies import get_backend
from api.metrics import (
    DUPLICATES_SKIPPED_TOTAL,
    TASKS_EXTRACTED_TOTAL,
    TASKS_INSERTED_TOTAL,
    observe_request,
)
from duelist.errors import DueListError

router = APIRouter(prefix="/api")
logger = logging.getLogger(__name__)


async def _read_upload(upload: Optional[UploadFile]) -> Optional[UploadedDocument]:
    if upload is None:
        return None
    # one byte past the limit is enough to tell an oversized file apart
    data = await upload.read(MAX_UPLOAD_BYTES + 1)
    return UploadedDocument(
        filename=upload.filename or "",
        media_type=upload.content_type or "",
        data=data,
    )


@router.post("/upload-syllabus")
async def upload_syllabus(
    syllabus: Optional[UploadFile] = File(None),
    backend: BackendAPI = Depends(get_backend),
) -> dict:
    start = time.time()
    document = await _read_upload(syllabus)
    if document is not None:
        logger.info(
            f"Received upload {document.filename!r} ({document.media_type}, {len(document.data)} bytes)"
        )

    try:
        result = await backend.submit_document(document)
    except DueListError as e:
        logger.error(f"Error processing syllabus: {e}")
        observe_request("/api/upload-syllabus", "error", start, time.time())
        raise

    added = len(result["tasks"])
    skipped = result.pop("duplicatesSkipped")
    try:
        TASKS_EXTRACTED_TOTAL.inc(added + skipped)
        TASKS_INSERTED_TOTAL.inc(added)
        DUPLICATES_SKIPPED_TOTAL.inc(skipped)
    except Exception as e:
        logger.warning(f"Could not record upload metrics: {e}")
    observe_request("/api/upload-syllabus", "processed", start, time.time())
    return result
