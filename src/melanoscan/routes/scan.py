"""Endpoints for lesion scans and scan history."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from ..config import settings
from ..exceptions import MelanoScanError, NotFound, ValidationError
from ..schemas import ErrorResponse, ScanRecordOut, ScanResponse, StatusResponse
from ..services.history import format_history
from ..services.models import get_pipeline
from ..services.pipeline import ScanPipeline
from ..services.preprocess import ImageUpload, validate_upload
from ..services.records import require_user_id
from ..services.storage import DocumentStore, get_document_store
from ..utils.logger import get_logger
from ..utils.timefmt import format_display

router = APIRouter()
logger = get_logger(__name__)


def _status(code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=code, content={"responCode": str(code), "responMessage": message})


@router.post(
    "/scan-upload",
    status_code=status.HTTP_200_OK,
    response_model=ScanResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def scan_upload(
    image: Optional[UploadFile] = File(default=None),
    userId: Optional[str] = Form(default=None),
    pipeline: ScanPipeline = Depends(get_pipeline),
):
    """Classify an uploaded lesion image and store the result for the user."""
    try:
        if image is None:
            require_user_id(userId)
            raise ValidationError("Image file is required")
        if image.size is not None:
            validate_upload(image.content_type, image.size, pipeline.max_upload_bytes)
        upload = ImageUpload(
            data=await image.read(pipeline.max_upload_bytes + 1),
            content_type=image.content_type or "",
            filename=image.filename or "",
        )
        record = await pipeline.scan(userId, upload)
    except ValidationError as exc:
        logger.warning("Rejected scan upload: {}", exc.message)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": exc.message})
    except MelanoScanError as exc:
        logger.opt(exception=exc).error("Error during upload: {}", exc.message)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": f"Error uploading file: {exc.message}"},
        )

    return ScanResponse(
        id=record.id,
        userId=record.userId,
        fileName=record.fileName,
        uploadedAt=format_display(record.uploadedAt, settings.display_utc_offset_hours),
        url=record.url,
        confidence=record.confidence,
        explanation=record.explanation,
        suggestion=record.suggestion,
    )


@router.get(
    "/scan-history",
    status_code=status.HTTP_200_OK,
    response_model=List[ScanRecordOut],
    responses={400: {"model": StatusResponse}, 404: {"model": StatusResponse}, 500: {"model": StatusResponse}},
)
async def scan_history(
    userId: Optional[str] = None,
    store: DocumentStore = Depends(get_document_store),
):
    """Return every stored scan for a user with display timestamps."""
    try:
        return await run_in_threadpool(
            format_history, store, userId, settings.display_utc_offset_hours
        )
    except ValidationError as exc:
        return _status(status.HTTP_400_BAD_REQUEST, exc.message)
    except NotFound as exc:
        return _status(status.HTTP_404_NOT_FOUND, exc.message)
    except MelanoScanError as exc:
        logger.opt(exception=exc).error("Error retrieving history: {}", exc.message)
        return _status(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Error retrieving history: {exc.message}")
