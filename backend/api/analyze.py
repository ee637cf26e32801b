"""
Lexi Analyze API
================
Runs the risk-analysis pipeline on uploaded documents or posted text.
Nothing is stored: each request gets its report (or error) and is done.
"""

import asyncio
import logging
from functools import lru_cache
from pathlib import PurePath
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from core import AnalysisOutcome, DocumentAnalyzer, RawDocument
from core.config import (
    DOCX_MEDIA_TYPE,
    PDF_MEDIA_TYPE,
    SUPPORTED_MEDIA_TYPES,
    TEXT_MEDIA_TYPE,
    get_settings,
)
from schemas import AnalysisStatusEnum, AnalyzeResponse, AnalyzeTextRequest, ErrorResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/analyze", tags=["Analyze"])
settings = get_settings()

# Used when the client sends no content type or a generic one
EXTENSION_MEDIA_TYPES = {
    ".pdf": PDF_MEDIA_TYPE,
    ".docx": DOCX_MEDIA_TYPE,
    ".txt": TEXT_MEDIA_TYPE,
}
GENERIC_MEDIA_TYPES = {"", "application/octet-stream"}

ERROR_STATUS_CODES = {
    "UnsupportedFormat": status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    "EmptyOrImageBasedDocument": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "ExtractionFailure": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "LowQualityText": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "ExtractionCancelled": status.HTTP_504_GATEWAY_TIMEOUT,
}

ERROR_RESPONSES = {
    413: {"model": ErrorResponse, "description": "File too large"},
    415: {"model": ErrorResponse, "description": "Unsupported file type"},
    422: {"model": ErrorResponse, "description": "Text could not be extracted or is unusable"},
    504: {"model": ErrorResponse, "description": "Extraction timed out"},
}


@lru_cache
def get_analyzer() -> DocumentAnalyzer:
    """Shared analyzer; it holds only read-only state."""
    return DocumentAnalyzer()


def resolve_media_type(file: UploadFile) -> str:
    """Declared content type, or one inferred from the file extension."""
    declared = (file.content_type or "").strip().lower()
    if declared not in GENERIC_MEDIA_TYPES:
        return declared
    suffix = PurePath(file.filename or "").suffix.lower()
    return EXTENSION_MEDIA_TYPES.get(suffix, declared or "unknown")


async def read_upload(file: UploadFile) -> bytes:
    """
    Read an upload into memory, enforcing the size limit.

    Raises:
        HTTPException: If the file exceeds the configured limit
    """
    chunks = []
    size = 0
    while chunk := await file.read(1024 * 1024):  # 1MB chunks
        size += len(chunk)
        if size > settings.max_file_size_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail={
                    "error": "FileTooLarge",
                    "message": f"File exceeds maximum size of {settings.max_file_size_mb}MB.",
                    "details": {
                        "max_size_mb": settings.max_file_size_mb,
                        "received_bytes": size
                    }
                }
            )
        chunks.append(chunk)
    return b"".join(chunks)


def outcome_to_response(outcome: AnalysisOutcome) -> AnalyzeResponse:
    """
    Convert a pipeline outcome into the API response.

    Raises:
        HTTPException: If the outcome carries a terminal error
    """
    if outcome.error is not None:
        raise HTTPException(
            status_code=ERROR_STATUS_CODES.get(
                outcome.error.tag, status.HTTP_422_UNPROCESSABLE_ENTITY
            ),
            detail=outcome.error.to_dict()
        )

    return AnalyzeResponse(
        status=AnalysisStatusEnum.COMPLETED,
        filename=outcome.filename,
        risk_report=outcome.report.to_dict(),
        processing_time_seconds=round(outcome.processing_time_seconds, 3)
    )


@router.post(
    "",
    response_model=AnalyzeResponse,
    responses=ERROR_RESPONSES,
    summary="Analyze a document",
    description=f"""
    Upload a legal document and receive its risk report.

    The pipeline extracts text, checks that extraction produced usable
    prose, normalizes it and scans it against the clause pattern catalog.

    **Accepted media types:** {", ".join(SUPPORTED_MEDIA_TYPES)}
    """
)
async def analyze_document(
    file: Annotated[UploadFile, File(description="PDF, DOCX or plain-text document")],
    analyzer: Annotated[DocumentAnalyzer, Depends(get_analyzer)],
    allow_low_quality: Annotated[
        bool | None,
        Query(description="Continue when extracted text fails the quality gate")
    ] = None,
) -> AnalyzeResponse:
    """Analyze an uploaded document and return the risk report."""
    logger.info(f"Received analysis request: {file.filename}")

    content = await read_upload(file)
    raw = RawDocument(
        content=content,
        media_type=resolve_media_type(file),
        filename=file.filename
    )

    outcome = await analyzer.analyze_async(raw, allow_low_quality)
    return outcome_to_response(outcome)


@router.post(
    "/text",
    response_model=AnalyzeResponse,
    responses={422: ERROR_RESPONSES[422]},
    summary="Analyze plain text",
    description="Run the risk analysis on text supplied directly in the request body."
)
async def analyze_text(
    request: AnalyzeTextRequest,
    analyzer: Annotated[DocumentAnalyzer, Depends(get_analyzer)],
) -> AnalyzeResponse:
    """Analyze posted text and return the risk report."""
    outcome = await asyncio.to_thread(
        analyzer.analyze_text, request.text, request.allow_low_quality
    )
    return outcome_to_response(outcome)
