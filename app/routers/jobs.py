"""
API Router for DSX job extraction and export.
"""

import logging
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from dsx_extractor.batch import (
    ArchiveExtraction,
    BatchProcessor,
    DSXDocument,
    export_results_zip,
    extract_dsx_documents,
)
from dsx_extractor.batch.archive import ZIP_EXTENSION, decode
from dsx_extractor.exceptions import ArchiveExtractionError, BatchProcessingError

from ..config import Settings, get_settings
from ..models.job import ExtractionFailure, ExtractionResponse, JobResult

logger = logging.getLogger(__name__)
router = APIRouter()


async def _collect_uploads(files: List[UploadFile], settings: Settings) -> ArchiveExtraction:
    """Decode uploaded .dsx files and unpack uploaded archives."""
    collected = ArchiveExtraction()

    for upload in files:
        file_name = upload.filename or "upload"
        file_ext = Path(file_name).suffix.lower()
        if file_ext not in settings.upload_extensions:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid file type for {file_name}. Allowed: {', '.join(sorted(settings.upload_extensions))}"
            )

        content = await upload.read()
        if len(content) > settings.max_upload_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"{file_name} exceeds the {settings.max_upload_mb} MB upload limit"
            )

        if file_ext == ZIP_EXTENSION:
            try:
                extraction = extract_dsx_documents(content, source_name=file_name)
            except ArchiveExtractionError as e:
                logger.warning(str(e))
                collected.failures[file_name] = e.reason or str(e)
                continue
            collected.documents.extend(extraction.documents)
            collected.failures.update(
                {f"{file_name}/{name}": reason for name, reason in extraction.failures.items()}
            )
        else:
            collected.documents.append(DSXDocument(name=file_name, content=decode(content)))

        logger.info(f"Received {file_name} ({len(content)} bytes)")

    if not collected.documents:
        detail = "No .dsx files found in upload"
        if collected.failures:
            detail += "; unreadable: " + ", ".join(
                f"{name} ({reason})" for name, reason in collected.failures.items()
            )
        raise HTTPException(status_code=400, detail=detail)
    return collected


def _process(collected: ArchiveExtraction, settings: Settings, include_token_count: Optional[bool]):
    processor = BatchProcessor(
        include_token_count=settings.include_token_count if include_token_count is None else include_token_count,
        continue_on_error=settings.continue_on_error,
        chars_per_token=settings.chars_per_token,
    )
    try:
        results = processor.process(collected.documents)
    except BatchProcessingError as e:
        raise HTTPException(status_code=400, detail=str(e))

    failures = [ExtractionFailure(file=name, error=reason) for name, reason in collected.failures.items()]
    failures.extend(ExtractionFailure(**failure.to_dict()) for failure in processor.failures)
    return results, failures


@router.post("/extract", response_model=ExtractionResponse, response_model_by_alias=True)
async def extract_jobs(
    files: List[UploadFile] = File(...),
    include_token_count: Optional[bool] = Form(default=None),
    settings: Settings = Depends(get_settings),
):
    """Extract jobs from uploaded .dsx files and .zip archives.

    Each job is returned with its validation report and, when enabled, its
    estimated token usage.
    """
    collected = await _collect_uploads(files, settings)
    results, failures = _process(collected, settings, include_token_count)

    return ExtractionResponse(
        total_jobs=len(results),
        results=[JobResult.from_result(result) for result in results],
        failures=failures,
    )


@router.post("/export")
async def export_jobs(
    files: List[UploadFile] = File(...),
    settings: Settings = Depends(get_settings),
):
    """Extract jobs from the upload and return them as a zip of JSON files."""
    collected = await _collect_uploads(files, settings)
    results, failures = _process(collected, settings, include_token_count=False)

    for failure in failures:
        logger.warning(f"Export skipped {failure.file}: {failure.error}")

    archive = export_results_zip(results, indent=settings.export_indent)
    return Response(
        content=archive,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{settings.export_archive_name}"'},
    )
