"""
Batch Processor

Runs the extraction engine over many documents, pairing each extracted job
with its validation report and optional token usage. Documents are processed
in order and independently; one failing document either stops the batch with
the results gathered so far, or is recorded and skipped.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from ..datastage.dsx_parser import DSXParser
from ..datastage.models import JobInfo
from ..estimation.token_estimator import DEFAULT_CHARS_PER_TOKEN, TokenUsage, estimate_token_usage
from ..exceptions import BatchProcessingError
from ..validation.job_validator import ValidationReport, validate_job_info
from .archive import DSXDocument

logger = logging.getLogger(__name__)


@dataclass
class ProcessingResult:
    """One extracted job together with its validation and token usage."""
    original_file: str
    data: JobInfo
    validation: ValidationReport
    token_usage: Optional[TokenUsage] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "originalFile": self.original_file,
            "data": self.data.to_dict(),
            "validation": self.validation.to_dict(),
        }
        if self.token_usage is not None:
            result["tokenUsage"] = self.token_usage.to_dict()
        return result


@dataclass
class ProcessingFailure:
    """A document the batch could not process."""
    file_name: str
    error: str

    def to_dict(self) -> Dict[str, str]:
        return {"file": self.file_name, "error": self.error}


class BatchProcessor:
    """
    Processes DSX documents one at a time.

    Usage:
        processor = BatchProcessor(include_token_count=True)
        results = processor.process(documents)
    """

    def __init__(
        self,
        include_token_count: bool = False,
        continue_on_error: bool = False,
        chars_per_token: int = DEFAULT_CHARS_PER_TOKEN,
    ):
        self.include_token_count = include_token_count
        self.continue_on_error = continue_on_error
        self.chars_per_token = chars_per_token
        self.failures: List[ProcessingFailure] = []

    def process_document(self, document: DSXDocument) -> ProcessingResult:
        job = DSXParser(document.content, source_name=document.name).parse()

        usage = None
        if self.include_token_count:
            usage = estimate_token_usage(job, chars_per_token=self.chars_per_token)
            job = job.with_token_count(usage.total)

        return ProcessingResult(
            original_file=document.name,
            data=job,
            validation=validate_job_info(job),
            token_usage=usage,
        )

    def process(self, documents: Iterable[DSXDocument]) -> List[ProcessingResult]:
        """Process documents in input order."""
        self.failures = []
        results: List[ProcessingResult] = []

        for document in documents:
            try:
                results.append(self.process_document(document))
            except Exception as e:
                if not self.continue_on_error:
                    logger.error(f"Batch stopped at {document.name}: {e}")
                    raise BatchProcessingError(document.name, e, results) from e
                logger.warning(f"Skipping {document.name}: {e}")
                self.failures.append(ProcessingFailure(document.name, str(e)))

        logger.info(f"Processed {len(results)} document(s), {len(self.failures)} failure(s)")
        return results


def process_dsx_documents(documents: Iterable[DSXDocument], include_token_count: bool = False) -> List[ProcessingResult]:
    return BatchProcessor(include_token_count=include_token_count).process(documents)
