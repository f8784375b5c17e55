"""
Custom exceptions for the DSX job extractor.

Only acquisition-layer failures (reading, decompression, batch processing)
are raised; the extraction engine itself degrades instead of raising.
"""


class DSXExtractorError(Exception):
    """Base exception for DSX extractor errors."""
    pass


class DocumentReadError(DSXExtractorError):
    """Raised when a source document cannot be read."""

    def __init__(self, source: str, reason: str = ""):
        self.source = source
        self.reason = reason
        message = f"Failed to read {source}"
        super().__init__(f"{message}: {reason}" if reason else message)


class ArchiveExtractionError(DSXExtractorError):
    """Raised when an archive cannot be opened at all."""

    def __init__(self, source: str, reason: str = ""):
        self.source = source
        self.reason = reason
        message = f"Failed to extract files from {source}"
        super().__init__(f"{message}: {reason}" if reason else message)


class BatchProcessingError(DSXExtractorError):
    """Raised when one document of a batch fails.

    Results already produced for earlier documents are kept on
    ``partial_results``.
    """

    def __init__(self, file_name: str, cause: Exception, partial_results=None):
        self.file_name = file_name
        self.cause = cause
        self.partial_results = list(partial_results or [])
        super().__init__(f"Error processing file {file_name}: {cause}")
