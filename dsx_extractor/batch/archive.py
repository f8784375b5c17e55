"""
Archive input and export output.

Reads .dsx documents from zip archives, plain files and directories, and
packages extracted jobs back into a zip of pretty-printed JSON files.
"""

import io
import json
import logging
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from ..exceptions import ArchiveExtractionError, DocumentReadError

logger = logging.getLogger(__name__)

DSX_EXTENSION = ".dsx"
ZIP_EXTENSION = ".zip"

# Errors a single damaged archive entry can raise while being read
_ENTRY_ERRORS = (zipfile.BadZipFile, zlib.error, OSError, RuntimeError, NotImplementedError, EOFError)


@dataclass
class DSXDocument:
    """The decoded text of one named source document."""
    name: str
    content: str


@dataclass
class ArchiveExtraction:
    """Documents read from an archive plus the entries that could not be read."""
    documents: List[DSXDocument] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)


def decode(data: bytes, encoding: str = "utf-8") -> str:
    return data.decode(encoding, errors="replace")


def extract_dsx_documents(
    archive: Union[bytes, str, Path],
    source_name: Optional[str] = None,
    extension: str = DSX_EXTENSION,
    encoding: str = "utf-8",
) -> ArchiveExtraction:
    """Read every entry ending in ``extension`` from a zip archive.

    A damaged entry is recorded in ``failures`` and does not prevent the
    remaining entries from being returned. An archive that cannot be opened
    raises ArchiveExtractionError.
    """
    if isinstance(archive, (bytes, bytearray)):
        handle = io.BytesIO(archive)
        source_name = source_name or "<archive>"
    else:
        handle = Path(archive)
        source_name = source_name or handle.name

    result = ArchiveExtraction()
    try:
        zf = zipfile.ZipFile(handle)
    except (zipfile.BadZipFile, OSError) as e:
        raise ArchiveExtractionError(source_name, str(e)) from e

    with zf:
        for info in zf.infolist():
            if info.is_dir() or not info.filename.lower().endswith(extension.lower()):
                continue
            try:
                content = decode(zf.read(info), encoding)
            except _ENTRY_ERRORS as e:
                logger.warning(f"Failed to extract {info.filename} from {source_name}: {e}")
                result.failures[info.filename] = str(e)
                continue
            result.documents.append(DSXDocument(name=info.filename, content=content))

    logger.info(f"Extracted {len(result.documents)} {extension} file(s) from {source_name}")
    return result


def read_document(path: Union[str, Path], encoding: str = "utf-8") -> DSXDocument:
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise DocumentReadError(path.name, str(e)) from e
    return DSXDocument(name=path.name, content=decode(data, encoding))


def collect_documents(
    paths: Iterable[Union[str, Path]],
    extension: str = DSX_EXTENSION,
    encoding: str = "utf-8",
) -> ArchiveExtraction:
    """Gather documents from files, zip archives and directories.

    A file or archive that cannot be read is recorded in ``failures`` under
    its name; the remaining inputs are still collected.
    """
    collected = ArchiveExtraction()

    for raw_path in paths:
        path = Path(raw_path)
        if path.is_dir():
            candidates = sorted(p for p in path.rglob("*") if p.is_file())
        else:
            candidates = [path]

        for candidate in candidates:
            suffix = candidate.suffix.lower()
            try:
                if suffix == ZIP_EXTENSION:
                    extraction = extract_dsx_documents(candidate, extension=extension, encoding=encoding)
                    collected.documents.extend(extraction.documents)
                    collected.failures.update(
                        {f"{candidate.name}/{name}": reason for name, reason in extraction.failures.items()}
                    )
                elif suffix == extension.lower():
                    collected.documents.append(read_document(candidate, encoding))
                elif candidate == path:
                    logger.warning(f"Skipping unsupported file {candidate.name}")
            except (ArchiveExtractionError, DocumentReadError) as e:
                logger.warning(str(e))
                collected.failures[candidate.name] = e.reason or str(e)

    return collected


def _entry_name(name: str, used: Dict[str, int]) -> str:
    """Unique archive entry name for a job."""
    base = name or "unnamed_job"
    count = used.get(base, 0) + 1
    used[base] = count
    return f"{base}.json" if count == 1 else f"{base}_{count}.json"


def export_results_zip(results: Iterable, indent: int = 2) -> bytes:
    """Package each result's job as ``<job name>.json`` in one zip archive."""
    buffer = io.BytesIO()
    used: Dict[str, int] = {}

    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for result in results:
            job = result.data
            name = job.name or Path(result.original_file).stem
            zf.writestr(_entry_name(name, used), json.dumps(job.to_dict(), indent=indent, ensure_ascii=False))

    return buffer.getvalue()


def write_results_zip(results: Iterable, output_path: Union[str, Path], indent: int = 2) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(export_results_zip(results, indent=indent))
    logger.info(f"Wrote {output_path}")
    return output_path
