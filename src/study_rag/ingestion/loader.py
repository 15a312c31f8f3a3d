"""Document loaders — turn uploaded bytes into plain text."""

from __future__ import annotations

import io
import logging
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from study_rag.errors import ExtractionFailed

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = (".txt", ".md", ".markdown")


def extract_text(data: bytes, file_name: str = "") -> str:
    """Extract plain text from *data*.

    PDFs (by ``.pdf`` suffix or ``%PDF`` magic) are read page by page with
    :mod:`pypdf`; ``.txt`` / ``.md`` files are decoded as UTF-8.

    Raises
    ------
    ExtractionFailed
        When the bytes are corrupt or the format is unsupported.
    """
    suffix = Path(file_name).suffix.lower()
    if suffix == ".pdf" or data.startswith(b"%PDF"):
        return _extract_pdf(data, file_name)
    if suffix in TEXT_SUFFIXES:
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ExtractionFailed(f"{file_name!r} is not valid UTF-8 text") from exc
    raise ExtractionFailed(f"Unsupported document type for {file_name!r}")


def _extract_pdf(data: bytes, file_name: str) -> str:
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PyPdfError, ValueError, KeyError, TypeError) as exc:
        raise ExtractionFailed(f"Could not read PDF {file_name!r}: {exc}") from exc
    logger.info("Extracted %d page(s) from %s", len(pages), file_name or "<bytes>")
    return "\n".join(pages)


def load_file(path: str | Path) -> tuple[bytes, str]:
    """Read a document from disk, returning ``(bytes, display name)``."""
    path = Path(path)
    return path.read_bytes(), path.name
