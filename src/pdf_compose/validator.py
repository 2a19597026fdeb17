"""Source validation: confirm that untrusted bytes parse as a PDF."""

from __future__ import annotations

import io
import os
from typing import Union

import pikepdf

from pdf_compose.exceptions import SourceError

PdfInput = Union[bytes, bytearray, str, os.PathLike]


def read_source(source: PdfInput) -> bytes:
    """Return the raw bytes of an in-memory buffer or a file path.

    Raises:
        SourceError: If the path cannot be read or the type is unsupported.
    """
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, (str, os.PathLike)):
        try:
            with open(source, "rb") as fh:
                return fh.read()
        except OSError as e:
            raise SourceError(f"Cannot read {os.fspath(source)}: {e}") from e
    raise SourceError(f"Unsupported PDF source type: {type(source).__name__}")


def _parse_page_count(data: bytes) -> int:
    """Parse without xref recovery and touch every page's MediaBox."""
    with pikepdf.open(io.BytesIO(data), attempt_recovery=False) as pdf:
        for page in pdf.pages:
            _ = page.mediabox
        return len(pdf.pages)


def count_pages(source: PdfInput) -> int:
    """Return the number of pages in a PDF.

    Raises:
        SourceError: If the source cannot be read or does not parse.
    """
    data = read_source(source)
    if not data:
        raise SourceError("Invalid PDF: empty input")
    try:
        return _parse_page_count(data)
    except pikepdf.PasswordError as e:
        raise SourceError(f"PDF is encrypted: {e}") from e
    except pikepdf.PdfError as e:
        raise SourceError(f"Invalid PDF: {e}") from e


def validate_pdf(source: PdfInput) -> bool:
    """True if the source parses as a well-formed PDF. Never raises."""
    try:
        count_pages(source)
    except SourceError:
        return False
    return True
