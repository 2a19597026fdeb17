"""Working document: an output PDF plus the foreign PDFs it copies from."""

from __future__ import annotations

import io
from contextlib import ExitStack

import pikepdf

from pdf_compose.exceptions import SourceError


class WorkingDocument:
    """Owns one output PDF during composition.

    Pages and overlays copied from another PDF keep referring to that PDF's
    stream data until the output is saved, so every foreign document opened
    through :meth:`attach` stays open until this object is closed.

    Usage::

        with WorkingDocument() as doc:
            source = doc.attach(pdf_bytes, "content")
            doc.pdf.pages.extend(source.pages)
            data = doc.save()
    """

    def __init__(self, pdf: pikepdf.Pdf | None = None) -> None:
        self._stack = ExitStack()
        self.pdf = self._stack.enter_context(pdf if pdf is not None else pikepdf.new())
        self.page_counts: dict[str, int] = {}

    @classmethod
    def from_bytes(cls, data: bytes) -> WorkingDocument:
        """Use an existing PDF as the output document itself.

        Raises:
            SourceError: If the bytes do not parse as a PDF.
        """
        return cls(_open(data, "document"))

    def __enter__(self) -> WorkingDocument:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self._stack.close()

    def attach(self, data: bytes, label: str) -> pikepdf.Pdf:
        """Open a foreign PDF and keep it alive as long as this document.

        Raises:
            SourceError: If the bytes do not parse as a PDF.
        """
        return self._stack.enter_context(_open(data, label))

    @property
    def page_count(self) -> int:
        return len(self.pdf.pages)

    def save(self) -> bytes:
        buf = io.BytesIO()
        self.pdf.save(buf)
        return buf.getvalue()


def _open(data: bytes, label: str) -> pikepdf.Pdf:
    try:
        return pikepdf.open(io.BytesIO(data))
    except pikepdf.PasswordError as e:
        raise SourceError(f"{label} PDF is encrypted: {e}") from e
    except pikepdf.PdfError as e:
        raise SourceError(f"{label} PDF is invalid: {e}") from e
