"""PDF merger: concatenates page sources into one A4 working document."""

from __future__ import annotations

import enum
import io
import logging
from collections.abc import Sequence
from dataclasses import dataclass

import pikepdf

from pdf_compose.document import WorkingDocument
from pdf_compose.exceptions import MergeError, SourceError
from pdf_compose.geometry import A4, PageSize, normalize_page, page_conforms
from pdf_compose.validator import PdfInput, count_pages, read_source

logger = logging.getLogger(__name__)


class SourceRole(str, enum.Enum):
    """Where a page source comes from in a composition."""

    CONTENT = "content"
    ATTACHMENT = "attachment"
    INSERT = "insert"


@dataclass(frozen=True)
class PageSource:
    """Read-only PDF bytes plus their page count."""

    role: SourceRole
    data: bytes
    page_count: int

    @classmethod
    def load(cls, role: SourceRole, source: PdfInput) -> PageSource:
        """Read a source and count its pages.

        Raises:
            SourceError: If the source cannot be read or does not parse.
        """
        data = read_source(source)
        return cls(role=role, data=data, page_count=count_pages(data))


def needs_merge(sources: Sequence[PageSource], reference: PageSize = A4) -> bool:
    """True unless there is a single source whose pages all conform."""
    if len(sources) != 1:
        return True

    try:
        with pikepdf.open(io.BytesIO(sources[0].data)) as pdf:
            return not all(page_conforms(page, reference) for page in pdf.pages)
    except pikepdf.PdfError as e:
        raise MergeError(sources[0].role.value, str(e)) from e


def merge_sources(
    sources: Sequence[PageSource], reference: PageSize = A4
) -> WorkingDocument:
    """Copy every page of every source, in order, into a new document.

    Pages that do not match the reference geometry are normalized as they
    are copied. The caller owns the returned document and must close it.

    Raises:
        MergeError: If any source fails to load or copy. Nothing is emitted.
    """
    document = WorkingDocument()
    try:
        for source in sources:
            role = source.role.value
            try:
                foreign = document.attach(source.data, role)
                for index, page in enumerate(foreign.pages):
                    document.pdf.pages.append(page)
                    copied = document.pdf.pages[-1]
                    if not page_conforms(copied, reference):
                        logger.debug("Normalizing %s page %d", role, index + 1)
                        normalize_page(copied, reference)
            except (SourceError, pikepdf.PdfError, ValueError) as e:
                raise MergeError(role, str(e)) from e

            document.page_counts[role] = len(foreign.pages)
            logger.debug("Merged %d %s page(s)", len(foreign.pages), role)
    except BaseException:
        document.close()
        raise

    return document
