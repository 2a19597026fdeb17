"""Shared pytest fixtures for pdf-compose tests."""

from __future__ import annotations

import io
from pathlib import Path

import pikepdf
import pytest

from pdf_compose.stamp import StampTemplate

# Standard page sizes in points
A4_WIDTH, A4_HEIGHT = 595.28, 841.89
LETTER_WIDTH, LETTER_HEIGHT = 612.0, 792.0
A3_WIDTH, A3_HEIGHT = 841.89, 1190.55
A5_WIDTH, A5_HEIGHT = 419.53, 595.28


def _make_pdf(
    width: float,
    height: float,
    pages: int = 1,
    tag: str | None = None,
    content: bytes = b"",
) -> bytes:
    """Create a minimal PDF with the given dimensions.

    With *tag*, each page carries a ``/TestTag`` string of ``<tag><n>`` so
    page order can be checked after merging.
    """
    pdf = pikepdf.new()
    for n in range(pages):
        pdf.add_blank_page(page_size=(width, height))
        page = pdf.pages[-1]
        if content:
            page.obj.Contents = pdf.make_stream(content)
        if tag is not None:
            page.obj.TestTag = pikepdf.String(f"{tag}{n + 1}")

    buf = io.BytesIO()
    pdf.save(buf)
    return buf.getvalue()


def _make_mixed_pdf(sizes: list[tuple[float, float]]) -> bytes:
    """Create a PDF with one blank page per (width, height) pair."""
    pdf = pikepdf.new()
    for width, height in sizes:
        pdf.add_blank_page(page_size=(width, height))

    buf = io.BytesIO()
    pdf.save(buf)
    return buf.getvalue()


def page_tags(pdf_bytes: bytes) -> list[str]:
    """Return the ``/TestTag`` of every page, in order."""
    with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
        return [str(page.obj.TestTag) for page in pdf.pages]


def page_sizes(pdf_bytes: bytes) -> list[tuple[float, float]]:
    with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
        sizes = []
        for page in pdf.pages:
            box = page.mediabox
            sizes.append(
                (float(box[2]) - float(box[0]), float(box[3]) - float(box[1]))
            )
        return sizes


@pytest.fixture
def a4_pdf() -> bytes:
    """Single-page A4 PDF."""
    return _make_pdf(A4_WIDTH, A4_HEIGHT)


@pytest.fixture
def letter_pdf() -> bytes:
    """Single-page US Letter PDF."""
    return _make_pdf(LETTER_WIDTH, LETTER_HEIGHT)


@pytest.fixture
def multipage_pdf() -> bytes:
    """Three-page A4 PDF."""
    return _make_pdf(A4_WIDTH, A4_HEIGHT, pages=3)


@pytest.fixture
def content_file(tmp_path: Path) -> Path:
    """Two-page A4 content PDF on disk, as an upstream renderer leaves it."""
    path = tmp_path / "RFQ-0001_1700000000000.pdf"
    path.write_bytes(_make_pdf(A4_WIDTH, A4_HEIGHT, pages=2, tag="C"))
    return path


@pytest.fixture
def insert_file(tmp_path: Path) -> Path:
    """One-page Letter boilerplate insert on disk."""
    path = tmp_path / "terms.pdf"
    path.write_bytes(_make_pdf(LETTER_WIDTH, LETTER_HEIGHT, tag="I"))
    return path


@pytest.fixture
def logo_file(tmp_path: Path) -> Path:
    """Small PNG logo."""
    from PIL import Image

    path = tmp_path / "logo.png"
    Image.new("RGB", (16, 10), (43, 76, 140)).save(path)
    return path


@pytest.fixture
def rfq_template() -> StampTemplate:
    """Template without a revision line."""
    return StampTemplate(name="test-rfq", doc_code="PUR-04")


@pytest.fixture
def po_template() -> StampTemplate:
    """Template with a revision line."""
    return StampTemplate(name="test-po", doc_code="PUR-05", revision="01")
