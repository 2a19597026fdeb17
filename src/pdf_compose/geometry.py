"""Page geometry normalization: fit foreign-sized pages onto the reference size."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pikepdf

logger = logging.getLogger(__name__)

# Pages within this many points of the reference are treated as conforming
SIZE_TOLERANCE = 1.0

# Boxes that would keep clipping a resized page to its old geometry
_SECONDARY_BOXES = ("/CropBox", "/BleedBox", "/TrimBox", "/ArtBox")


@dataclass(frozen=True)
class PageSize:
    """Width and height of a page in points."""

    width: float
    height: float


A4 = PageSize(595.28, 841.89)


@dataclass(frozen=True)
class PageFit:
    """Uniform scale and translation that fit a page onto the reference."""

    scale: float
    offset_x: float
    offset_y: float


def page_dimensions(page: pikepdf.Page) -> tuple[float, float]:
    """Return (width, height) of a page's MediaBox in points."""
    box = page.mediabox
    width = float(box[2]) - float(box[0])
    height = float(box[3]) - float(box[1])
    return width, height


def matches_reference(
    width: float, height: float, reference: PageSize = A4
) -> bool:
    return (
        abs(width - reference.width) < SIZE_TOLERANCE
        and abs(height - reference.height) < SIZE_TOLERANCE
    )


def page_conforms(page: pikepdf.Page, reference: PageSize = A4) -> bool:
    """True if the page already has the reference dimensions."""
    return matches_reference(*page_dimensions(page), reference=reference)


def compute_fit(
    width: float, height: float, reference: PageSize = A4
) -> PageFit:
    """Compute a shrink-to-fit transform for a page of the given size.

    The scale never exceeds 1. Only downscaled content is centred; a page
    smaller than the reference in both axes keeps its content where it was.

    Raises:
        ValueError: If either dimension is not positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid page dimensions: {width}x{height}")

    scale = min(reference.width / width, reference.height / height, 1.0)
    if scale >= 1.0:
        return PageFit(scale=1.0, offset_x=0.0, offset_y=0.0)

    return PageFit(
        scale=scale,
        offset_x=(reference.width - width * scale) / 2,
        offset_y=(reference.height - height * scale) / 2,
    )


def _wrap_contents(page: pikepdf.Page, matrix: tuple[float, ...]) -> None:
    """Wrap the page's existing content stream(s) in ``q <matrix> cm ... Q``."""
    if "/Contents" not in page.obj:
        page.obj.Contents = pikepdf.Array()

    cm = " ".join(f"{v:.6f}" for v in matrix)
    page.contents_add(f"q {cm} cm\n".encode("ascii"), prepend=True)
    page.contents_add(b"\nQ\n", prepend=False)


def _transform_annotations(
    page: pikepdf.Page, scale: float, e: float, f: float
) -> None:
    """Move annotation rectangles along with the scaled content."""
    annots = page.obj.get("/Annots")
    if annots is None:
        return

    for annot in annots:
        rect = annot.get("/Rect")
        if rect is None or len(rect) != 4:
            continue
        x1, y1, x2, y2 = (float(v) for v in rect)
        annot.Rect = pikepdf.Array(
            [x1 * scale + e, y1 * scale + f, x2 * scale + e, y2 * scale + f]
        )


def normalize_page(page: pikepdf.Page, reference: PageSize = A4) -> pikepdf.Page:
    """Resize a page to the reference geometry, shrinking content if needed.

    Conforming pages are returned untouched. Otherwise the MediaBox is set
    to exactly the reference size and, when the page is larger than the
    reference in either axis, its content is uniformly scaled down and
    centred.

    The page is modified in place and returned.
    """
    width, height = page_dimensions(page)
    if matches_reference(width, height, reference):
        return page

    fit = compute_fit(width, height, reference)
    box = page.mediabox
    x0, y0 = float(box[0]), float(box[1])

    page.mediabox = pikepdf.Array(
        [x0, y0, x0 + reference.width, y0 + reference.height]
    )
    for key in _SECONDARY_BOXES:
        if key in page.obj:
            del page.obj[key]

    if fit.scale < 1.0:
        # Offsets are relative to the MediaBox origin, which scaling moves too
        e = x0 * (1.0 - fit.scale) + fit.offset_x
        f = y0 * (1.0 - fit.scale) + fit.offset_y
        _wrap_contents(page, (fit.scale, 0.0, 0.0, fit.scale, e, f))
        _transform_annotations(page, fit.scale, e, f)

    logger.debug(
        "Normalized page from %.2fx%.2f to %.2fx%.2f (scale=%.4f)",
        width,
        height,
        reference.width,
        reference.height,
        fit.scale,
    )
    return page
