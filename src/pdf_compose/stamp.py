"""Branding overlay stamper using ReportLab and pikepdf."""

from __future__ import annotations

import datetime
import io
import logging
import os
from dataclasses import dataclass, field

import pikepdf
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from pdf_compose.direction import Direction
from pdf_compose.document import WorkingDocument
from pdf_compose.exceptions import StampError
from pdf_compose.geometry import A4, PageSize, page_conforms, page_dimensions

logger = logging.getLogger(__name__)

# Helvetica is a ReportLab built-in font
_FONT_NAME = "Helvetica"
_FONT_SIZE = 9.0

# Layout constants, in points
_BAND_HEIGHT = 100.0  # header band cleared on every page after the first
_LOGO_WIDTH = 80.0
_LOGO_HEIGHT = 50.0
_LOGO_TOP_OFFSET = 70.0  # logo bottom edge, measured from the top
_LOGO_RIGHT_INSET = 140.0  # logo left edge, measured from the right
_MARGIN_X = 60.0  # text inset from either side
_RULE_INSET = 50.0
_HEADER_RULE_OFFSET = 90.0  # header rule, measured from the top
_HEADER_RULE_WIDTH = 2.0
_FOOTER_RULE_Y = 50.0
_FOOTER_RULE_WIDTH = 1.0
_FOOTER_TEXT_Y = 35.0
_REVISION_OFFSET = 50.0
_DATE_OFFSET = 63.0  # date line below a revision line
_DATE_ONLY_OFFSET = 55.0  # date line when the template has no revision


@dataclass(frozen=True)
class StampLabels:
    """Label strings drawn by the stamper."""

    revision: str = "REV. No"
    issue_date: str = "DATE OF ISSUE"
    page: str = "Page {page} of {total}"


@dataclass(frozen=True)
class StampTemplate:
    """Per-document-type branding: codes, colors and labels."""

    name: str
    doc_code: str
    revision: str | None = None
    primary_color: str = "#2B4C8C"
    text_color: str = "#555555"
    rule_color: str = "#CCCCCC"
    band_color: str = "#FFFFFF"
    labels: StampLabels = field(default_factory=StampLabels)
    mirrored_labels: StampLabels | None = None

    def labels_for(self, direction: Direction) -> StampLabels:
        if direction is Direction.MIRRORED and self.mirrored_labels is not None:
            return self.mirrored_labels
        return self.labels


TEMPLATES: dict[str, StampTemplate] = {
    "purchase-order": StampTemplate(
        name="purchase-order", doc_code="PUR-05", revision="01"
    ),
    "rfq": StampTemplate(name="rfq", doc_code="PUR-04"),
    "receipt": StampTemplate(
        name="receipt", doc_code="RIC-01", revision="00", primary_color="#0B4FA2"
    ),
    "costing-sheet": StampTemplate(
        name="costing-sheet", doc_code="CS-01", primary_color="#1F6B3D"
    ),
}

DEFAULT_TEMPLATE = "purchase-order"


def get_template(name: str) -> StampTemplate:
    """Look up a built-in template by name.

    Raises:
        StampError: If no template has that name.
    """
    try:
        return TEMPLATES[name]
    except KeyError:
        known = ", ".join(sorted(TEMPLATES))
        raise StampError(f"Unknown template {name!r} (known: {known})") from None


@dataclass(frozen=True)
class Mark:
    """One element drawn on an overlay page.

    ``kind`` is ``band``, ``logo``, ``rule`` or ``text``. Rules run from
    ``x`` to ``x + width`` at height ``y`` with ``height`` as line width.
    """

    kind: str
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0
    text: str = ""
    role: str = ""
    align: str = "left"
    color: str = "#000000"


def _hex_to_rgb(hex_color: str) -> tuple[float, float, float]:
    """Convert hex color string to (r, g, b) floats in [0, 1]."""
    h = hex_color.lstrip("#")
    if len(h) != 6:
        raise StampError(f"Invalid hex color: {hex_color}")
    try:
        r, g, b = int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)
    except ValueError as e:
        raise StampError(f"Invalid hex color: {hex_color}") from e
    return r / 255.0, g / 255.0, b / 255.0


def _text_mark(
    role: str,
    text: str,
    y: float,
    right: bool,
    page_width: float,
    color: str,
) -> Mark:
    """Pin a text line to the left or right margin."""
    if right:
        return Mark(
            "text",
            page_width - _MARGIN_X,
            y,
            text=text,
            role=role,
            align="right",
            color=color,
        )
    return Mark("text", _MARGIN_X, y, text=text, role=role, color=color)


def plan_page_marks(
    index: int,
    total: int,
    width: float,
    height: float,
    direction: Direction,
    template: StampTemplate,
    issue_date: datetime.date,
    has_logo: bool = True,
) -> list[Mark]:
    """Lay out every overlay element for one page, in drawing order.

    The first page keeps its own header area; every later page gets an
    opaque band over the top of the page first so earlier content cannot
    collide with the header.
    """
    mirrored = direction is Direction.MIRRORED
    labels = template.labels_for(direction)
    marks: list[Mark] = []

    if index > 0:
        marks.append(
            Mark(
                "band",
                0.0,
                height - _BAND_HEIGHT,
                width,
                _BAND_HEIGHT,
                color=template.band_color,
            )
        )

    if has_logo:
        logo_x = _MARGIN_X if mirrored else width - _LOGO_RIGHT_INSET
        marks.append(
            Mark(
                "logo",
                logo_x,
                height - _LOGO_TOP_OFFSET,
                _LOGO_WIDTH,
                _LOGO_HEIGHT,
            )
        )

    marks.append(
        Mark(
            "rule",
            _RULE_INSET,
            height - _HEADER_RULE_OFFSET,
            width - 2 * _RULE_INSET,
            _HEADER_RULE_WIDTH,
            color=template.primary_color,
        )
    )

    # Issue block sits on the side opposite the logo
    date_text = f"{labels.issue_date}: {issue_date.isoformat()}"
    if template.revision is not None:
        marks.append(
            _text_mark(
                role="revision",
                text=f"{labels.revision}: {template.revision}",
                y=height - _REVISION_OFFSET,
                right=mirrored,
                page_width=width,
                color=template.text_color,
            )
        )
        date_y = height - _DATE_OFFSET
    else:
        date_y = height - _DATE_ONLY_OFFSET
    marks.append(
        _text_mark(
            role="issue_date",
            text=date_text,
            y=date_y,
            right=mirrored,
            page_width=width,
            color=template.text_color,
        )
    )

    marks.append(
        Mark(
            "rule",
            _RULE_INSET,
            _FOOTER_RULE_Y,
            width - 2 * _RULE_INSET,
            _FOOTER_RULE_WIDTH,
            color=template.rule_color,
        )
    )

    page_text = labels.page.format(page=index + 1, total=total)
    marks.append(
        _text_mark(
            role="doc_code",
            text=template.doc_code,
            y=_FOOTER_TEXT_Y,
            right=mirrored,
            page_width=width,
            color=template.text_color,
        )
    )
    marks.append(
        _text_mark(
            role="page_number",
            text=page_text,
            y=_FOOTER_TEXT_Y,
            right=not mirrored,
            page_width=width,
            color=template.text_color,
        )
    )
    return marks


def load_logo(path: str | os.PathLike | None) -> ImageReader | None:
    """Load the logo image, or return None if it is missing or unreadable."""
    if path is None:
        return None
    if not os.path.exists(path):
        logger.info("Logo not found at %s, stamping without it", path)
        return None
    try:
        logo = ImageReader(os.fspath(path))
        logo.getSize()
    except (OSError, ValueError):
        logger.warning("Cannot read logo %s, stamping without it", path, exc_info=True)
        return None
    return logo


def _draw_mark(c: canvas.Canvas, mark: Mark, logo: ImageReader | None) -> None:
    c.saveState()
    if mark.kind == "band":
        c.setFillColorRGB(*_hex_to_rgb(mark.color))
        c.rect(mark.x, mark.y, mark.width, mark.height, stroke=0, fill=1)
    elif mark.kind == "logo":
        if logo is not None:
            c.drawImage(
                logo,
                mark.x,
                mark.y,
                width=mark.width,
                height=mark.height,
                mask="auto",
            )
    elif mark.kind == "rule":
        c.setStrokeColorRGB(*_hex_to_rgb(mark.color))
        c.setLineWidth(mark.height)
        c.line(mark.x, mark.y, mark.x + mark.width, mark.y)
    elif mark.kind == "text":
        c.setFillColorRGB(*_hex_to_rgb(mark.color))
        c.setFont(_FONT_NAME, _FONT_SIZE)
        if mark.align == "right":
            c.drawRightString(mark.x, mark.y, mark.text)
        else:
            c.drawString(mark.x, mark.y, mark.text)
    else:
        raise StampError(f"Unknown mark kind: {mark.kind}")
    c.restoreState()


def render_overlay(
    page_indices: list[int],
    total: int,
    direction: Direction,
    template: StampTemplate,
    issue_date: datetime.date,
    logo: ImageReader | None = None,
    reference: PageSize = A4,
) -> bytes:
    """Render one transparent overlay page per page index.

    Returns:
        PDF bytes with ``len(page_indices)`` pages of the reference size.
    """
    if not page_indices:
        raise StampError("At least one page is required")

    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=(reference.width, reference.height))

    for index in page_indices:
        marks = plan_page_marks(
            index,
            total,
            reference.width,
            reference.height,
            direction,
            template,
            issue_date,
            has_logo=logo is not None,
        )
        for mark in marks:
            _draw_mark(c, mark, logo)
        c.showPage()

    c.save()
    return buf.getvalue()


def stamp_all(
    document: WorkingDocument,
    direction: Direction,
    template: StampTemplate,
    *,
    issue_date: datetime.date | None = None,
    logo_path: str | os.PathLike | None = None,
    reference: PageSize = A4,
) -> WorkingDocument:
    """Stamp header and footer overlays on every page of a document.

    Pages that do not match the reference geometry are skipped. Existing
    page content is left as is; the overlay is laid on top of it. Calling
    this twice stamps twice.
    """
    if issue_date is None:
        issue_date = datetime.datetime.now(datetime.timezone.utc).date()

    pages = document.pdf.pages
    total = len(pages)
    stampable: list[int] = []
    for i, page in enumerate(pages):
        if page_conforms(page, reference):
            stampable.append(i)
        else:
            width, height = page_dimensions(page)
            logger.info(
                "Page %d is %.2fx%.2f, not the reference size; skipping stamp",
                i + 1,
                width,
                height,
            )

    if not stampable:
        logger.warning("No pages to stamp (%d page(s) in document)", total)
        return document

    overlay_pdf = render_overlay(
        stampable,
        total,
        direction,
        template,
        issue_date,
        logo=load_logo(logo_path),
        reference=reference,
    )
    overlay = document.attach(overlay_pdf, "overlay")

    for overlay_page, index in zip(overlay.pages, stampable):
        # Place 1:1 on the MediaBox; the default target is the Trim/CropBox
        target = pages[index]
        target.add_overlay(overlay_page, pikepdf.Rectangle(target.mediabox))

    logger.debug(
        "Stamped %d of %d page(s) (template=%s, direction=%s)",
        len(stampable),
        total,
        template.name,
        direction.value,
    )
    return document
