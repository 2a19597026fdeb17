#!/usr/bin/env python3
"""CLI script for visual verification of merging, normalization and stamping.

Usage:
    # Generate sample PDFs (content is A4, extras default to Letter)
    python scripts/compose_sample.py --generate-sample content.pdf --pages 3
    python scripts/compose_sample.py --generate-sample quote.pdf \
        --page-size letter
    python scripts/compose_sample.py --generate-sample terms.pdf \
        --page-size a3

    # Compose content + attachment + insert into out/
    python scripts/compose_sample.py content.pdf --attachment quote.pdf \
        --insert terms.pdf --output-dir out

    # Right-to-left layout with a logo
    python scripts/compose_sample.py content.pdf --direction mirrored \
        --logo logo.png --template receipt
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Allow running from project root without install
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from pdf_compose.composer import ComposerConfig, compose
from pdf_compose.direction import Direction
from pdf_compose.exceptions import CompositionError
from pdf_compose.stamp import TEMPLATES

# Page sizes in points
PAGE_SIZES = {
    "a4": (595.28, 841.89),
    "a3": (841.89, 1190.55),
    "a5": (419.53, 595.28),
    "letter": (612.0, 792.0),
}


def generate_sample_pdf(path: Path, page_size: str, pages: int) -> None:
    """Generate a sample PDF whose body text runs to the page edges."""
    from reportlab.pdfgen import canvas

    w, h = PAGE_SIZES[page_size]
    c = canvas.Canvas(str(path), pagesize=(w, h))
    for n in range(1, pages + 1):
        c.setFont("Helvetica", 24)
        c.drawString(72, h - 40, f"Sample {page_size.upper()} page {n}")
        c.setFont("Helvetica", 12)
        c.drawString(72, h - 72, f"{w:.0f} x {h:.0f} pt")

        # Corner markers show where scaled content lands
        c.rect(0, 0, w, h, stroke=1, fill=0)
        c.line(0, 0, w, h)
        c.line(0, h, w, 0)

        y = h - 120
        for i in range(1, 40):
            c.drawString(72, y, f"Line {i}: Lorem ipsum dolor sit amet.")
            y -= 18
            if y < 30:
                break
        c.showPage()

    c.save()
    print(f"Generated sample PDF: {path} ({page_size.upper()}, {pages} page(s))")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Visual composition verification tool",
    )
    parser.add_argument("content", nargs="?", help="Content PDF")
    parser.add_argument(
        "--generate-sample", metavar="PATH",
        help="Generate a sample PDF",
    )
    parser.add_argument(
        "--page-size", choices=sorted(PAGE_SIZES), default="a4",
    )
    parser.add_argument("--pages", type=int, default=1)
    parser.add_argument("--attachment", help="Attachment PDF")
    parser.add_argument("--insert", help="Insert PDF appended last")
    parser.add_argument(
        "--direction", choices=[d.value for d in Direction], default="forward",
    )
    parser.add_argument(
        "--template", choices=sorted(TEMPLATES), default="purchase-order",
    )
    parser.add_argument("--logo", help="Logo image (PNG/JPEG)")
    parser.add_argument("--output-dir", help="Output directory")

    args = parser.parse_args()

    if args.generate_sample:
        generate_sample_pdf(
            Path(args.generate_sample), args.page_size, args.pages,
        )
        return

    if not args.content:
        parser.error("content path required (or use --generate-sample)")

    logging.basicConfig(level=logging.DEBUG, format="%(levelname)-8s %(message)s")

    config = ComposerConfig(
        output_dir=Path(args.output_dir) if args.output_dir else None,
        logo_path=Path(args.logo) if args.logo else None,
        template=args.template,
    )
    try:
        result = compose(
            args.content,
            attachment=args.attachment,
            insert=args.insert,
            direction=Direction(args.direction),
            config=config,
        )
    except CompositionError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    counts = result.page_count
    print(
        f"Output: {result.filepath} "
        f"(content={counts.content}, attachment={counts.attachment}, "
        f"insert={counts.insert}, merged={result.merged})",
    )
    if result.merge_error:
        print(f"Warning: {result.merge_error}")


if __name__ == "__main__":
    main()
