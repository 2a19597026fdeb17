"""Composition orchestrator: validate, merge, stamp and persist one document."""

from __future__ import annotations

import contextlib
import dataclasses
import datetime
import logging
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pdf_compose.direction import Direction
from pdf_compose.document import WorkingDocument
from pdf_compose.exceptions import CompositionError, MergeError, SourceError, StampError
from pdf_compose.geometry import A4
from pdf_compose.merger import PageSource, SourceRole, merge_sources, needs_merge
from pdf_compose.stamp import (
    DEFAULT_TEMPLATE,
    TEMPLATES,
    StampTemplate,
    get_template,
    stamp_all,
)
from pdf_compose.validator import PdfInput, validate_pdf

logger = logging.getLogger(__name__)


@dataclass
class ComposerConfig:
    """Runtime configuration for compositions."""

    output_dir: Path | None = None
    insert_path: Path | None = None
    logo_path: Path | None = None
    template: str = DEFAULT_TEMPLATE
    doc_code: str | None = None

    def __post_init__(self) -> None:
        if self.template not in TEMPLATES:
            known = ", ".join(sorted(TEMPLATES))
            raise ValueError(f"Unknown template {self.template!r} (known: {known})")

    @classmethod
    def from_env(cls) -> ComposerConfig:
        """Build configuration from environment variables."""

        def _path(name: str) -> Path | None:
            value = os.environ.get(name, "").strip()
            return Path(value) if value else None

        return cls(
            output_dir=_path("COMPOSE_OUTPUT_DIR"),
            insert_path=_path("COMPOSE_INSERT_PATH"),
            logo_path=_path("COMPOSE_LOGO_PATH"),
            template=os.environ.get("COMPOSE_TEMPLATE", DEFAULT_TEMPLATE),
            doc_code=os.environ.get("COMPOSE_DOC_CODE") or None,
        )

    def get_template(self) -> StampTemplate:
        """Resolve the stamp template, applying the document code override."""
        template = get_template(self.template)
        if self.doc_code:
            template = dataclasses.replace(template, doc_code=self.doc_code)
        return template


@dataclass(frozen=True)
class PageCount:
    """Pages contributed by each source role."""

    content: int
    attachment: int = 0
    insert: int = 0

    @property
    def total(self) -> int:
        return self.content + self.attachment + self.insert

    def to_dict(self) -> dict[str, int]:
        counts = {"content": self.content}
        if self.attachment:
            counts["attachment"] = self.attachment
        if self.insert:
            counts["insert"] = self.insert
        counts["total"] = self.total
        return counts


@dataclass(frozen=True)
class CompositionResult:
    """Outcome of one composition."""

    filename: str
    filepath: Path
    merged: bool
    page_count: PageCount
    direction: Direction
    merge_error: str | None = None
    processing_ms: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "filename": self.filename,
            "filepath": str(self.filepath),
            "merged": self.merged,
            "direction": self.direction.value,
            "page_count": self.page_count.to_dict(),
        }
        if self.merge_error:
            data["merge_error"] = self.merge_error
        return data


def _atomic_write(path: Path, data: bytes) -> None:
    """Write to a temporary file in the target directory, then rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


def _output_path(
    content_path: Path,
    output_dir: Path | None,
    output_name: str | None,
    merged: bool,
) -> Path:
    directory = output_dir if output_dir is not None else content_path.parent
    if output_name:
        name = output_name if output_name.endswith(".pdf") else f"{output_name}.pdf"
    elif merged:
        name = f"{content_path.stem}_merged_{int(time.time() * 1000)}.pdf"
    else:
        name = content_path.name
    return directory / name


def _load_optional(
    role: SourceRole, source: PdfInput, notes: list[str]
) -> PageSource | None:
    """Load an optional source, or record why it was dropped."""
    if not validate_pdf(source):
        logger.warning("Invalid %s PDF, composing without it", role.value)
        notes.append(f"{role.value.capitalize()} is not a valid PDF and was skipped")
        return None
    try:
        return PageSource.load(role, source)
    except SourceError as exc:
        logger.warning("Cannot load %s PDF: %s", role.value, exc)
        notes.append(f"{role.value.capitalize()} could not be loaded: {exc}")
        return None


def compose(
    content_path: str | os.PathLike,
    attachment: PdfInput | None = None,
    insert: str | os.PathLike | None = None,
    direction: Direction = Direction.FORWARD,
    *,
    config: ComposerConfig | None = None,
    output_name: str | None = None,
    issue_date: datetime.date | None = None,
) -> CompositionResult:
    """Compose the final, stamped PDF for one document.

    The content source is required: if it cannot be read or parsed a
    :class:`CompositionError` is raised and nothing is written. Problems
    with the attachment or insert only drop that source and are reported
    in ``merge_error``. An insert path that does not exist is skipped
    silently.

    After a merge the original content file is deleted; failing to delete
    it is logged and ignored.
    """
    config = config or ComposerConfig()
    template = config.get_template()
    content_path = Path(content_path)
    start_time = time.monotonic()

    logger.info(
        "Composing %s (attachment=%s, insert=%s, direction=%s)",
        content_path.name,
        attachment is not None,
        insert is not None,
        direction.value,
    )

    # 1. Required content source
    try:
        content = PageSource.load(SourceRole.CONTENT, content_path)
    except SourceError as exc:
        raise CompositionError(f"Content PDF is unusable: {exc}") from exc

    # 2. Optional sources
    notes: list[str] = []
    sources = [content]
    if attachment is not None:
        loaded = _load_optional(SourceRole.ATTACHMENT, attachment, notes)
        if loaded is not None:
            sources.append(loaded)
    if insert is not None:
        if os.path.exists(insert):
            loaded = _load_optional(SourceRole.INSERT, insert, notes)
            if loaded is not None:
                sources.append(loaded)
        else:
            logger.debug("Insert %s does not exist, skipping", insert)

    # 3. Merge
    try:
        document = _build_document(sources)
    except MergeError as exc:
        if exc.role == SourceRole.CONTENT.value:
            raise CompositionError(str(exc)) from exc
        logger.warning("Merge failed, composing content only: %s", exc)
        notes.append(str(exc))
        sources = [content]
        try:
            document = _build_document(sources)
        except MergeError as retry_exc:
            raise CompositionError(str(retry_exc)) from retry_exc

    counts = document.page_counts
    merged = sum(1 for n in counts.values() if n) > 1
    page_count = PageCount(
        content=counts.get(SourceRole.CONTENT.value, 0),
        attachment=counts.get(SourceRole.ATTACHMENT.value, 0),
        insert=counts.get(SourceRole.INSERT.value, 0),
    )

    # 4. Stamp and 5. persist
    with document:
        try:
            stamp_all(
                document,
                direction,
                template,
                issue_date=issue_date,
                logo_path=config.logo_path,
            )
        except StampError as exc:
            raise CompositionError(f"Stamping failed: {exc}") from exc

        output_path = _output_path(content_path, config.output_dir, output_name, merged)
        _atomic_write(output_path, document.save())

    if merged and output_path.resolve() != content_path.resolve():
        try:
            content_path.unlink()
        except OSError as exc:
            logger.warning("Could not delete original %s: %s", content_path, exc)

    elapsed_ms = int((time.monotonic() - start_time) * 1000)
    logger.info(
        "Composed %s (%d page(s), merged=%s) in %dms",
        output_path.name,
        page_count.total,
        merged,
        elapsed_ms,
    )

    return CompositionResult(
        filename=output_path.name,
        filepath=output_path,
        merged=merged,
        page_count=page_count,
        direction=direction,
        merge_error="; ".join(notes) or None,
        processing_ms=elapsed_ms,
    )


def _build_document(sources: list[PageSource]) -> WorkingDocument:
    """Merge the sources, or reuse a lone conforming source as is."""
    if needs_merge(sources, A4):
        return merge_sources(sources, A4)
    source = sources[0]
    try:
        document = WorkingDocument.from_bytes(source.data)
    except SourceError as exc:
        raise MergeError(source.role.value, str(exc)) from exc
    document.page_counts[source.role.value] = document.page_count
    return document
