"""Exception hierarchy for pdf-compose."""


class ComposeError(Exception):
    """Base exception for all pdf-compose errors."""


class SourceError(ComposeError):
    """Raised when a source cannot be read or does not parse as a PDF."""


class MergeError(ComposeError):
    """Raised when copying the pages of a source into the output fails."""

    def __init__(self, role: str, detail: str = "") -> None:
        self.role = role
        self.detail = detail
        if detail:
            msg = f"Cannot merge {role} source: {detail}"
        else:
            msg = f"Cannot merge {role} source"
        super().__init__(msg)


class StampError(ComposeError):
    """Raised when overlay stamping cannot be performed."""


class CompositionError(ComposeError):
    """Raised when a composition fails and no output is written."""
