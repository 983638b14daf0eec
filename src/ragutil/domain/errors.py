from __future__ import annotations

"""
Domain Error Taxonomy.

Defines the exception hierarchy raised by the extraction and scanning
services. Every error carries a descriptive message naming the offending
path, column, selector or endpoint so interface layers can surface it
verbatim.
"""

from typing import Optional

# -----------------------------------------------------------------------------
# BASE ERROR
# -----------------------------------------------------------------------------

class RagUtilError(Exception):
    """Root of all errors raised deliberately by ragutil services."""


# -----------------------------------------------------------------------------
# RESOURCE ERRORS
# -----------------------------------------------------------------------------

class NotFoundError(RagUtilError):
    """A path, sheet or remote resource does not exist."""


class IoError(RagUtilError):
    """A local read or write operation failed."""


class NetworkError(RagUtilError):
    """
    Transport failure or non-success HTTP status.

    Attributes:
        status_code: HTTP status when the server answered, None otherwise.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


# -----------------------------------------------------------------------------
# CONFIGURATION ERRORS (INVALID AGAINST THE ACTUAL SOURCE)
# -----------------------------------------------------------------------------

class ColumnNotFoundError(RagUtilError):
    """
    A named spreadsheet column could not be resolved in the header row.

    Attributes:
        column: The column name requested by the caller.
    """

    def __init__(self, column: str, kind: str = "Column"):
        super().__init__(f"{kind} not found: {column}")
        self.column = column


class SelectorError(RagUtilError):
    """
    A CSS selector could not be parsed.

    Attributes:
        which: Role of the selector ('item', 'id' or 'description').
        selector: Raw selector text.
    """

    def __init__(self, which: str, selector: str, detail: str = ""):
        message = f"Invalid {which} selector: {selector!r}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.which = which
        self.selector = selector


class PatternError(RagUtilError):
    """A regular expression supplied by the caller does not compile."""


class NoTableFoundError(RagUtilError):
    """No array of flat objects could be located in a JSON response."""
