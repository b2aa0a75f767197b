"""Domain error taxonomy.

Services raise these; the global exception handlers in
``puzzlehub.middleware.error_handler`` map them to HTTP status codes.
"""

from __future__ import annotations


class PuzzleHubError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    public: bool = False

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class Unauthorized(PuzzleHubError):
    """Missing, invalid or expired credential."""

    status_code = 401
    public = True


class NotFound(PuzzleHubError):
    """Referenced puzzle or user does not exist."""

    status_code = 404
    public = True


class InvalidArgument(PuzzleHubError):
    """Unknown category, bad bucket name, duplicate key or similar caller error."""

    status_code = 400
    public = True


class InconsistencyError(PuzzleHubError):
    """An internal invariant was violated."""


class PartialWriteInconsistency(InconsistencyError):
    """A per-user record was written but the puzzle aggregate was not.

    The caller must not treat the operation as applied; the enclosing
    transaction should be rolled back or the aggregate repaired.
    """

    operation = "write"

    def __init__(self, puzzle_id: int, user_id: int, message: str = "") -> None:
        default = f"{self.operation.capitalize()} of puzzle {puzzle_id} by user {user_id} was partially applied"
        super().__init__(message or default)
        self.puzzle_id = puzzle_id
        self.user_id = user_id


class CompletionInconsistency(PartialWriteInconsistency):
    """Completion record marked done, aggregate statistics not updated."""

    operation = "completion"


class DownloadInconsistency(PartialWriteInconsistency):
    """Completion record created on download, download counter not updated."""

    operation = "download"


class StorageError(PuzzleHubError):
    """The storage collaborator failed."""
