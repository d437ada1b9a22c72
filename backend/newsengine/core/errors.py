"""Engine exceptions.

Every user-facing failure carries a stable ``kind`` string and the HTTP
status the API layer answers with. None of them is retried by the engine:
retrying a validation failure reproduces it, and ``StoreUnavailable`` is left
to the caller's own retry policy.
"""

from __future__ import annotations


class EngineError(Exception):
    kind = "error"
    status = 400

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.kind.replace("_", " "))

    @property
    def message(self) -> str:
        return str(self)


class NotFound(EngineError):
    kind = "not_found"
    status = 404


class DuplicateVote(EngineError):
    kind = "duplicate_vote"
    status = 409


class InsufficientKarma(EngineError):
    kind = "insufficient_karma"
    status = 403


class EditWindowExpired(EngineError):
    kind = "edit_window_expired"
    status = 403


class InvalidParent(EngineError):
    kind = "invalid_parent"
    status = 400


class InvalidComment(EngineError):
    kind = "invalid_comment"
    status = 400


class InvalidVote(EngineError):
    kind = "invalid_vote"
    status = 400


class NotAllowed(EngineError):
    kind = "not_allowed"
    status = 403


class DuplicateUrl(EngineError):
    kind = "duplicate_url"
    status = 409


class SubmittedTooRecently(EngineError):
    kind = "submitted_too_recently"
    status = 429

    def __init__(self, seconds: int) -> None:
        self.seconds = seconds
        super().__init__(f"You have submitted a story too recently, please wait {seconds} seconds.")


class InvalidUsername(EngineError):
    kind = "invalid_username"
    status = 400


class WeakPassword(EngineError):
    kind = "weak_password"
    status = 400


class UsernameTaken(EngineError):
    kind = "username_taken"
    status = 409


class StoreUnavailable(EngineError):
    """The key-value store could not be reached or timed out."""

    kind = "store_unavailable"
    status = 503
