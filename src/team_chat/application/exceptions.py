from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    pass


class ForbiddenError(AppError):
    pass


class ConflictError(AppError):
    pass


class ValidationError(AppError):
    pass


class UnknownIdentity(AppError):
    """The authenticated subject does not map to a known user."""


class InvalidReply(ValidationError):
    """reply_to_id points outside the target channel."""


class ChannelRaceLost(ConflictError):
    """A concurrent DM insert won the uniqueness race.

    Internal only: the registry recovers by re-reading the winner.
    """


class TransientWriteFailure(AppError):
    """Storage or transport hiccup. Safe for the client to retry."""
