"""Errors surfaced by the data store and auth layers."""

from typing import Literal

AuthErrorCode = Literal[
    "invalid_credentials",
    "user_already_exists",
    "weak_password",
    "invalid_role",
    "signup_failed",
    "network_failure",
]


class MarketplaceError(Exception):
    """Base class for every error the store layer reports."""


class AuthError(MarketplaceError):
    """
    Raised by the auth collaborator. ``code`` tells the caller what to show,
    the message is already human readable.
    """

    def __init__(self, message: str, code: AuthErrorCode) -> None:
        super().__init__(message)
        self.code = code


class NotFoundError(MarketplaceError):
    pass


class WriteFailure(MarketplaceError):
    """An insert, update or delete did not go through. Nothing was applied."""
