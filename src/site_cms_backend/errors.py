"""
Error taxonomy for the CMS backend.

Every failure raised by the service layer is a ``CmsError`` subclass carrying
the HTTP status it maps to. The HTTP surface converts them into
``{"error": message}`` responses with a single exception handler.
"""

from __future__ import annotations

from typing import Optional


class CmsError(Exception):
    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(CmsError):
    """Missing or malformed input."""

    status_code = 400


class MissingCredentialError(CmsError):
    """No bearer token was supplied."""

    status_code = 401


class AuthenticationError(CmsError):
    """
    Bad credentials (401) or an invalid/expired token (403).

    The login flow raises it with the default status; the token verifier
    raises it with ``status_code=403``.
    """

    status_code = 401


class UnsupportedMediaError(CmsError):
    status_code = 400


class PayloadTooLargeError(CmsError):
    status_code = 400


class AccessDeniedError(CmsError):
    """A filename resolved outside the upload directory."""

    status_code = 400


class NotFoundError(CmsError):
    status_code = 404


class ProcessingError(CmsError):
    """Image compression failed."""

    status_code = 500


class StoreUnavailableError(CmsError):
    """The document store is not configured or cannot be reached."""

    status_code = 500
