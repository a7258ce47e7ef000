"""
ledger_app/errors.py

Error taxonomy for the supplier ledger.

- ValidationError: bad input, raised before any database call.
- NotFoundError: a referenced user or entry id does not exist.
- NotFoundOrForbidden: supplier missing OR not accessible to the caller.
  Both cases raise the same error so existence is never leaked.
- AccessDeniedError: login refused (bad credentials, pending approval).
- RemoteUnavailableError: the database cannot be reached.

Every error carries a message that is safe to show to the user.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger errors."""

    default_message = "Something went wrong."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(LedgerError):
    default_message = "Invalid input."


class NotFoundError(LedgerError):
    default_message = "Not found."


class NotFoundOrForbidden(LedgerError):
    default_message = "Supplier not found."


class AccessDeniedError(LedgerError):
    default_message = "Access denied."


class RemoteUnavailableError(LedgerError):
    default_message = "Service temporarily unavailable. Please try again later."
