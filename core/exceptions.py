"""
Error taxonomy shared by the record store, the facility session and the API.

Business-rule failures use Django's own ValidationError so that the same
exception flows from model validators, services and serializers alike.
"""
from django.core.exceptions import ValidationError

__all__ = ["ValidationError", "ImmunizationError", "AuthError", "FormatError", "StorageError"]


class ImmunizationError(Exception):
    """Base class for tracker errors that are not input validation failures."""

    default_message = "The operation could not be completed."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthError(ImmunizationError):
    """Wrong facility code, password or security answers, or no facility logged in."""

    default_message = "Authentication failed."


class FormatError(ImmunizationError):
    """A backup document is malformed; raised before anything is changed."""

    default_message = "The backup file is not in a recognised format."


class StorageError(ImmunizationError):
    """The database rejected a write; the transaction was rolled back."""

    default_message = "Could not save changes. Please try again."
