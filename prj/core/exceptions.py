"""
core/exceptions.py
──────────────────
Error taxonomy shared by every service module.

Bad input is reported with Django's own ValidationError (or a subclass of it
from the app that raises it).  The classes below cover the remaining cases:

StoreError         – the database or file storage failed on read or write.
AuthRequiredError  – the action needs a logged-in user and got none.
NotAuthorizedError – the user is logged in but lacks the capability.
"""

from django.core.exceptions import PermissionDenied


class StoreError(Exception):
    """A backend (database / storage) failure while serving an action."""


class AuthRequiredError(PermissionDenied):
    """Raised when an anonymous actor attempts an authenticated action."""


class NotAuthorizedError(PermissionDenied):
    """Raised when the actor is missing a required permission."""


def require_authenticated(actor):
    """Return *actor* unchanged, or raise AuthRequiredError for anonymous users."""
    if actor is None or not actor.is_authenticated:
        raise AuthRequiredError('Please log in to continue.')
    return actor
