"""
core/utils.py
─────────────
Shared helpers used by the view modules of every app.
Nothing here imports from other apps (no circular imports).
"""

import logging
from functools import wraps

from django.contrib import messages
from django.core.exceptions import PermissionDenied, ValidationError
from django.http import HttpResponseNotAllowed

from .exceptions import StoreError

logger = logging.getLogger(__name__)


# ── Form styling ──────────────────────────────────────────────────────────────

def add_form_control_class(form):
    """Inject a uniform CSS class onto every visible widget."""
    for field in form.fields.values():
        field.widget.attrs.setdefault('class', 'form-control-input')
    return form


# ── Request guards ────────────────────────────────────────────────────────────

def require_POST_or_405(view_fn):
    """Decorator: return 405 for any non-POST request."""
    @wraps(view_fn)
    def wrapper(req, *args, **kwargs):
        if req.method != 'POST':
            return HttpResponseNotAllowed(['POST'])
        return view_fn(req, *args, **kwargs)
    return wrapper


# ── Action boundary ───────────────────────────────────────────────────────────

# Every failure a service may raise on purpose.  Views catch exactly these and
# turn them into a toast; anything else is a bug and reaches the 500 handler.
ACTION_ERRORS = (ValidationError, PermissionDenied, StoreError)


def flash_error(req, exc, fallback):
    """
    Show *exc* to the user as an error toast.

    Validation and permission errors carry a user-facing message; store
    failures do not, so *fallback* is shown instead and the cause is logged.
    """
    if isinstance(exc, ValidationError):
        text = ' '.join(exc.messages) or fallback
    elif isinstance(exc, PermissionDenied):
        text = str(exc) or fallback
    else:
        logger.error(f'{fallback}: {exc}')
        text = fallback
    messages.error(req, text)
