"""
documents/views.py
──────────────────
Student upload, the verifier dashboard, document previews and the endpoint
that serves files behind signed links.
"""

import logging
import mimetypes
import os
from functools import wraps

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.exceptions import PermissionDenied
from django.core.files.storage import default_storage
from django.http import FileResponse, Http404, HttpResponseGone
from django.shortcuts import get_object_or_404, redirect, render
from django.views.decorators.clickjacking import xframe_options_sameorigin

from core.utils import ACTION_ERRORS, flash_error, require_POST_or_405

from .forms import DocumentUploadForm
from .models import Document
from .services import (
    ExpiredLinkError,
    InvalidLinkError,
    can_preview,
    can_verify_documents,
    list_documents_for_review,
    preview_url,
    resolve_signed_token,
    upload_document,
    verify_document,
)

logger = logging.getLogger(__name__)


def verifier_required(view_fn):
    """
    Decorator: unauthenticated users → login, non-verifiers → homepage
    with an error message.
    """
    @wraps(view_fn)
    def wrapper(req, *args, **kwargs):
        if not req.user.is_authenticated:
            return redirect('login')
        if not can_verify_documents(req.user):
            messages.error(req, 'Access denied – verifiers only.')
            return redirect('homepage')
        return view_fn(req, *args, **kwargs)
    return wrapper


# ── Student upload ────────────────────────────────────────────────────────────

@login_required
@require_POST_or_405
def upload_document_view(req):
    form = DocumentUploadForm(req.POST, req.FILES)
    if not form.is_valid():
        messages.error(req, 'Failed to upload document: choose a PDF, JPG or PNG file.')
        return redirect('profile')

    try:
        upload_document(req.user, form.cleaned_data['document_type'], form.cleaned_data['file'])
    except ACTION_ERRORS as exc:
        flash_error(req, exc, 'Failed to upload document.')
    else:
        messages.success(req, 'Document uploaded successfully.')
    return redirect('profile')


# ── Verifier dashboard ────────────────────────────────────────────────────────

@verifier_required
def verification_view(req):
    """All uploaded documents, newest first, with verify / reject actions."""
    documents = list_documents_for_review(req.user)
    return render(req, 'documents/verification.html', {
        'documents':     documents,
        'pending_count': sum(1 for doc in documents if not doc.verified),
    })


@verifier_required
@require_POST_or_405
def verify_document_view(req, doc_id):
    verified = req.POST.get('verified') == '1'
    try:
        verify_document(req.user, doc_id, verified)
    except Document.DoesNotExist:
        messages.error(req, 'Document not found.')
    except ACTION_ERRORS as exc:
        flash_error(req, exc, 'Failed to update document status.')
    else:
        messages.success(req, f'Document {"verified" if verified else "rejected"} successfully.')
    return redirect('documents:verification')


# ── Preview / signed file ─────────────────────────────────────────────────────

def document_preview_view(req, doc_id):
    """Show one document inline: PDFs in an embedded viewer, images as <img>."""
    document = get_object_or_404(Document.objects.select_related('profile'), pk=doc_id)
    if not can_preview(req.user, document):
        raise PermissionDenied('You cannot view this document.')

    return render(req, 'documents/preview.html', {
        'document':    document,
        'preview_url': preview_url(document),
    })


@xframe_options_sameorigin
def signed_file_view(req, token):
    """Serve the file a signed link points to, while the link is valid."""
    try:
        path = resolve_signed_token(token)
    except ExpiredLinkError:
        return HttpResponseGone('This link has expired.')
    except InvalidLinkError:
        raise Http404('Invalid link.')

    try:
        handle = default_storage.open(path, 'rb')
    except FileNotFoundError:
        logger.error(f'Signed link points to missing file {path}')
        raise Http404('File not found.')

    content_type, _ = mimetypes.guess_type(path)
    response = FileResponse(handle, content_type=content_type or 'application/octet-stream')
    response['Content-Disposition'] = f'inline; filename="{os.path.basename(path)}"'
    response['Cache-Control'] = 'private, no-store'
    return response
