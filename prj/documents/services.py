"""
documents/services.py
─────────────────────
Everything that touches uploaded documents: storing blobs, handing out
signed preview links and the verifier workflow.

Verifier operations check the ``documents.verify_document`` permission right
here, so a view that forgets its decorator still cannot verify anything.

Functions
─────────
upload_document(actor, document_type, uploaded_file)
    Store the file and record a Document for the actor's profile.

documents_for_profile(profile)
    The profile's documents.

list_documents_for_review(actor)
    Every document, newest first (verifiers only).

verify_document(actor, doc_id, verified)
    Set or clear the verified flag (verifiers only).

create_signed_url(path, ttl_seconds) / resolve_signed_token(token)
    Issue and check time-limited links to a stored file.

preview_url(document)
    Signed link for one document, reused while it is still valid.
"""

import logging
import os
import time
import uuid

from django.conf import settings
from django.core import signing
from django.core.cache import cache
from django.core.exceptions import ValidationError
from django.core.files.storage import default_storage
from django.db import DatabaseError, IntegrityError, transaction
from django.urls import reverse

from accounts.models import Profile
from core.exceptions import NotAuthorizedError, StoreError, require_authenticated
from donations.services import browsable_statuses

from .models import Document

logger = logging.getLogger(__name__)

SIGNING_SALT = 'documents.signed-url'

# Cached preview links are dropped this many seconds before they expire, so a
# page never embeds a link that dies while it is loading.
PREVIEW_CACHE_MARGIN = 5


class InvalidLinkError(Exception):
    """The signed token was tampered with or is not a document link."""


class ExpiredLinkError(InvalidLinkError):
    """The signed token was genuine but its validity window has passed."""


# ── Capability checks ─────────────────────────────────────────────────────────

def can_verify_documents(user):
    return bool(
        user is not None
        and user.is_authenticated
        and user.has_perm('documents.verify_document')
    )


def require_verifier(actor):
    require_authenticated(actor)
    if not can_verify_documents(actor):
        raise NotAuthorizedError('Access denied – verifiers only.')
    return actor


def can_preview(actor, document):
    """
    Verifiers and the owner may always preview.  Anyone else may preview a
    document while its owner has a request in the public browse list, since
    donors review documents before contributing.
    """
    if can_verify_documents(actor):
        return True
    if actor is not None and actor.is_authenticated and actor.pk == document.profile_id:
        return True
    return document.profile.donation_requests.filter(status__in=browsable_statuses()).exists()


# ── Upload ────────────────────────────────────────────────────────────────────

def storage_path(profile, document_type, filename):
    """``<user id>/<document type>-<random>.<ext>`` – unique, never reused."""
    ext = os.path.splitext(filename)[1].lower()
    return f'{profile.pk}/{document_type}-{uuid.uuid4().hex}{ext}'


def upload_document(actor, document_type, uploaded_file):
    """
    Save *uploaded_file* to storage and record it as *actor*'s document of
    *document_type*.  Each type can be uploaded once.  If the database write
    fails the stored blob is removed again.
    """
    require_authenticated(actor)
    profile = Profile.objects.filter(pk=actor.pk, is_student=True).first()
    if profile is None:
        raise NotAuthorizedError('Only registered students can upload documents.')
    if document_type not in Document.DocumentType.values:
        raise ValidationError(f'Unknown document type "{document_type}".')
    if Document.objects.filter(profile=profile, document_type=document_type).exists():
        raise ValidationError('This document has already been uploaded.')

    try:
        saved_path = default_storage.save(
            storage_path(profile, document_type, uploaded_file.name),
            uploaded_file,
        )
    except OSError as exc:
        raise StoreError('Could not store the uploaded file.') from exc

    try:
        with transaction.atomic():
            document = Document.objects.create(
                profile=profile,
                document_type=document_type,
                file_path=saved_path,
            )
    except IntegrityError:
        default_storage.delete(saved_path)
        raise ValidationError('This document has already been uploaded.')
    except DatabaseError as exc:
        default_storage.delete(saved_path)
        raise StoreError('Could not record the uploaded document.') from exc

    logger.info(f'Profile {profile.pk} uploaded {document_type} as {saved_path}')
    return document


def documents_for_profile(profile):
    return Document.objects.filter(profile=profile).order_by('document_type')


# ── Verification ──────────────────────────────────────────────────────────────

def list_documents_for_review(actor):
    require_verifier(actor)
    return Document.objects.select_related('profile').order_by('-created_at')


def verify_document(actor, doc_id, verified):
    """
    Set the verified flag of one document.  Only the flag changes: donation
    requests are not re-evaluated and completed requests stay completed.
    Raises Document.DoesNotExist for an unknown id.
    """
    require_verifier(actor)
    document = Document.objects.select_related('profile').get(pk=doc_id)
    document.verified = bool(verified)
    try:
        document.save(update_fields=['verified'])
    except DatabaseError as exc:
        raise StoreError('Could not update the document status.') from exc

    logger.info(
        f'Document {document.pk} marked {"verified" if document.verified else "rejected"} '
        f'by user {actor.pk}'
    )
    return document


# ── Signed links ──────────────────────────────────────────────────────────────

def create_signed_url(path, ttl_seconds=None):
    """
    Return a site-relative URL that serves the stored file at *path* until
    *ttl_seconds* (default ``DOCUMENT_URL_TTL``) have passed.
    """
    ttl = settings.DOCUMENT_URL_TTL if ttl_seconds is None else ttl_seconds
    token = signing.dumps(
        {'path': path, 'exp': int(time.time()) + ttl},
        salt=SIGNING_SALT,
    )
    return reverse('documents:signed_file', args=[token])


def resolve_signed_token(token):
    """Return the storage path carried by *token* or raise InvalidLinkError."""
    try:
        payload = signing.loads(token, salt=SIGNING_SALT)
    except signing.BadSignature:
        raise InvalidLinkError(token)
    if not isinstance(payload, dict) or 'path' not in payload or 'exp' not in payload:
        raise InvalidLinkError(token)
    if payload['exp'] < time.time():
        raise ExpiredLinkError(token)
    return payload['path']


def preview_url(document, ttl_seconds=None):
    """
    Signed link for *document*.  Repeated calls inside the validity window
    return the same link instead of signing a new one.
    """
    ttl = settings.DOCUMENT_URL_TTL if ttl_seconds is None else ttl_seconds
    key = f'documents:preview:{document.pk}'
    url = cache.get(key)
    if url is None:
        url = create_signed_url(document.file_path, ttl)
        timeout = ttl - PREVIEW_CACHE_MARGIN
        if timeout > 0:
            cache.set(key, url, timeout=timeout)
    return url
