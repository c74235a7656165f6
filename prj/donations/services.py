"""
donations/services.py
─────────────────────
The donation ledger: creating requests, listing them for donors and applying
donations.  Views call these functions and nothing else writes the ledger.

Every function that acts on behalf of someone takes the acting user as its
first argument; nothing here reads the session.

Functions
─────────
create_request(actor, donation_type, amount, description)
    Post a new request for the actor's student profile.

list_open_requests(include_in_progress=None)
    Requests donors can browse, newest first, with profile and documents.

is_contributable(request)
    True once any of the student's documents is verified.

apply_donation(actor, request_id, amount)
    Record a donation and decrement the remaining balance atomically.

requests_for_student(profile) / donations_for_request(request)
    Per-student and per-request listings.

ledger_totals()
    Platform-wide figures for the landing page.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.core.exceptions import PermissionDenied, ValidationError
from django.db import DatabaseError, transaction
from django.db.models import Case, Count, F, Q, Sum, Value, When

from accounts.models import Profile
from core.exceptions import StoreError, require_authenticated

from .models import Donation, DonationRequest

logger = logging.getLogger(__name__)


class InvalidAmountError(ValidationError):
    """Donation amount is not positive or exceeds what is still needed."""


class NotContributableError(ValidationError):
    """The request's owner has no verified document yet."""


# Largest value a DecimalField(max_digits=10, decimal_places=2) column holds.
MAX_AMOUNT = Decimal('99999999.99')
PAISA = Decimal('0.01')


def _to_decimal(amount, error=ValidationError):
    """
    Parse *amount* as a positive rupee amount with at most two decimal
    places.  Anything the ledger columns could not store exactly raises
    *error*.
    """
    try:
        amount = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise error(f'"{amount}" is not a valid amount.')
    if not amount.is_finite():
        raise error(f'"{amount}" is not a valid amount.')
    if amount <= 0:
        raise error('Amount must be greater than zero.')
    if amount > MAX_AMOUNT:
        raise error(f'Amount cannot exceed {MAX_AMOUNT}.')
    if amount != amount.quantize(PAISA):
        raise error('Amount cannot have more than two decimal places.')
    return amount.quantize(PAISA)


# ── Requests ──────────────────────────────────────────────────────────────────

def create_request(actor, donation_type, amount, description=''):
    """
    Create a DonationRequest for *actor*'s student profile.

    The new request starts ``open`` with its whole amount remaining.  A
    non-positive amount raises ValidationError and nothing is written.
    """
    require_authenticated(actor)
    student = Profile.objects.filter(pk=actor.pk, is_student=True).first()
    if student is None:
        raise PermissionDenied('Only registered students can create donation requests.')

    amount = _to_decimal(amount)
    if donation_type not in DonationRequest.DonationType.values:
        raise ValidationError(f'Unknown donation type "{donation_type}".')

    try:
        request = DonationRequest.objects.create(
            student=student,
            donation_type=donation_type,
            amount=amount,
            remaining_amount=amount,
            status=DonationRequest.Status.OPEN,
            description=description,
        )
    except DatabaseError as exc:
        raise StoreError('Could not create the donation request.') from exc

    logger.info(f'Student {student.pk} opened request {request.pk} for {amount}')
    return request


def browsable_statuses(include_in_progress=None):
    """
    Statuses shown on the public browse page.  Partially funded requests are
    only listed when ``BROWSE_IN_PROGRESS_REQUESTS`` (or the argument) says so.
    """
    if include_in_progress is None:
        include_in_progress = settings.BROWSE_IN_PROGRESS_REQUESTS
    statuses = [DonationRequest.Status.OPEN]
    if include_in_progress:
        statuses.append(DonationRequest.Status.IN_PROGRESS)
    return statuses


def list_open_requests(include_in_progress=None):
    """
    Requests donors can browse, newest first.  Returns a lazy QuerySet with
    each request's student profile and that profile's documents preloaded,
    so iterating it again re-runs the query.
    """
    return (
        DonationRequest.objects
        .filter(status__in=browsable_statuses(include_in_progress))
        .select_related('student')
        .prefetch_related('student__documents')
        .order_by('-created_at')
    )


def requests_for_student(profile):
    return DonationRequest.objects.filter(student=profile).order_by('-created_at')


def is_contributable(request):
    """
    A request accepts donations once at least one of its student's documents
    is verified.  The document type does not matter.
    """
    return any(doc.verified for doc in request.student.documents.all())


# ── Donations ─────────────────────────────────────────────────────────────────

def apply_donation(actor, request_id, amount):
    """
    Pledge *amount* from *actor* to the request with *request_id*.

    The balance is decremented by one conditional UPDATE that only matches
    while ``remaining_amount >= amount``, so two donors racing for the same
    balance cannot both succeed: the loser updates no row and gets
    InvalidAmountError.  Status, balance and the Donation row are written in
    one transaction.

    Raises DonationRequest.DoesNotExist for an unknown request,
    InvalidAmountError for a non-positive or too-large amount and
    NotContributableError when no document has been verified yet or the
    request is no longer open (completed, or set to approved by staff).
    """
    require_authenticated(actor)
    amount = _to_decimal(amount, error=InvalidAmountError)

    request = (
        DonationRequest.objects
        .select_related('student')
        .prefetch_related('student__documents')
        .get(pk=request_id)
    )
    if not request.accepts_donations:
        raise NotContributableError('This request is not accepting donations.')
    if not is_contributable(request):
        raise NotContributableError('This request has no verified documents yet.')

    try:
        with transaction.atomic():
            updated = (
                DonationRequest.objects
                .filter(
                    pk=request.pk,
                    status__in=DonationRequest.ACCEPTING_STATUSES,
                    remaining_amount__gte=amount,
                )
                .update(remaining_amount=F('remaining_amount') - amount)
            )
            if not updated:
                raise InvalidAmountError(
                    'Invalid donation amount: it exceeds the amount still needed.'
                )
            DonationRequest.objects.filter(pk=request.pk).update(
                status=Case(
                    When(remaining_amount=0, then=Value(DonationRequest.Status.COMPLETED)),
                    default=Value(DonationRequest.Status.IN_PROGRESS),
                ),
            )
            donation = Donation.objects.create(request=request, donor=actor, amount=amount)
    except InvalidAmountError:
        logger.warning(f'Rejected donation of {amount} to request {request.pk} by user {actor.pk}')
        raise
    except DatabaseError as exc:
        raise StoreError('Could not record the donation.') from exc

    logger.info(f'User {actor.pk} donated {amount} to request {request.pk}')
    return donation


def donations_for_request(request):
    return request.donations.select_related('donor').order_by('-created_at')


# ── Totals ────────────────────────────────────────────────────────────────────

def ledger_totals():
    """
    Platform-wide figures for the landing page:

        total_pledged    – sum of every donation ever recorded
        open_requests    – requests still raising money (open or in progress)
        funded_requests  – completed requests
    """
    pledged = Donation.objects.aggregate(s=Sum('amount'))['s'] or 0
    counts = DonationRequest.objects.aggregate(
        open_requests=Count('id', filter=Q(status__in=[
            DonationRequest.Status.OPEN, DonationRequest.Status.IN_PROGRESS,
        ])),
        funded_requests=Count('id', filter=Q(status=DonationRequest.Status.COMPLETED)),
    )
    return {
        'total_pledged':   pledged,
        'open_requests':   counts['open_requests'],
        'funded_requests': counts['funded_requests'],
    }
