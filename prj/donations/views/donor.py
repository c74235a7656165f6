"""
donations/views/donor.py
────────────────────────
Donor-facing views: the public list of requests and the donation page with
the student's UPI details.
"""

from urllib.parse import urlencode

from django.contrib import messages
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse

from core.utils import ACTION_ERRORS, flash_error

from ..forms import DonationForm
from ..models import DonationRequest
from ..services import apply_donation, donations_for_request, is_contributable, list_open_requests
from .utils import generate_upi_qr


def donation_requests_view(req):
    """
    Every browsable request, newest first, with the student's documents
    and whether the request can accept donations yet.
    """
    requests = list(list_open_requests())
    for donation_request in requests:
        donation_request.can_contribute = is_contributable(donation_request)

    return render(req, 'donations/donation_requests.html', {
        'requests': requests,
    })


def donate_view(req, request_id):
    """
    GET shows the recipient, their UPI id and a scannable QR code; POST
    records the pledge against the ledger.
    """
    if not req.user.is_authenticated:
        messages.error(req, 'Please login to donate.')
        return redirect(f"{reverse('login')}?{urlencode({'next': req.path})}")

    donation_request = get_object_or_404(
        DonationRequest.objects.select_related('student').prefetch_related('student__documents'),
        pk=request_id,
    )
    if not donation_request.accepts_donations:
        if donation_request.status == DonationRequest.Status.COMPLETED:
            messages.info(req, 'This request has already been fully funded.')
        else:
            messages.info(req, 'This request is not accepting donations.')
        return redirect('donation_requests')

    if req.method == 'POST':
        form = DonationForm(req.POST, remaining=donation_request.remaining_amount)
        if form.is_valid():
            try:
                apply_donation(req.user, donation_request.pk, form.cleaned_data['amount'])
            except ACTION_ERRORS as exc:
                flash_error(req, exc, 'Failed to process donation.')
            else:
                messages.success(req, 'Donation successful! Thank you for your contribution.')
                return redirect('donation_requests')
        else:
            messages.error(req, 'Invalid donation amount.')
    else:
        form = DonationForm(remaining=donation_request.remaining_amount)

    student = donation_request.student
    return render(req, 'donations/donate.html', {
        'donation_request': donation_request,
        'student':          student,
        'form':             form,
        'can_contribute':   is_contributable(donation_request),
        'donations':        donations_for_request(donation_request)[:10],
        'qr_base64':        generate_upi_qr(
            upi_id=student.upi_id,
            payee_name=student.full_name,
            note=f'{donation_request.get_donation_type_display()} support',
        ),
    })
