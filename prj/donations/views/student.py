"""
donations/views/student.py
──────────────────────────
Student-facing view: post a new donation request from the profile page.
"""

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.shortcuts import redirect

from core.utils import ACTION_ERRORS, flash_error, require_POST_or_405

from ..forms import DonationRequestForm
from ..services import create_request


@login_required
@require_POST_or_405
def create_request_view(req):
    form = DonationRequestForm(req.POST)
    if not form.is_valid():
        for errors in form.errors.values():
            for error in errors:
                messages.error(req, error)
        return redirect('profile')

    cd = form.cleaned_data
    try:
        create_request(req.user, cd['donation_type'], cd['amount'], cd.get('description', ''))
    except ACTION_ERRORS as exc:
        flash_error(req, exc, 'Failed to create request.')
    else:
        messages.success(req, 'Donation request created successfully.')
    return redirect('profile')
