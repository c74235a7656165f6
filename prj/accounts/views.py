"""
accounts/views.py
─────────────────
Authentication views (login, logout, sign-up, password change), the one-time
student registration and the student's own profile page.

All templates are resolved from accounts/templates/accounts/.
"""

from django.contrib import messages
from django.contrib.auth import authenticate, login, logout, update_session_auth_hash
from django.contrib.auth.decorators import login_required
from django.contrib.auth.forms import PasswordChangeForm
from django.shortcuts import redirect, render
from django.utils.http import url_has_allowed_host_and_scheme

from core.utils import ACTION_ERRORS, add_form_control_class, flash_error, require_POST_or_405
from documents.forms import DocumentUploadForm
from documents.models import Document
from documents.services import documents_for_profile
from donations.forms import DonationRequestForm
from donations.services import requests_for_student

from .forms import SignupForm, StudentRegistrationForm
from .services import get_profile, register_profile


def _safe_next(req, default):
    next_url = req.POST.get('next') or req.GET.get('next')
    if next_url and url_has_allowed_host_and_scheme(next_url, allowed_hosts={req.get_host()}):
        return next_url
    return default


# ── Login / Logout / Sign-up ──────────────────────────────────────────────────

def login_view(req):
    """Show the login form (GET) or authenticate and redirect (POST)."""
    if req.user.is_authenticated:
        return redirect('homepage')

    if req.method == 'POST':
        username = req.POST.get('username', '').strip()
        password = req.POST.get('password', '')
        user = authenticate(req, username=username, password=password)
        if user is not None:
            login(req, user)
            messages.success(req, f'Welcome back, {user.get_full_name() or user.username}!')
            return redirect(_safe_next(req, 'profile'))
        messages.error(req, 'Invalid username or password. Please try again.')

    return render(req, 'accounts/login.html', {'next': req.GET.get('next', '')})


@require_POST_or_405
def logout_view(req):
    """Log the current user out (POST only)."""
    logout(req)
    messages.info(req, 'You have been logged out.')
    return redirect('login')


def signup_view(req):
    """Create an account and log straight in."""
    if req.user.is_authenticated:
        return redirect('homepage')

    if req.method == 'POST':
        form = SignupForm(req.POST)
        if form.is_valid():
            user = form.save()
            login(req, user, backend='django.contrib.auth.backends.ModelBackend')
            messages.success(req, 'Account created. Students can now complete their registration.')
            return redirect(_safe_next(req, 'register'))
        messages.error(req, 'Please fix the errors below.')
    else:
        form = SignupForm()

    add_form_control_class(form)
    return render(req, 'accounts/signup.html', {'form': form, 'next': req.GET.get('next', '')})


# ── Password management ───────────────────────────────────────────────────────

@login_required
def password_change_view(req):
    """Allow a logged-in user to change their own password."""
    if req.method == 'POST':
        form = PasswordChangeForm(req.user, req.POST)
        if form.is_valid():
            user = form.save()
            update_session_auth_hash(req, user)
            messages.success(req, 'Your password was updated successfully.')
            return redirect('password_change_done')
        messages.error(req, 'Please fix the errors below.')
    else:
        form = PasswordChangeForm(req.user)

    add_form_control_class(form)
    return render(req, 'accounts/password_change.html', {'form': form})


@login_required
def password_change_done_view(req):
    """Confirmation page shown after a successful password change."""
    return render(req, 'accounts/password_change_done.html')


# ── Student registration / profile ────────────────────────────────────────────

@login_required
def register_view(req):
    """One-time student registration; registered users go to their profile."""
    if get_profile(req.user) is not None:
        return redirect('profile')

    if req.method == 'POST':
        form = StudentRegistrationForm(req.POST)
        if form.is_valid():
            try:
                register_profile(req.user, form.cleaned_data)
            except ACTION_ERRORS as exc:
                flash_error(req, exc, 'Registration failed.')
            else:
                messages.success(req, 'Registration successful!')
                return redirect('profile')
        else:
            messages.error(req, 'Please fix the errors below.')
    else:
        form = StudentRegistrationForm()

    return render(req, 'accounts/register.html', {'form': form})


@login_required
def profile_view(req):
    """
    The student's home: profile details, one upload slot per document type
    (showing Uploaded / Verified badges), their donation requests and the
    form to post a new one.
    """
    profile = get_profile(req.user)
    if profile is None:
        return redirect('register')

    documents = {doc.document_type: doc for doc in documents_for_profile(profile)}
    document_slots = [
        {'type': value, 'label': label, 'document': documents.get(value)}
        for value, label in Document.DocumentType.choices
    ]

    return render(req, 'accounts/profile.html', {
        'profile':        profile,
        'document_slots': document_slots,
        'upload_form':    DocumentUploadForm(),
        'requests':       requests_for_student(profile),
        'request_form':   DonationRequestForm(),
    })
