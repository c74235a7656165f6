"""
core/views.py
─────────────
Public pages: landing page, about page.
Custom error handlers (404 / 500) are registered in studentaid/urls.py.
"""

from django.shortcuts import render

from donations.services import ledger_totals


def home_view(req):
    """Landing page with the platform-wide donation totals."""
    return render(req, 'core/home.html', ledger_totals())


def about_view(req):
    """Public about / how-it-works page."""
    return render(req, 'core/about.html')


# ── Custom error pages ────────────────────────────────────────────────────────

def handler404(req, exception):
    return render(req, 'core/404.html', status=404)


def handler500(req):
    return render(req, 'core/500.html', status=500)
