"""
donations/urls.py
─────────────────
URL patterns for browsing requests, donating and posting a request.
Include in the root urls.py with:
    path('', include('donations.urls')),
"""

from django.urls import path

from . import views

urlpatterns = [
    path('requests/',                      views.donation_requests_view, name='donation_requests'),
    path('requests/new/',                  views.create_request_view,    name='create_request'),
    path('requests/<int:request_id>/donate/', views.donate_view,         name='donate'),
]
