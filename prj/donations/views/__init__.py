"""
donations/views/
────────────────
Split into sub-modules for clarity:
  utils.py   – UPI QR code helpers
  student.py – student posts a donation request
  donor.py   – browse requests, pledge a donation
"""
from .donor import donate_view, donation_requests_view
from .student import create_request_view

__all__ = [
    # student
    'create_request_view',
    # donor
    'donation_requests_view',
    'donate_view',
]
