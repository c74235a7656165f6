"""
documents/urls.py
─────────────────
URL patterns for uploads, verification and signed file links.
Include in the root urls.py with:
    path('', include('documents.urls')),
"""

from django.urls import path

from . import views

app_name = 'documents'

urlpatterns = [
    path('documents/upload/',               views.upload_document_view,  name='upload'),
    path('documents/<int:doc_id>/preview/', views.document_preview_view, name='preview'),
    path('documents/file/<str:token>/',     views.signed_file_view,      name='signed_file'),
    path('verification/',                   views.verification_view,     name='verification'),
    path('verification/<int:doc_id>/',      views.verify_document_view,  name='verify'),
]
