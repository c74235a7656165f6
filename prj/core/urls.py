"""
core/urls.py
────────────
Landing and about pages.  Mounted at the site root by studentaid/urls.py.
"""

from django.urls import path

from . import views

urlpatterns = [
    path('',       views.home_view,  name='homepage'),
    path('about/', views.about_view, name='about'),
]
