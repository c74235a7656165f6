"""
URL configuration for the studentaid project.

  ''               core       – landing + about
  ''               accounts   – login / sign-up / registration / profile
  ''               donations  – browse requests, donate, post a request
  ''               documents  – uploads, previews, verifier dashboard
  'admin/'         Django admin
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('core.urls')),
    path('', include('accounts.urls')),
    path('', include('donations.urls')),
    path('', include('documents.urls')),
]

handler404 = 'core.views.handler404'
handler500 = 'core.views.handler500'
