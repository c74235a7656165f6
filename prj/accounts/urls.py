"""
accounts/urls.py
────────────────
URL patterns for authentication, registration and the student profile.
Include in the root urls.py with:
    path('', include('accounts.urls')),
"""

from django.urls import path

from . import views

urlpatterns = [
    path('login/',    views.login_view,    name='login'),
    path('logout/',   views.logout_view,   name='logout'),
    path('signup/',   views.signup_view,   name='signup'),
    path('register/', views.register_view, name='register'),
    path('profile/',  views.profile_view,  name='profile'),
    path('password-change/',       views.password_change_view,      name='password_change'),
    path('password-change/done/',  views.password_change_done_view, name='password_change_done'),
]
