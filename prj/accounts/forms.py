"""
accounts/forms.py
─────────────────
Sign-up form for new accounts and the one-time student registration form.
"""

from django import forms
from django.contrib.auth.forms import UserCreationForm

from .models import Profile, User


class SignupForm(UserCreationForm):
    """Create a login account.  Anyone may sign up; donors need nothing more."""

    class Meta(UserCreationForm.Meta):
        model  = User
        fields = ('username', 'email')

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['email'].required = True


class StudentRegistrationForm(forms.ModelForm):
    """
    Student details captured once after sign-up.  The email and the
    is_student flag are filled in by accounts.services.register_profile.
    """

    class Meta:
        model  = Profile
        fields = ['full_name', 'phone', 'current_institution', 'course', 'upi_id']
        labels = {
            'current_institution': 'Current institution',
        }
        widgets = {
            'full_name':           forms.TextInput(attrs={'class': 'form-control'}),
            'phone':               forms.TextInput(attrs={'type': 'tel', 'class': 'form-control'}),
            'current_institution': forms.TextInput(attrs={'class': 'form-control'}),
            'course':              forms.TextInput(attrs={'placeholder': 'e.g. B.Tech Computer Science', 'class': 'form-control'}),
            'upi_id':              forms.TextInput(attrs={'placeholder': 'name@bank', 'class': 'form-control'}),
        }
