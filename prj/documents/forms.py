"""
documents/forms.py
──────────────────
Upload form used on the student's profile page.
"""

from django import forms
from django.core.validators import FileExtensionValidator

from .models import Document

ALLOWED_EXTENSIONS = ['pdf', 'jpg', 'jpeg', 'png']


class DocumentUploadForm(forms.Form):
    document_type = forms.ChoiceField(
        choices=Document.DocumentType.choices,
        widget=forms.HiddenInput,
    )
    file = forms.FileField(
        validators=[FileExtensionValidator(ALLOWED_EXTENSIONS)],
        widget=forms.ClearableFileInput(attrs={'accept': '.pdf,.jpg,.jpeg,.png'}),
        help_text='PDF, JPG or PNG.',
    )
