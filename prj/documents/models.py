"""
documents/models.py
───────────────────
Verification documents uploaded by students.

Document – metadata row for one uploaded file.  The blob itself lives in
           Django's default storage under ``file_path`` and is only ever
           handed out through a signed, time-limited link.
"""

import os

from django.db import models


class Document(models.Model):
    """
    One verification document.  Students create it by uploading; only a
    verifier flips ``verified``.  Rows are never deleted.
    """

    class DocumentType(models.TextChoices):
        ADMISSION_BILL       = 'admission_bill',       'Admission Bill'
        TWELFTH_MARKSHEET    = 'twelfth_marksheet',    'Twelfth Marksheet'
        GRADUATION_MARKSHEET = 'graduation_marksheet', 'Graduation Marksheet'
        OTHER                = 'other',                'Other'

    profile = models.ForeignKey(
        'accounts.Profile',
        on_delete=models.CASCADE,
        related_name='documents',
    )
    document_type = models.CharField(
        max_length=30,
        choices=DocumentType.choices,
    )
    file_path = models.CharField(
        max_length=255,
        help_text='Path of the uploaded file inside the document storage.',
    )
    verified = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Document'
        verbose_name_plural = 'Documents'
        constraints = [
            models.UniqueConstraint(
                fields=['profile', 'document_type'],
                name='one_document_per_type_per_profile',
            ),
        ]
        permissions = [
            ('verify_document', 'Can verify student documents'),
        ]

    def __str__(self):
        state = 'verified' if self.verified else 'unverified'
        return f"{self.get_document_type_display()} – {self.profile.full_name} ({state})"

    @property
    def extension(self):
        return os.path.splitext(self.file_path)[1].lower()

    @property
    def is_pdf(self):
        """PDFs are previewed in an embedded viewer, everything else as an image."""
        return self.extension == '.pdf'
