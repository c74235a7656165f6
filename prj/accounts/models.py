"""
accounts/models.py
──────────────────
Identity and profile models.

User    – the login account (Django's AbstractUser, email required).
Profile – the public identity of a student: name, institution, course and
          the UPI id donors transfer money to.  One row per User, sharing
          the User's primary key.
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """
    Login account for students, donors and verifiers alike.

    Donors only need a User; students additionally register a Profile.
    Verifiers are Users holding the ``documents.verify_document`` permission
    (see the ``grant_verifier`` management command).
    """

    email = models.EmailField(
        verbose_name='email address',
        help_text='Used for account recovery and shown to verifiers.',
    )

    def __str__(self):
        return self.get_full_name() or self.username

    class Meta:
        verbose_name = 'User'
        verbose_name_plural = 'Users'


class Profile(models.Model):
    """
    Created once, at registration, by the owning user.

    The primary key *is* the user's primary key, so ``profile.pk`` and
    ``user.pk`` can be used interchangeably in storage paths and URLs.
    """

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name='profile',
    )
    email = models.EmailField(
        help_text='Copied from the account at registration.',
    )
    full_name = models.CharField(
        max_length=200,
        help_text='Full legal name shown to donors and verifiers.',
    )
    phone = models.CharField(
        max_length=20,
        blank=True,
    )
    is_student = models.BooleanField(
        default=True,
        help_text='Students can upload documents and post donation requests.',
    )
    upi_id = models.CharField(
        max_length=100,
        verbose_name='UPI ID',
        help_text="Payment address donors transfer to, e.g. 'name@bank'.",
    )
    current_institution = models.CharField(
        max_length=200,
        help_text='College or university the student attends.',
    )
    course = models.CharField(
        max_length=200,
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Profile'
        verbose_name_plural = 'Profiles'
        ordering = ['full_name']

    def __str__(self):
        return f"{self.full_name} ({self.current_institution})"
