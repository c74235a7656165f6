"""
donations/models.py
───────────────────
The donation ledger.

DonationRequest – what a student needs, e.g. "Books – ₹1,200", with the
                  amount still outstanding and its lifecycle status.
Donation        – one pledge by a donor against a request.  Append-only.

The balance columns are never written with plain ``save()`` from outside
donations.services; apply_donation decrements them with a conditional
UPDATE so concurrent donors cannot overwrite each other.
"""

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone


class DonationRequest(models.Model):
    """
    A student's request for funds.

    ``amount`` is fixed at creation.  ``remaining_amount`` starts equal to it
    and only ever goes down.  Status moves open → in_progress → completed,
    or straight from open to completed when one donation covers everything.
    """

    class DonationType(models.TextChoices):
        FOOD      = 'food',      'Food'
        BOOKS     = 'books',     'Books'
        ROOM_RENT = 'room_rent', 'Room Rent'
        MEDICAL   = 'medical',   'Medical'

    class Status(models.TextChoices):
        OPEN        = 'open',        'Open'
        IN_PROGRESS = 'in_progress', 'In Progress'
        # Not produced by any workflow; settable by hand in the Django admin.
        APPROVED    = 'approved',    'Approved'
        COMPLETED   = 'completed',   'Completed'

    # Donations are only applied while a request is in one of these states.
    ACCEPTING_STATUSES = (Status.OPEN, Status.IN_PROGRESS)

    student = models.ForeignKey(
        'accounts.Profile',
        on_delete=models.CASCADE,
        related_name='donation_requests',
    )
    donation_type = models.CharField(
        max_length=20,
        choices=DonationType.choices,
        default=DonationType.FOOD,
    )
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text='Total amount requested (INR).',
    )
    remaining_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text='Amount still to be raised (INR).',
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.OPEN,
    )
    description = models.TextField(
        blank=True,
        help_text='What the money is for.',
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Donation Request'
        verbose_name_plural = 'Donation Requests'
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name='donation_request_amount_positive',
            ),
            models.CheckConstraint(
                condition=Q(remaining_amount__gte=0) & Q(remaining_amount__lte=F('amount')),
                name='donation_request_remaining_within_amount',
            ),
        ]
        indexes = [
            models.Index(fields=['status', '-created_at'], name='donation_req_status_created'),
        ]

    def __str__(self):
        return f"{self.get_donation_type_display()} – ₹{self.amount} ({self.get_status_display()})"

    @property
    def raised_amount(self):
        return self.amount - self.remaining_amount

    @property
    def progress_pct(self):
        return round(self.raised_amount / self.amount * 100) if self.amount else 0

    @property
    def accepts_donations(self):
        return self.status in self.ACCEPTING_STATUSES

    def ledger_status(self):
        """The status the balance implies: open, in_progress or completed."""
        if self.remaining_amount == 0:
            return self.Status.COMPLETED
        if self.remaining_amount == self.amount:
            return self.Status.OPEN
        return self.Status.IN_PROGRESS

    def clean(self):
        """
        Staff may park an unfunded request as ``approved``.  Any other status
        has to match the balance, so completed always means fully funded.
        """
        if self.amount is None or self.remaining_amount is None:
            return
        allowed = {self.ledger_status()}
        if self.remaining_amount > 0:
            allowed.add(self.Status.APPROVED)
        if self.status in allowed:
            return
        if self.remaining_amount > 0:
            message = (
                f'With ₹{self.remaining_amount} still needed the status must be '
                f'"{self.ledger_status().label}" or "Approved".'
            )
        else:
            message = 'A fully funded request must stay "Completed".'
        raise ValidationError({'status': message})


class Donation(models.Model):
    """
    A donor's contribution to one DonationRequest.  Rows are inserted by
    donations.services.apply_donation and never updated or deleted.
    """

    request = models.ForeignKey(
        DonationRequest,
        on_delete=models.PROTECT,
        related_name='donations',
    )
    donor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='donations',
    )
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Donation'
        verbose_name_plural = 'Donations'
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name='donation_amount_positive',
            ),
        ]

    def __str__(self):
        return f"{self.donor} → {self.request} (₹{self.amount})"
