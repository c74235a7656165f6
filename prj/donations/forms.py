"""
donations/forms.py
──────────────────
Forms for students posting a request and donors pledging an amount.
"""

from decimal import Decimal

from django import forms

from .models import DonationRequest


class DonationRequestForm(forms.ModelForm):
    """Form for a student to post a new DonationRequest."""

    class Meta:
        model  = DonationRequest
        fields = ['donation_type', 'amount', 'description']
        widgets = {
            'donation_type': forms.Select(attrs={'class': 'form-select'}),
            'amount':        forms.NumberInput(attrs={'step': '0.01', 'min': '1', 'placeholder': '0.00', 'class': 'form-control'}),
            'description':   forms.Textarea(attrs={'rows': 3, 'placeholder': 'What will the money be used for?', 'class': 'form-control'}),
        }

    def clean_amount(self):
        amount = self.cleaned_data['amount']
        if amount is not None and amount <= 0:
            raise forms.ValidationError('Amount must be greater than zero.')
        return amount


class DonationForm(forms.Form):
    """
    Donor form: how much to pledge.  The maximum is the request's remaining
    amount at the time the page was rendered; the ledger re-checks it when
    the donation is applied.
    """

    amount = forms.DecimalField(
        max_digits=10, decimal_places=2,
        min_value=Decimal('0.01'),
        label='Donation amount (₹)',
        widget=forms.NumberInput(attrs={'step': '0.01', 'min': '0.01', 'class': 'form-control'}),
    )

    def __init__(self, *args, remaining=None, **kwargs):
        super().__init__(*args, **kwargs)
        if remaining is not None:
            self.fields['amount'].widget.attrs['max'] = str(remaining)
            self.fields['amount'].help_text = f'Maximum amount: ₹{remaining}'
