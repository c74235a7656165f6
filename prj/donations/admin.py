"""
donations/admin.py
──────────────────
Admin registrations for DonationRequest and Donation.

Balances are read-only here: they only change through
donations.services.apply_donation.  Donations cannot be edited or deleted.
The status field is validated by DonationRequest.clean: staff can set
``approved`` on an unfunded request, otherwise only the status the balance
implies is accepted.
"""

from django.contrib import admin

from .models import Donation, DonationRequest


class DonationInline(admin.TabularInline):
    model = Donation
    extra = 0
    can_delete = False
    readonly_fields = ('donor', 'amount', 'created_at')

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(DonationRequest)
class DonationRequestAdmin(admin.ModelAdmin):
    list_display    = ('student', 'donation_type', 'amount', 'remaining_amount', 'status', 'created_at')
    list_filter     = ('status', 'donation_type')
    search_fields   = ('student__full_name', 'description')
    readonly_fields = ('amount', 'remaining_amount', 'created_at', 'total_donated')
    inlines         = (DonationInline,)

    def has_add_permission(self, request):
        return False

    fieldsets = (
        (None, {
            'fields': ('student', 'donation_type', 'description', 'status'),
        }),
        ('Ledger', {
            'fields': ('amount', 'remaining_amount', 'total_donated', 'created_at'),
        }),
    )

    @admin.display(description='Donated (INR)')
    def total_donated(self, obj):
        return obj.raised_amount


@admin.register(Donation)
class DonationAdmin(admin.ModelAdmin):
    list_display    = ('donor', 'request', 'amount', 'created_at')
    search_fields   = ('donor__username', 'request__student__full_name')
    readonly_fields = ('request', 'donor', 'amount', 'created_at')

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
