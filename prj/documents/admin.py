"""
documents/admin.py
──────────────────
Admin registration for Document.

The verified flag is read-only in the change form.  It is only changed by
the bulk actions, which go through documents.services.verify_document and
therefore need the ``documents.verify_document`` permission.
"""

from django.contrib import admin, messages

from .models import Document
from .services import can_verify_documents, verify_document


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display    = ('profile', 'document_type', 'file_path', 'verified', 'created_at')
    list_filter     = ('document_type', 'verified')
    search_fields   = ('profile__full_name', 'profile__email', 'file_path')
    readonly_fields = ('profile', 'document_type', 'file_path', 'verified', 'created_at')
    actions         = ('mark_verified', 'mark_unverified')

    def has_verify_permission(self, request):
        return can_verify_documents(request.user)

    def _set_verified(self, request, queryset, verified):
        for document in queryset:
            verify_document(request.user, document.pk, verified)
        self.message_user(
            request,
            f'{queryset.count()} document(s) marked {"verified" if verified else "not verified"}.',
            messages.SUCCESS,
        )

    @admin.action(description='Mark selected documents as verified', permissions=['verify'])
    def mark_verified(self, request, queryset):
        self._set_verified(request, queryset, True)

    @admin.action(description='Mark selected documents as not verified', permissions=['verify'])
    def mark_unverified(self, request, queryset):
        self._set_verified(request, queryset, False)
