"""
accounts/admin.py
─────────────────
Admin registrations for User and Profile.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Profile, User


class ProfileInline(admin.StackedInline):
    model = Profile
    can_delete = False
    extra = 0


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Default UserAdmin with the student profile shown inline."""

    inlines = (ProfileInline,)


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display  = ('full_name', 'email', 'current_institution', 'course', 'upi_id', 'is_student', 'created_at')
    list_filter   = ('is_student', 'current_institution')
    search_fields = ('full_name', 'email', 'upi_id', 'user__username')
    raw_id_fields = ('user',)
    readonly_fields = ('created_at',)
