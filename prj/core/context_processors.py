"""
core/context_processors.py
──────────────────────────
Global template context injected into every request.

Registered in settings.py → TEMPLATES[0]['OPTIONS']['context_processors'].
"""


def navigation(request):
    """
    Injects the flags the navbar needs to decide which links to show:

        current_profile      – the user's Profile, or None
        is_student           – True when the profile is a student profile
        can_verify_documents – True for users holding the verifier permission
    """
    # Import here to avoid circular imports during app startup
    from documents.services import can_verify_documents

    profile = None
    if request.user.is_authenticated:
        profile = getattr(request.user, 'profile', None)

    return {
        'current_profile':      profile,
        'is_student':           bool(profile and profile.is_student),
        'can_verify_documents': can_verify_documents(request.user),
    }
