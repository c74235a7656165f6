"""
accounts/services.py
────────────────────
Profile registration.  The acting user is always passed in explicitly; no
function here reads the session.

Functions
─────────
register_profile(actor, data)
    Create the actor's one and only student Profile.

get_profile(actor)
    Return the actor's Profile or None.
"""

import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError, IntegrityError, transaction

from core.exceptions import StoreError, require_authenticated

from .models import Profile

logger = logging.getLogger(__name__)


def get_profile(actor):
    """Return *actor*'s Profile, or None for anonymous users and donors."""
    if actor is None or not actor.is_authenticated:
        return None
    return Profile.objects.filter(pk=actor.pk).first()


def register_profile(actor, data):
    """
    Create a student Profile for *actor* from the cleaned form *data*.

    A user registers exactly once; a second attempt raises ValidationError.
    """
    require_authenticated(actor)
    if Profile.objects.filter(pk=actor.pk).exists():
        raise ValidationError('You have already registered.')

    try:
        with transaction.atomic():
            profile = Profile.objects.create(
                user=actor,
                email=actor.email,
                full_name=data['full_name'],
                phone=data.get('phone', ''),
                current_institution=data['current_institution'],
                course=data.get('course', ''),
                upi_id=data['upi_id'],
                is_student=True,
            )
    except IntegrityError:
        raise ValidationError('You have already registered.')
    except DatabaseError as exc:
        raise StoreError('Could not save the profile.') from exc

    logger.info(f'Registered student profile for user {actor.pk}')
    return profile
