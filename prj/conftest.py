from datetime import timedelta
from decimal import Decimal

import pytest


@pytest.fixture(autouse=True)
def private_media(settings, tmp_path):
    """Every test stores uploads in its own temporary directory."""
    settings.MEDIA_ROOT = tmp_path / 'media'
    return settings.MEDIA_ROOT


@pytest.fixture(autouse=True)
def plain_static_storage(settings):
    """Admin pages render {% static %}; tests run without collectstatic."""
    settings.STORAGES = {
        **settings.STORAGES,
        'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
    }


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


def make_student(username, full_name='Asha Verma'):
    from accounts.models import Profile, User

    user = User.objects.create_user(username=username, email=f'{username}@example.com', password='pw-12345-x')
    Profile.objects.create(
        user=user,
        email=user.email,
        full_name=full_name,
        phone='9876543210',
        current_institution='IIT Delhi',
        course='B.Tech',
        upi_id=f'{username}@upi',
        is_student=True,
    )
    return User.objects.get(pk=user.pk)


def make_request(profile, amount, remaining=None, status='open', age_minutes=0, donation_type='books'):
    from django.utils import timezone

    from donations.models import DonationRequest

    amount = Decimal(amount)
    return DonationRequest.objects.create(
        student=profile,
        donation_type=donation_type,
        amount=amount,
        remaining_amount=amount if remaining is None else Decimal(remaining),
        status=status,
        description='Semester textbooks',
        created_at=timezone.now() - timedelta(minutes=age_minutes),
    )


def make_document(profile, document_type='admission_bill', verified=False, ext='.pdf'):
    from documents.models import Document

    return Document.objects.create(
        profile=profile,
        document_type=document_type,
        file_path=f'{profile.pk}/{document_type}-abc{ext}',
        verified=verified,
    )


@pytest.fixture
def student(db):
    return make_student('asha')


@pytest.fixture
def profile(student):
    return student.profile


@pytest.fixture
def donor(db):
    from accounts.models import User
    return User.objects.create_user(username='ravi', email='ravi@example.com', password='pw-12345-x')


@pytest.fixture
def verifier(db):
    from django.contrib.auth.models import Permission

    from accounts.models import User

    user = User.objects.create_user(username='meera', email='meera@example.com', password='pw-12345-x')
    user.user_permissions.add(
        Permission.objects.get(content_type__app_label='documents', codename='verify_document')
    )
    # Fresh instance so the permission cache is empty.
    return User.objects.get(pk=user.pk)


@pytest.fixture
def verified_document(profile):
    return make_document(profile, verified=True)


@pytest.fixture
def open_request(profile, verified_document):
    return make_request(profile, '1000')
