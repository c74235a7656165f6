import pytest
from django.contrib.auth.models import AnonymousUser
from django.core.exceptions import ValidationError
from django.core.management import CommandError, call_command
from django.test import RequestFactory
from django.urls import reverse

from accounts.models import Profile, User
from accounts.services import get_profile, register_profile
from core.context_processors import navigation
from core.exceptions import AuthRequiredError

REGISTRATION = {
    'full_name': 'Kiran Rao',
    'phone': '9123456780',
    'current_institution': 'Delhi University',
    'course': 'B.Com',
    'upi_id': 'kiran@okbank',
}


@pytest.fixture
def new_user(db):
    return User.objects.create_user(username='kiran', email='kiran@example.com', password='pw-12345-x')


# ── register_profile ──────────────────────────────────────────────────────────

def test_register_profile_creates_student_profile(new_user):
    profile = register_profile(new_user, REGISTRATION)

    assert profile.pk == new_user.pk
    assert profile.is_student is True
    assert profile.email == 'kiran@example.com'
    assert profile.upi_id == 'kiran@okbank'
    assert get_profile(new_user) == profile


def test_register_profile_only_once(new_user):
    register_profile(new_user, REGISTRATION)

    with pytest.raises(ValidationError):
        register_profile(new_user, dict(REGISTRATION, full_name='Someone Else'))
    assert Profile.objects.get().full_name == 'Kiran Rao'


@pytest.mark.django_db
def test_register_profile_needs_login():
    with pytest.raises(AuthRequiredError):
        register_profile(AnonymousUser(), REGISTRATION)


@pytest.mark.django_db
def test_get_profile_for_anonymous_is_none():
    assert get_profile(AnonymousUser()) is None


# ── Views ─────────────────────────────────────────────────────────────────────

def test_signup_logs_in_and_goes_to_registration(client, db):
    response = client.post(reverse('signup'), {
        'username': 'nisha',
        'email': 'nisha@example.com',
        'password1': 'Long-enough-pw-42',
        'password2': 'Long-enough-pw-42',
    })

    assert response.status_code == 302
    assert response.url == reverse('register')
    assert User.objects.filter(username='nisha').exists()


def test_register_view_creates_profile(client, new_user):
    client.force_login(new_user)

    response = client.post(reverse('register'), REGISTRATION)

    assert response.status_code == 302
    assert response.url == reverse('profile')
    assert Profile.objects.filter(pk=new_user.pk).exists()


def test_register_view_redirects_registered_users(client, student):
    client.force_login(student)

    response = client.get(reverse('register'))

    assert response.url == reverse('profile')


def test_profile_without_registration_redirects(client, new_user):
    client.force_login(new_user)

    response = client.get(reverse('profile'))

    assert response.url == reverse('register')


def test_profile_shows_one_slot_per_document_type(client, student, verified_document):
    client.force_login(student)

    response = client.get(reverse('profile'))

    slots = response.context['document_slots']
    assert [slot['type'] for slot in slots] == [
        'admission_bill', 'twelfth_marksheet', 'graduation_marksheet', 'other',
    ]
    assert slots[0]['document'] == verified_document
    assert slots[1]['document'] is None


def test_login_redirects_to_profile(client, student):
    response = client.post(reverse('login'), {'username': 'asha', 'password': 'pw-12345-x'})

    assert response.status_code == 302
    assert response.url == reverse('profile')


def test_login_ignores_foreign_next(client, student):
    response = client.post(
        reverse('login') + '?next=https://evil.example.com/',
        {'username': 'asha', 'password': 'pw-12345-x'},
    )

    assert response.url == reverse('profile')


def test_logout_is_post_only(client, student):
    client.force_login(student)

    assert client.get(reverse('logout')).status_code == 405
    assert client.post(reverse('logout')).status_code == 302


# ── grant_verifier ────────────────────────────────────────────────────────────

def test_grant_and_revoke_verifier(new_user):
    call_command('grant_verifier', 'kiran')
    assert User.objects.get(pk=new_user.pk).has_perm('documents.verify_document')

    call_command('grant_verifier', 'kiran', '--revoke')
    assert not User.objects.get(pk=new_user.pk).has_perm('documents.verify_document')


@pytest.mark.django_db
def test_grant_verifier_unknown_user():
    with pytest.raises(CommandError):
        call_command('grant_verifier', 'nobody')


# ── Navigation context ────────────────────────────────────────────────────────

def nav_for(user):
    request = RequestFactory().get('/')
    request.user = user
    return navigation(request)


@pytest.mark.django_db
def test_navigation_for_anonymous():
    context = nav_for(AnonymousUser())

    assert context['current_profile'] is None
    assert context['is_student'] is False
    assert context['can_verify_documents'] is False


def test_navigation_for_student_and_verifier(student, verifier):
    assert nav_for(student)['is_student'] is True
    assert nav_for(verifier)['can_verify_documents'] is True
    assert nav_for(verifier)['current_profile'] is None
