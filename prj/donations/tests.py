import threading
from decimal import Decimal

import pytest
from django.contrib.auth.models import AnonymousUser
from django.core.exceptions import PermissionDenied, ValidationError
from django.db import connection
from django.db.models import Sum
from django.test import RequestFactory
from django.urls import reverse

from accounts.models import User
from conftest import make_document, make_request
from core.exceptions import AuthRequiredError
from documents.services import verify_document
from donations.models import Donation, DonationRequest
from donations.services import (
    InvalidAmountError,
    NotContributableError,
    apply_donation,
    create_request,
    is_contributable,
    ledger_totals,
    list_open_requests,
)
from donations.views.utils import build_upi_uri, generate_upi_qr


def donated_total(request):
    return request.donations.aggregate(s=Sum('amount'))['s'] or Decimal('0')


# ── create_request ────────────────────────────────────────────────────────────

def test_create_request_starts_open_with_full_balance(student):
    request = create_request(student, 'room_rent', Decimal('4500'), 'Hostel rent for March')

    assert request.status == DonationRequest.Status.OPEN
    assert request.amount == Decimal('4500')
    assert request.remaining_amount == Decimal('4500')
    assert request.student_id == student.pk


@pytest.mark.parametrize('amount', [Decimal('0'), Decimal('-50')])
def test_create_request_rejects_non_positive_amount(student, amount):
    with pytest.raises(ValidationError):
        create_request(student, 'food', amount)
    assert not DonationRequest.objects.exists()


def test_create_request_rejects_unknown_type(student):
    with pytest.raises(ValidationError):
        create_request(student, 'laptop', Decimal('100'))


def test_create_request_needs_student_profile(donor):
    with pytest.raises(PermissionDenied):
        create_request(donor, 'food', Decimal('100'))


@pytest.mark.django_db
def test_create_request_needs_login():
    with pytest.raises(AuthRequiredError):
        create_request(AnonymousUser(), 'food', Decimal('100'))


# ── apply_donation ────────────────────────────────────────────────────────────

def test_partial_donation_moves_request_in_progress(open_request, donor):
    donation = apply_donation(donor, open_request.pk, Decimal('400'))

    open_request.refresh_from_db()
    assert open_request.remaining_amount == Decimal('600')
    assert open_request.status == DonationRequest.Status.IN_PROGRESS
    assert donation.amount == Decimal('400')
    assert donation.donor == donor


def test_donation_of_whole_remainder_completes_request(profile, verified_document, donor):
    request = make_request(profile, '1000', remaining='300', status='in_progress')

    apply_donation(donor, request.pk, Decimal('300'))

    request.refresh_from_db()
    assert request.remaining_amount == Decimal('0')
    assert request.status == DonationRequest.Status.COMPLETED


def test_single_donation_can_complete_open_request(open_request, donor):
    apply_donation(donor, open_request.pk, Decimal('1000'))

    open_request.refresh_from_db()
    assert open_request.status == DonationRequest.Status.COMPLETED


def test_donation_above_remaining_is_rejected(profile, verified_document, donor):
    request = make_request(profile, '1000', remaining='300', status='in_progress')

    with pytest.raises(InvalidAmountError):
        apply_donation(donor, request.pk, Decimal('500'))

    request.refresh_from_db()
    assert request.remaining_amount == Decimal('300')
    assert request.status == DonationRequest.Status.IN_PROGRESS
    assert not Donation.objects.exists()


@pytest.mark.parametrize('amount', [Decimal('0'), Decimal('-10')])
def test_non_positive_donation_is_rejected(open_request, donor, amount):
    with pytest.raises(InvalidAmountError):
        apply_donation(donor, open_request.pk, amount)

    open_request.refresh_from_db()
    assert open_request.remaining_amount == Decimal('1000')


def test_second_donor_cannot_take_the_same_balance(profile, verified_document, donor):
    request = make_request(profile, '300')
    # Both donors saw remaining_amount=300 when they opened the page.
    seen_by_both = DonationRequest.objects.get(pk=request.pk)

    apply_donation(donor, seen_by_both.pk, Decimal('200'))
    with pytest.raises(InvalidAmountError):
        apply_donation(donor, seen_by_both.pk, Decimal('200'))

    request.refresh_from_db()
    assert request.remaining_amount == Decimal('100')
    assert Donation.objects.filter(request=request).count() == 1


def test_ledger_balances_after_many_donations(open_request, donor):
    for amount in ['100', '250', '50', '600', '1']:
        try:
            apply_donation(donor, open_request.pk, Decimal(amount))
        except (InvalidAmountError, NotContributableError):
            pass
        open_request.refresh_from_db()
        assert Decimal('0') <= open_request.remaining_amount <= open_request.amount
        assert donated_total(open_request) == open_request.amount - open_request.remaining_amount

    assert open_request.remaining_amount == Decimal('0')
    assert open_request.status == DonationRequest.Status.COMPLETED


def test_donation_needs_a_verified_document(profile, donor):
    make_document(profile, verified=False)
    request = make_request(profile, '500')

    with pytest.raises(NotContributableError):
        apply_donation(donor, request.pk, Decimal('100'))

    request.refresh_from_db()
    assert request.remaining_amount == Decimal('500')


def test_donation_needs_login(open_request):
    with pytest.raises(AuthRequiredError):
        apply_donation(AnonymousUser(), open_request.pk, Decimal('100'))


def test_donation_to_unknown_request(donor):
    with pytest.raises(DonationRequest.DoesNotExist):
        apply_donation(donor, 999, Decimal('100'))


# ── is_contributable ──────────────────────────────────────────────────────────

def test_not_contributable_without_documents(profile):
    assert not is_contributable(make_request(profile, '100'))


def test_not_contributable_with_only_unverified_documents(profile):
    make_document(profile, 'admission_bill')
    make_document(profile, 'twelfth_marksheet')
    assert not is_contributable(make_request(profile, '100'))


def test_any_verified_document_makes_request_contributable(profile):
    make_document(profile, 'admission_bill')
    make_document(profile, 'other', verified=True)
    assert is_contributable(make_request(profile, '100', donation_type='medical'))


def test_unverifying_document_keeps_completed_request_completed(open_request, verified_document, donor, verifier):
    apply_donation(donor, open_request.pk, Decimal('1000'))

    verify_document(verifier, verified_document.pk, False)

    open_request.refresh_from_db()
    assert open_request.status == DonationRequest.Status.COMPLETED
    assert open_request.remaining_amount == Decimal('0')


# ── list_open_requests ────────────────────────────────────────────────────────

def test_list_open_requests_newest_first_and_open_only(profile):
    older = make_request(profile, '100', age_minutes=10)
    newer = make_request(profile, '200', age_minutes=1)
    make_request(profile, '300', remaining='100', status='in_progress')
    make_request(profile, '400', remaining='0', status='completed')

    assert list(list_open_requests()) == [newer, older]


def test_list_open_requests_can_include_in_progress(profile):
    open_one = make_request(profile, '100', age_minutes=10)
    partial = make_request(profile, '300', remaining='100', status='in_progress', age_minutes=1)

    assert list(list_open_requests(include_in_progress=True)) == [partial, open_one]


def test_list_open_requests_follows_setting(profile, settings):
    settings.BROWSE_IN_PROGRESS_REQUESTS = True
    partial = make_request(profile, '300', remaining='100', status='in_progress')

    assert list(list_open_requests()) == [partial]


def test_list_open_requests_is_restartable(profile):
    make_request(profile, '100')
    requests = list_open_requests()
    assert len(list(requests)) == 1

    make_request(profile, '200')
    assert len(list(requests.all())) == 2


# ── totals / UPI ──────────────────────────────────────────────────────────────

def test_ledger_totals(profile, verified_document, donor):
    request = make_request(profile, '500')
    make_request(profile, '100', remaining='0', status='completed')
    apply_donation(donor, request.pk, Decimal('200'))

    totals = ledger_totals()
    assert totals['total_pledged'] == Decimal('200')
    assert totals['open_requests'] == 1
    assert totals['funded_requests'] == 1


def test_upi_uri_contains_payee_and_amount():
    uri = build_upi_uri('asha@upi', 'Asha Verma', Decimal('250'), 'Books support')
    assert uri.startswith('upi://pay?')
    assert 'pa=asha%40upi' in uri
    assert 'pn=Asha+Verma' in uri
    assert 'am=250.00' in uri
    assert 'cu=INR' in uri


def test_upi_qr_is_base64_png():
    import base64
    data = base64.b64decode(generate_upi_qr('asha@upi', 'Asha Verma'))
    assert data.startswith(b'\x89PNG')


# ── Views ─────────────────────────────────────────────────────────────────────

def test_browse_page_lists_open_requests(client, open_request):
    response = client.get(reverse('donation_requests'))

    assert response.status_code == 200
    assert b'Asha Verma' in response.content
    assert response.context['requests'][0].can_contribute is True


def test_browse_page_disables_unverified_requests(client, profile):
    make_request(profile, '100')

    response = client.get(reverse('donation_requests'))

    assert response.context['requests'][0].can_contribute is False
    assert b'Awaiting document verification' in response.content


def test_donate_page_requires_login(client, open_request):
    url = reverse('donate', args=[open_request.pk])
    response = client.get(url)

    assert response.status_code == 302
    assert response.url.startswith(reverse('login'))


def test_donate_page_shows_upi_details(client, open_request, donor):
    client.force_login(donor)

    response = client.get(reverse('donate', args=[open_request.pk]))

    assert response.status_code == 200
    assert b'asha@upi' in response.content
    assert response.context['qr_base64']


def test_donate_post_applies_donation(client, open_request, donor):
    client.force_login(donor)

    response = client.post(reverse('donate', args=[open_request.pk]), {'amount': '250'})

    assert response.status_code == 302
    assert response.url == reverse('donation_requests')
    open_request.refresh_from_db()
    assert open_request.remaining_amount == Decimal('750')


def test_donate_post_over_balance_shows_error(client, open_request, donor):
    client.force_login(donor)

    response = client.post(reverse('donate', args=[open_request.pk]), {'amount': '5000'}, follow=True)

    messages = [str(m) for m in response.context['messages']]
    assert any('exceeds' in m for m in messages)
    open_request.refresh_from_db()
    assert open_request.remaining_amount == Decimal('1000')


def test_donate_to_completed_request_redirects(client, profile, verified_document, donor):
    request = make_request(profile, '100', remaining='0', status='completed')
    client.force_login(donor)

    response = client.get(reverse('donate', args=[request.pk]))

    assert response.status_code == 302
    assert response.url == reverse('donation_requests')


def test_create_request_view(client, student):
    client.force_login(student)

    response = client.post(reverse('create_request'), {
        'donation_type': 'medical', 'amount': '1200', 'description': 'Surgery follow-up',
    })

    assert response.status_code == 302
    request = DonationRequest.objects.get()
    assert request.remaining_amount == Decimal('1200')
    assert request.status == DonationRequest.Status.OPEN


def test_create_request_view_rejects_zero(client, student):
    client.force_login(student)

    client.post(reverse('create_request'), {'donation_type': 'food', 'amount': '0'})

    assert not DonationRequest.objects.exists()


def test_create_request_view_is_post_only(client, student):
    client.force_login(student)
    assert client.get(reverse('create_request')).status_code == 405


def test_donate_page_lists_recent_donations(client, open_request, donor):
    apply_donation(donor, open_request.pk, Decimal('150'))
    client.force_login(donor)

    response = client.get(reverse('donate', args=[open_request.pk]))

    assert [d.amount for d in response.context['donations']] == [Decimal('150')]
    assert b'from ravi' in response.content


# ── Amount parsing ────────────────────────────────────────────────────────────

@pytest.mark.parametrize('amount', ['0.004', '1.005', 'NaN', 'Infinity', 'abc', '100000000'])
def test_create_request_rejects_amounts_the_ledger_cannot_store(student, amount):
    with pytest.raises(ValidationError):
        create_request(student, 'books', amount)
    assert not DonationRequest.objects.exists()


def test_create_request_keeps_paise(student):
    request = create_request(student, 'books', '1250.50')

    request.refresh_from_db()
    assert request.amount == Decimal('1250.50')
    assert request.remaining_amount == Decimal('1250.50')


@pytest.mark.parametrize('amount', [Decimal('0.001'), '0.004', 'NaN', '-Infinity'])
def test_donation_rejects_amounts_the_ledger_cannot_store(profile, verified_document, donor, amount):
    request = make_request(profile, '300')

    with pytest.raises(InvalidAmountError):
        apply_donation(donor, request.pk, amount)

    request.refresh_from_db()
    assert request.remaining_amount == Decimal('300')
    assert request.status == DonationRequest.Status.OPEN
    assert not Donation.objects.exists()


# ── Concurrent donations ──────────────────────────────────────────────────────

@pytest.mark.django_db(transaction=True)
def test_concurrent_donations_cannot_overdraw(profile, verified_document, donor):
    request = make_request(profile, '300')
    barrier = threading.Barrier(2)
    outcomes = []

    def donate():
        try:
            barrier.wait()
            apply_donation(donor, request.pk, Decimal('200'))
            outcomes.append('accepted')
        except InvalidAmountError:
            outcomes.append('rejected')
        except Exception as exc:
            outcomes.append(repr(exc))
        finally:
            connection.close()

    threads = [threading.Thread(target=donate) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert sorted(outcomes) == ['accepted', 'rejected']
    request.refresh_from_db()
    assert request.remaining_amount == Decimal('100')
    assert request.status == DonationRequest.Status.IN_PROGRESS
    assert Donation.objects.filter(request=request).count() == 1


# ── Approved requests ─────────────────────────────────────────────────────────

def test_approved_request_takes_no_donations(profile, verified_document, donor):
    request = make_request(profile, '500', status='approved')

    with pytest.raises(NotContributableError):
        apply_donation(donor, request.pk, Decimal('100'))

    request.refresh_from_db()
    assert request.status == DonationRequest.Status.APPROVED
    assert request.remaining_amount == Decimal('500')


def test_donate_page_turns_away_approved_request(client, profile, verified_document, donor):
    request = make_request(profile, '500', status='approved')
    client.force_login(donor)

    response = client.post(reverse('donate', args=[request.pk]), {'amount': '100'})

    assert response.status_code == 302
    assert response.url == reverse('donation_requests')
    request.refresh_from_db()
    assert request.remaining_amount == Decimal('500')


# ── Status edits in the admin ─────────────────────────────────────────────────

@pytest.mark.parametrize('remaining, status, valid', [
    ('1000', 'open', True),
    ('1000', 'approved', True),
    ('1000', 'completed', False),
    ('1000', 'in_progress', False),
    ('400', 'in_progress', True),
    ('400', 'approved', True),
    ('400', 'open', False),
    ('0', 'completed', True),
    ('0', 'open', False),
    ('0', 'approved', False),
])
def test_status_must_match_balance(profile, remaining, status, valid):
    request = make_request(profile, '1000', remaining=remaining)
    request.status = status

    if valid:
        request.full_clean()
    else:
        with pytest.raises(ValidationError) as excinfo:
            request.full_clean()
        assert 'status' in excinfo.value.message_dict


@pytest.fixture
def admin_user(db):
    return User.objects.create_superuser('root', 'root@example.com', 'pw-12345-x')


def admin_change(client, request, status):
    return client.post(
        reverse('admin:donations_donationrequest_change', args=[request.pk]),
        {
            'student': request.student_id,
            'donation_type': request.donation_type,
            'description': request.description,
            'status': status,
            'donations-TOTAL_FORMS': '0',
            'donations-INITIAL_FORMS': '0',
            'donations-MIN_NUM_FORMS': '0',
            'donations-MAX_NUM_FORMS': '1000',
            '_save': 'Save',
        },
    )


def test_admin_cannot_complete_unfunded_request(client, profile, admin_user):
    request = make_request(profile, '1000')
    client.force_login(admin_user)

    response = admin_change(client, request, 'completed')

    assert response.status_code == 200
    request.refresh_from_db()
    assert request.status == DonationRequest.Status.OPEN


def test_admin_can_approve_unfunded_request(client, profile, admin_user):
    request = make_request(profile, '1000')
    client.force_login(admin_user)

    response = admin_change(client, request, 'approved')

    assert response.status_code == 302
    request.refresh_from_db()
    assert request.status == DonationRequest.Status.APPROVED


def test_admin_form_rejects_reopening_funded_request(profile, admin_user):
    from django.contrib import admin

    request = make_request(profile, '100', remaining='0', status='completed')
    http_request = RequestFactory().get('/')
    http_request.user = admin_user
    form_class = admin.site._registry[DonationRequest].get_form(http_request, request, change=True)

    form = form_class({
        'student': request.student_id,
        'donation_type': request.donation_type,
        'description': request.description,
        'status': 'open',
    }, instance=request)

    assert not form.is_valid()
    assert 'status' in form.errors
