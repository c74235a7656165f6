from unittest import mock

import pytest
from django.contrib.auth.models import AnonymousUser
from django.core.exceptions import ValidationError
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse

from accounts.models import User
from conftest import make_document, make_request, make_student
from core.exceptions import AuthRequiredError, NotAuthorizedError
from documents import services
from documents.models import Document
from documents.services import (
    ExpiredLinkError,
    InvalidLinkError,
    can_preview,
    create_signed_url,
    list_documents_for_review,
    preview_url,
    resolve_signed_token,
    upload_document,
    verify_document,
)

PDF_BYTES = b'%PDF-1.4 minimal test document'


def pdf_upload(name='bill.pdf'):
    return SimpleUploadedFile(name, PDF_BYTES, content_type='application/pdf')


def token_from(url):
    return url.rstrip('/').rsplit('/', 1)[-1]


# ── Upload ────────────────────────────────────────────────────────────────────

def test_upload_stores_file_and_records_document(student):
    document = upload_document(student, 'admission_bill', pdf_upload())

    assert document.profile_id == student.pk
    assert document.verified is False
    assert document.file_path.startswith(f'{student.pk}/admission_bill-')
    assert document.file_path.endswith('.pdf')
    with default_storage.open(document.file_path, 'rb') as handle:
        assert handle.read() == PDF_BYTES


def test_each_document_type_is_uploaded_once(student):
    upload_document(student, 'admission_bill', pdf_upload())

    with pytest.raises(ValidationError):
        upload_document(student, 'admission_bill', pdf_upload('again.pdf'))
    assert Document.objects.count() == 1


def test_upload_rejects_unknown_type(student):
    with pytest.raises(ValidationError):
        upload_document(student, 'passport', pdf_upload())


def test_upload_needs_student_profile(donor):
    with pytest.raises(NotAuthorizedError):
        upload_document(donor, 'other', pdf_upload())


@pytest.mark.django_db
def test_upload_needs_login():
    with pytest.raises(AuthRequiredError):
        upload_document(AnonymousUser(), 'other', pdf_upload())


# ── Verification ──────────────────────────────────────────────────────────────

def test_verifier_can_verify_and_reject(profile, verifier):
    document = make_document(profile)

    verify_document(verifier, document.pk, True)
    document.refresh_from_db()
    assert document.verified is True

    verify_document(verifier, document.pk, False)
    document.refresh_from_db()
    assert document.verified is False


def test_regular_user_cannot_verify(profile, donor):
    document = make_document(profile)

    with pytest.raises(NotAuthorizedError):
        verify_document(donor, document.pk, True)

    document.refresh_from_db()
    assert document.verified is False


def test_student_cannot_verify_own_document(student):
    document = make_document(student.profile)

    with pytest.raises(NotAuthorizedError):
        verify_document(student, document.pk, True)


def test_superuser_can_verify(profile):
    admin = User.objects.create_superuser('root', 'root@example.com', 'pw-12345-x')
    document = make_document(profile)

    verify_document(admin, document.pk, True)

    document.refresh_from_db()
    assert document.verified is True


def test_verify_unknown_document(verifier):
    with pytest.raises(Document.DoesNotExist):
        verify_document(verifier, 12345, True)


def test_review_list_is_for_verifiers_only(profile, verifier, donor):
    make_document(profile, 'admission_bill')
    make_document(profile, 'other')

    assert list_documents_for_review(verifier).count() == 2
    with pytest.raises(NotAuthorizedError):
        list_documents_for_review(donor)


# ── Signed links ──────────────────────────────────────────────────────────────

def test_signed_url_round_trip():
    url = create_signed_url('7/other-abc.png', 60)

    assert url.startswith('/documents/file/')
    assert resolve_signed_token(token_from(url)) == '7/other-abc.png'


def test_tampered_token_is_rejected():
    token = token_from(create_signed_url('7/other-abc.png', 60))

    with pytest.raises(InvalidLinkError):
        resolve_signed_token(token[:-2] + 'xx')


def test_expired_token_is_rejected():
    token = token_from(create_signed_url('7/other-abc.png', -10))

    with pytest.raises(ExpiredLinkError):
        resolve_signed_token(token)


def test_preview_url_is_reused_within_its_window(profile):
    document = make_document(profile)

    with mock.patch.object(services, 'create_signed_url', wraps=services.create_signed_url) as signer:
        first = preview_url(document, 60)
        second = preview_url(document, 60)

    assert first == second
    assert signer.call_count == 1


def test_short_lived_preview_url_is_not_cached(profile):
    document = make_document(profile)

    with mock.patch.object(services, 'create_signed_url', wraps=services.create_signed_url) as signer:
        preview_url(document, services.PREVIEW_CACHE_MARGIN)
        preview_url(document, services.PREVIEW_CACHE_MARGIN)

    assert signer.call_count == 2


def test_preview_permissions(profile, student, donor, verifier):
    document = make_document(profile)

    assert can_preview(student, document)
    assert can_preview(verifier, document)
    assert not can_preview(donor, document)
    assert not can_preview(AnonymousUser(), document)

    make_request(profile, '500')
    assert can_preview(donor, document)
    assert can_preview(AnonymousUser(), document)


# ── Views ─────────────────────────────────────────────────────────────────────

def test_signed_file_view_serves_the_file(client, student):
    document = upload_document(student, 'admission_bill', pdf_upload())

    response = client.get(create_signed_url(document.file_path, 60))

    assert response.status_code == 200
    assert response['Content-Type'] == 'application/pdf'
    assert response['Content-Disposition'].startswith('inline')
    assert b''.join(response.streaming_content) == PDF_BYTES


def test_signed_file_view_expired_link(client, student):
    document = upload_document(student, 'admission_bill', pdf_upload())

    response = client.get(create_signed_url(document.file_path, -10))

    assert response.status_code == 410


@pytest.mark.django_db
def test_signed_file_view_garbage_token(client):
    response = client.get(reverse('documents:signed_file', args=['not-a-token']))
    assert response.status_code == 404


@pytest.mark.django_db
def test_signed_file_view_missing_file(client):
    response = client.get(create_signed_url('nowhere/missing.pdf', 60))
    assert response.status_code == 404


def test_upload_view(client, student):
    client.force_login(student)

    response = client.post(reverse('documents:upload'), {
        'document_type': 'twelfth_marksheet',
        'file': pdf_upload('marks.pdf'),
    })

    assert response.status_code == 302
    assert response.url == reverse('profile')
    assert Document.objects.get().document_type == 'twelfth_marksheet'


def test_upload_view_rejects_other_extensions(client, student):
    client.force_login(student)

    client.post(reverse('documents:upload'), {
        'document_type': 'other',
        'file': SimpleUploadedFile('notes.exe', b'MZ', content_type='application/octet-stream'),
    })

    assert not Document.objects.exists()


def test_preview_view_pdf_uses_embedded_viewer(client, student):
    document = make_document(student.profile, ext='.pdf')
    client.force_login(student)

    response = client.get(reverse('documents:preview', args=[document.pk]))

    assert response.status_code == 200
    assert b'<iframe' in response.content


def test_preview_view_image_uses_img_tag(client, student):
    document = make_document(student.profile, 'other', ext='.png')
    client.force_login(student)

    response = client.get(reverse('documents:preview', args=[document.pk]))

    assert b'<img' in response.content
    assert b'<iframe' not in response.content


def test_preview_view_forbidden_for_strangers(client, profile, donor):
    document = make_document(profile)
    client.force_login(donor)

    response = client.get(reverse('documents:preview', args=[document.pk]))

    assert response.status_code == 403


def test_verification_page_redirects_non_verifiers(client, donor):
    client.force_login(donor)

    response = client.get(reverse('documents:verification'))

    assert response.status_code == 302
    assert response.url == reverse('homepage')


def test_verification_page_lists_documents(client, profile, verifier):
    make_document(profile, 'admission_bill')
    make_document(profile, 'other', verified=True)
    client.force_login(verifier)

    response = client.get(reverse('documents:verification'))

    assert response.status_code == 200
    assert response.context['pending_count'] == 1
    assert b'Asha Verma' in response.content


def test_verify_view_flips_flag(client, profile, verifier):
    document = make_document(profile)
    client.force_login(verifier)

    response = client.post(reverse('documents:verify', args=[document.pk]), {'verified': '1'})

    assert response.status_code == 302
    document.refresh_from_db()
    assert document.verified is True


def test_verify_view_blocks_non_verifiers(client, profile):
    other = make_student('kiran', 'Kiran Rao')
    document = make_document(profile)
    client.force_login(other)

    client.post(reverse('documents:verify', args=[document.pk]), {'verified': '1'})

    document.refresh_from_db()
    assert document.verified is False


# ── Admin actions ─────────────────────────────────────────────────────────────

def staff_with(username, *codenames):
    from django.contrib.auth.models import Permission

    user = User.objects.create_user(username=username, email=f'{username}@example.com',
                                    password='pw-12345-x', is_staff=True)
    user.user_permissions.add(*Permission.objects.filter(
        content_type__app_label='documents', codename__in=codenames,
    ))
    return User.objects.get(pk=user.pk)


def run_admin_action(client, action, *documents):
    return client.post(reverse('admin:documents_document_changelist'), {
        'action': action,
        '_selected_action': [str(doc.pk) for doc in documents],
        'index': '0',
    })


def test_admin_action_needs_verify_permission(client, profile):
    document = make_document(profile)
    client.force_login(staff_with('clerk', 'view_document', 'change_document'))

    run_admin_action(client, 'mark_verified', document)

    document.refresh_from_db()
    assert document.verified is False


def test_admin_action_for_verifier(client, profile):
    document = make_document(profile)
    client.force_login(staff_with('checker', 'view_document', 'verify_document'))

    response = run_admin_action(client, 'mark_verified', document)

    assert response.status_code == 302
    document.refresh_from_db()
    assert document.verified is True


def test_admin_change_form_cannot_set_verified(client, profile):
    document = make_document(profile)
    client.force_login(staff_with('clerk', 'view_document', 'change_document'))

    client.post(
        reverse('admin:documents_document_change', args=[document.pk]),
        {'verified': 'on', '_save': 'Save'},
    )

    document.refresh_from_db()
    assert document.verified is False
