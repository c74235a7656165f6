from decimal import Decimal

import pytest
from django.test import override_settings
from django.urls import reverse

from conftest import make_request
from donations.services import apply_donation


def test_homepage_shows_totals(client, profile, verified_document, donor):
    request = make_request(profile, '800')
    apply_donation(donor, request.pk, Decimal('300'))

    response = client.get(reverse('homepage'))

    assert response.status_code == 200
    assert response.context['total_pledged'] == Decimal('300')
    assert response.context['open_requests'] == 1


@pytest.mark.django_db
def test_about_page(client):
    assert client.get(reverse('about')).status_code == 200


@pytest.mark.django_db
@override_settings(DEBUG=False)
def test_unknown_page_uses_custom_404(client):
    response = client.get('/no-such-page/')

    assert response.status_code == 404
    assert 'core/404.html' in [t.name for t in response.templates]
