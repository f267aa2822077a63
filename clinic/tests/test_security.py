import pytest
from django.test import override_settings
from rest_framework.test import APIClient

from clinic.models import AuditEvent, CentralUser

from .helpers import PASSWORD, central_client, make_central, make_doctor, make_org, make_patient, org_client

pytestmark = pytest.mark.django_db


def register(client, email='new@example.com', name='Newcomer', password=PASSWORD):
    return client.post('/auth/register', {'email': email, 'name': name, 'password': password}, format='json')


def test_registered_central_user_is_unverified_and_cannot_login():
    client = APIClient()
    r = register(client, email='New@Example.com')
    assert r.status_code == 201
    assert r.data['user']['is_verified'] is False
    assert r.data['user']['email'] == 'new@example.com'

    r = client.post('/auth/login', {'email': 'new@example.com', 'password': PASSWORD}, format='json')
    assert r.status_code == 401


@override_settings(CENTRAL_AUTO_VERIFY=True)
def test_auto_verify_allows_immediate_login():
    client = APIClient()
    register(client)
    r = client.post('/auth/login', {'email': 'new@example.com', 'password': PASSWORD}, format='json')
    assert r.status_code == 200
    assert r.data['access'] and r.data['refresh']


def test_duplicate_registration_conflicts():
    client = APIClient()
    register(client)
    assert register(client, name='Someone Else').status_code == 409
    assert register(client, email='other@example.com').status_code == 409
    assert register(client, email='short@example.com', name='S', password='123').status_code == 400


def test_wrong_password_is_rejected_and_audited():
    make_central()
    r = APIClient().post('/auth/login', {'email': 'root@example.com', 'password': 'nope-nope'}, format='json')
    assert r.status_code == 401
    assert r.data['ok'] is False
    assert AuditEvent.objects.filter(action='central_login', detail__result='fail').exists()


def test_verification_rules():
    root = make_central()
    pending = CentralUser.objects.create_user('pending@example.com', 'Pending', PASSWORD)
    client = central_client(root)

    assert client.post('/auth/verify', {'user_id': root.id}, format='json').status_code == 403
    assert client.post('/auth/verify', {'user_id': pending.id}, format='json').status_code == 200
    pending.refresh_from_db()
    assert pending.is_verified
    assert client.post('/auth/verify', {'user_id': pending.id}, format='json').status_code == 400
    assert client.post('/auth/verify', {'user_id': 99999}, format='json').status_code == 404


def test_central_refresh_rotates_and_old_token_dies():
    make_central()
    client = APIClient()
    first = client.post('/auth/login', {'email': 'root@example.com', 'password': PASSWORD}, format='json').data

    r = client.post('/auth/refresh', {'refresh': first['refresh']}, format='json')
    assert r.status_code == 200
    assert r.data['refresh'] != first['refresh']

    assert client.post('/auth/refresh', {'refresh': first['refresh']}, format='json').status_code == 401


def test_central_logout_revokes_refresh():
    make_central()
    client = APIClient()
    tokens = client.post('/auth/login', {'email': 'root@example.com', 'password': PASSWORD}, format='json').data
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

    assert client.get('/auth/me').data['user']['email'] == 'root@example.com'
    assert client.post('/auth/logout', {'refresh': tokens['refresh']}, format='json').status_code == 200
    assert CentralUser.objects.get(email='root@example.com').refresh_token is None
    assert client.post('/auth/refresh', {'refresh': tokens['refresh']}, format='json').status_code == 401


def test_org_login_carries_realm_claims_and_rotates():
    org = make_org()
    doctor = make_doctor(org)
    client = APIClient()
    r = client.post(f'/{org.slug}/auth/login', {'email': 'DOCTOR@example.com', 'password': PASSWORD}, format='json')
    assert r.status_code == 200
    assert r.data['user']['role'] == 'doctor'

    from rest_framework_simplejwt.tokens import AccessToken
    claims = AccessToken(r.data['access'])
    assert (claims['realm'], claims['org'], claims['org_user_id'], claims['role']) == ('org', org.slug, doctor.id, 'doctor')

    old = r.data['refresh']
    rotated = client.post(f'/{org.slug}/auth/refresh', {'refresh': old}, format='json')
    assert rotated.status_code == 200
    assert client.post(f'/{org.slug}/auth/refresh', {'refresh': old}, format='json').status_code == 401


def test_login_ignores_stale_or_foreign_bearer_headers():
    alpha = make_org('Clinic Alpha')
    beta = make_org('Clinic Beta')
    make_patient(alpha)
    foreign = org_client(make_patient(beta))
    stale = APIClient()
    stale.credentials(HTTP_AUTHORIZATION='Bearer not-a-jwt')
    creds = {'email': 'patient@example.com', 'password': PASSWORD}

    for client in (foreign, stale):
        r = client.post(f'/{alpha.slug}/auth/login', creds, format='json')
        assert r.status_code == 200
        r = client.post(f'/{alpha.slug}/auth/refresh', {'refresh': r.data['refresh']}, format='json')
        assert r.status_code == 200
        bad = client.post(f'/{alpha.slug}/auth/login', {**creds, 'password': 'wrong-pass'}, format='json')
        assert bad.status_code == 401

    r = stale.post(f'/{alpha.slug}/patients/register', {
        'email': 'fresh@example.com', 'password': PASSWORD, 'first_name': 'Fresh', 'last_name': 'Face',
        'date_of_birth': '1991-02-03', 'phone_number': '5550001111',
    }, format='json')
    assert r.status_code == 201


def test_central_login_ignores_stale_bearer_header():
    make_central()
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION='Bearer not-a-jwt')
    r = client.post('/auth/login', {'email': 'root@example.com', 'password': PASSWORD}, format='json')
    assert r.status_code == 200
    r = client.post('/auth/login', {'email': 'root@example.com', 'password': 'wrong-pass'}, format='json')
    assert r.status_code == 401


def test_org_logout_clears_refresh():
    org = make_org()
    patient = make_patient(org)
    client = org_client(patient)
    patient.refresh_from_db()
    assert patient.refresh_token
    assert client.post(f'/{org.slug}/auth/logout', {}, format='json').status_code == 200
    patient.refresh_from_db()
    assert patient.refresh_token is None


def test_org_token_is_bound_to_its_organization():
    alpha = make_org('Clinic Alpha')
    beta = make_org('Clinic Beta')
    make_doctor(beta)
    client = org_client(make_patient(alpha))

    assert client.get(f'/{alpha.slug}/auth/me').status_code == 200
    assert client.get(f'/{beta.slug}/doctors').status_code == 401


def test_refresh_token_cannot_cross_organizations():
    alpha = make_org('Clinic Alpha')
    beta = make_org('Clinic Beta')
    make_patient(alpha)
    client = APIClient()
    tokens = client.post(f'/{alpha.slug}/auth/login',
                         {'email': 'patient@example.com', 'password': PASSWORD}, format='json').data
    assert client.post(f'/{beta.slug}/auth/refresh', {'refresh': tokens['refresh']}, format='json').status_code == 401


def test_realms_do_not_mix():
    org = make_org()
    root = make_central()
    assert central_client(root).get(f'/{org.slug}/auth/me').status_code == 401
    assert org_client(make_patient(org)).get('/auth/me').status_code == 401


def test_same_email_may_exist_in_two_organizations():
    alpha = make_org('Clinic Alpha')
    beta = make_org('Clinic Beta')
    a = make_patient(alpha)
    b = make_patient(beta)
    assert a.email == b.email and a.pk != b.pk


def test_unknown_organization_is_not_found():
    r = APIClient().post('/ghost_clinic/auth/login', {'email': 'a@example.com', 'password': PASSWORD}, format='json')
    assert r.status_code == 404
    assert r.data == {'ok': False, 'error': {'code': 'not_found', 'message': 'Not found.'}}


def test_health_check():
    r = APIClient().get('/healthz')
    assert r.status_code == 200
    assert r.json()['db'] is True
    assert r['X-Request-ID']
