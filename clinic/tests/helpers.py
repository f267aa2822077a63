"""Builders shared by the clinic tests."""
from datetime import timedelta

from django.utils import timezone
from rest_framework.test import APIClient

from clinic.models import (
    AdminProfile, Appointment, CentralUser, DoctorProfile, Organization, PatientProfile, slugify_org_name,
)
from clinic.services.org_users import create_org_user
from clinic.services.tokens import issue_central_tokens, issue_org_tokens

PASSWORD = 'secret123'


def make_org(name='Clinic Alpha'):
    return Organization.objects.create(name=name, slug=slugify_org_name(name))


def make_central(email='root@example.com', name='Root', verified=True):
    return CentralUser.objects.create_user(email, name, PASSWORD, is_verified=verified)


def _person(email, first='Test', last='User'):
    return {'email': email, 'password': PASSWORD, 'first_name': first, 'last_name': last}


def make_admin(org, email='admin@example.com'):
    return create_org_user(org, _person(email, 'Ada', 'Admin'), profile=AdminProfile())


def make_doctor(org, email='doctor@example.com', specialization='Cardiology'):
    profile = DoctorProfile(specialization=specialization, license_number='LIC-1')
    return create_org_user(org, _person(email, 'Dana', 'Doctor'), profile=profile)


def make_patient(org, email='patient@example.com'):
    profile = PatientProfile(date_of_birth='1990-05-01', phone_number='5551234567')
    return create_org_user(org, _person(email, 'Pat', 'Patient'), profile=profile)


def make_appointment(doctor, patient, status=Appointment.Status.PENDING, days=2):
    return Appointment.objects.create(
        organization=doctor.organization, doctor=doctor, patient=patient,
        appointment_datetime=timezone.now() + timedelta(days=days), status=status,
    )


def future_iso(days=2):
    return (timezone.now() + timedelta(days=days)).replace(microsecond=0).isoformat()


def org_client(user):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_org_tokens(user)['access']}")
    return client


def central_client(user):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_central_tokens(user)['access']}")
    return client
