import pytest
from django.db import IntegrityError, transaction

from clinic.exceptions import ValidationFailed
from clinic.models import AdminProfile, DoctorProfile, OrganizationUser, PatientProfile
from clinic.services.profiles import ensure_profile_exclusivity, validate_profile_exclusivity

from .helpers import make_doctor, make_org, make_patient

pytestmark = pytest.mark.django_db


def test_user_without_profile_is_valid():
    result = validate_profile_exclusivity(OrganizationUser())
    assert result.ok
    assert result.profiles == ()


def test_single_profile_is_valid():
    user = OrganizationUser(doctor_profile=DoctorProfile.objects.create(specialization='ENT', license_number='1'))
    result = validate_profile_exclusivity(user)
    assert result.ok
    assert result.profiles == ('doctor',)


@pytest.mark.parametrize('kinds', [('doctor', 'patient'), ('doctor', 'admin'), ('patient', 'admin')])
def test_two_profiles_are_rejected(kinds):
    profiles = {
        'doctor': lambda: DoctorProfile.objects.create(specialization='ENT', license_number='1'),
        'patient': lambda: PatientProfile.objects.create(date_of_birth='1990-01-01', phone_number='5551234567'),
        'admin': lambda: AdminProfile.objects.create(),
    }
    user = OrganizationUser(**{f'{k}_profile': profiles[k]() for k in kinds})

    result = validate_profile_exclusivity(user)
    assert not result.ok
    assert set(result.profiles) == set(kinds)
    assert 'only have one profile' in result.message
    with pytest.raises(ValidationFailed):
        ensure_profile_exclusivity(user)


def test_validation_does_not_touch_the_user():
    org = make_org()
    doctor = make_doctor(org)
    doctor.patient_profile = PatientProfile.objects.create(date_of_birth='1990-01-01', phone_number='5551234567')
    validate_profile_exclusivity(doctor)
    doctor.refresh_from_db()
    assert doctor.patient_profile_id is None


def test_database_rejects_second_profile_on_bypass():
    org = make_org()
    patient = make_patient(org)
    doctor_profile = DoctorProfile.objects.create(specialization='ENT', license_number='1')
    with pytest.raises(IntegrityError):
        with transaction.atomic():
            OrganizationUser.objects.filter(pk=patient.pk).update(doctor_profile=doctor_profile)
    patient.refresh_from_db()
    assert patient.role == 'patient'
