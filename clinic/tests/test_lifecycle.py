from datetime import timedelta

import pytest
from django.utils import timezone

from clinic.exceptions import AuthorizationError, InvalidStateTransition, ResourceNotFound, ValidationFailed
from clinic.models import Appointment, AppointmentTransition
from clinic.services import appointments as svc

from .helpers import make_appointment, make_doctor, make_org, make_patient

pytestmark = pytest.mark.django_db

S = Appointment.Status


@pytest.fixture
def org():
    return make_org()


@pytest.fixture
def doctor(org):
    return make_doctor(org)


@pytest.fixture
def patient(org):
    return make_patient(org)


@pytest.mark.parametrize('start,target,actor', [
    (S.PENDING, S.APPROVED, 'doctor'),
    (S.PENDING, S.DECLINED, 'doctor'),
    (S.PENDING, S.CANCELLED, 'patient'),
    (S.APPROVED, S.CANCELLED, 'patient'),
    (S.APPROVED, S.COMPLETED, 'doctor'),
])
def test_legal_transitions(org, doctor, patient, start, target, actor):
    appt = make_appointment(doctor, patient, status=start)
    who = doctor if actor == 'doctor' else patient

    result = svc.transition_appointment(org, who, appt.id, target.value)

    assert result.status == target
    appt.refresh_from_db()
    assert appt.status == target
    step = AppointmentTransition.objects.get(appointment=appt)
    assert (step.from_status, step.to_status, step.actor_id) == (start, target, who.id)


@pytest.mark.parametrize('start,target,actor', [
    (S.PENDING, S.COMPLETED, 'doctor'),
    (S.APPROVED, S.APPROVED, 'doctor'),
    (S.APPROVED, S.DECLINED, 'doctor'),
    (S.DECLINED, S.APPROVED, 'doctor'),
    (S.DECLINED, S.CANCELLED, 'patient'),
    (S.COMPLETED, S.CANCELLED, 'patient'),
    (S.COMPLETED, S.APPROVED, 'doctor'),
    (S.CANCELLED, S.CANCELLED, 'patient'),
    (S.CANCELLED, S.APPROVED, 'doctor'),
])
def test_illegal_transitions_leave_status_unchanged(org, doctor, patient, start, target, actor):
    appt = make_appointment(doctor, patient, status=start)
    who = doctor if actor == 'doctor' else patient

    with pytest.raises(InvalidStateTransition):
        svc.transition_appointment(org, who, appt.id, target.value)

    appt.refresh_from_db()
    assert appt.status == start
    assert not AppointmentTransition.objects.filter(appointment=appt).exists()


def test_wrong_role_is_an_authorization_error(org, doctor, patient):
    appt = make_appointment(doctor, patient)
    with pytest.raises(AuthorizationError):
        svc.approve(org, patient, appt.id)
    with pytest.raises(AuthorizationError):
        svc.cancel(org, doctor, appt.id)


def test_ownership_is_checked_before_state(org, doctor, patient):
    other_doctor = make_doctor(org, email='other@example.com')
    appt = make_appointment(doctor, patient, status=S.COMPLETED)
    # The edge is illegal too, but the caller is not this appointment's doctor
    with pytest.raises(AuthorizationError):
        svc.approve(org, other_doctor, appt.id)


def test_other_organization_reports_not_found(org, doctor, patient):
    appt = make_appointment(doctor, patient)
    other_org = make_org('Clinic Beta')
    other_doctor = make_doctor(other_org)
    with pytest.raises(ResourceNotFound):
        svc.approve(other_org, other_doctor, appt.id)


def test_double_cancel_fails_with_state_error(org, doctor, patient):
    appt = make_appointment(doctor, patient)
    svc.cancel(org, patient, appt.id)
    with pytest.raises(InvalidStateTransition):
        svc.cancel(org, patient, appt.id)
    assert AppointmentTransition.objects.filter(appointment=appt).count() == 1


def test_concurrent_approvals_only_one_wins(org, doctor, patient):
    appt = make_appointment(doctor, patient)
    first = svc.get_appointment(org, appt.id)
    second = svc.get_appointment(org, appt.id)

    svc.apply_transition(first, S.APPROVED.value, actor=doctor)
    with pytest.raises(InvalidStateTransition):
        svc.apply_transition(second, S.APPROVED.value, actor=doctor)

    assert AppointmentTransition.objects.filter(appointment=appt).count() == 1


def test_stale_snapshot_cannot_overwrite_newer_status(org, doctor, patient):
    appt = make_appointment(doctor, patient)
    stale = svc.get_appointment(org, appt.id)
    svc.cancel(org, patient, appt.id)

    with pytest.raises(InvalidStateTransition):
        svc.apply_transition(stale, S.APPROVED.value, actor=doctor)
    appt.refresh_from_db()
    assert appt.status == S.CANCELLED


def test_full_path_then_cancel_fails(org, doctor, patient):
    appt = svc.book_appointment(org, patient, doctor_id=doctor.id,
                                appointment_datetime=timezone.now() + timedelta(days=1))
    assert appt.status == S.PENDING
    assert svc.approve(org, doctor, appt.id).status == S.APPROVED
    assert svc.complete(org, doctor, appt.id).status == S.COMPLETED
    with pytest.raises(InvalidStateTransition):
        svc.cancel(org, patient, appt.id)
    steps = list(appt.transitions.values_list('from_status', 'to_status'))
    assert steps == [('PENDING', 'APPROVED'), ('APPROVED', 'COMPLETED')]


def test_booking_rejects_past_dates(org, doctor, patient):
    with pytest.raises(ValidationFailed):
        svc.book_appointment(org, patient, doctor_id=doctor.id,
                             appointment_datetime=timezone.now() - timedelta(minutes=1))


def test_booking_requires_a_doctor_in_the_same_organization(org, patient):
    foreign_doctor = make_doctor(make_org('Clinic Beta'))
    with pytest.raises(ResourceNotFound):
        svc.book_appointment(org, patient, doctor_id=foreign_doctor.id, appointment_datetime='2999-01-01')


def test_booking_by_doctor_is_forbidden(org, doctor):
    with pytest.raises(AuthorizationError):
        svc.book_appointment(org, doctor, doctor_id=doctor.id, appointment_datetime='2999-01-01')


def test_date_only_values_mean_utc_midnight():
    parsed = svc.parse_appointment_datetime('2999-03-04')
    assert parsed.isoformat() == '2999-03-04T00:00:00+00:00'


@pytest.mark.parametrize('value', ['', 'tomorrow', '2999-13-01', '2999-02-30T10:00', '9999-12-31T23:00:00-05:00'])
def test_malformed_datetimes_are_rejected(value):
    with pytest.raises(ValidationFailed):
        svc.parse_appointment_datetime(value)


def test_notes_are_stripped_of_markup():
    assert svc.clean_notes('<script>alert(1)</script>Back <b>pain</b>') == 'alert(1)Back pain'
    assert svc.clean_notes('   ') is None
