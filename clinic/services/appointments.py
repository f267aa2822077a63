"""
Appointment booking and the appointment lifecycle.

Legal status changes and the party allowed to make them::

    PENDING  -> APPROVED   doctor
    PENDING  -> DECLINED   doctor
    PENDING  -> CANCELLED  patient
    APPROVED -> CANCELLED  patient
    APPROVED -> COMPLETED  doctor

DECLINED, COMPLETED and CANCELLED are terminal.  Checks run in a fixed
order: the appointment must exist in the caller's organization, the caller
must be its doctor or patient as the edge requires, and only then is the
edge itself checked.  The write is a compare-and-set on the status observed
when the appointment was read, so of two concurrent writers exactly one
wins and the other gets a state error.
"""
from __future__ import annotations

import datetime as dt
import logging
from typing import Optional

import bleach
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from clinic.exceptions import AuthorizationError, InvalidStateTransition, ResourceNotFound, ValidationFailed
from clinic.models import Appointment, AppointmentTransition, Organization, OrganizationUser
from clinic.services import notifications
from clinic.services.doctors import get_doctor

logger = logging.getLogger('clinic.appointments')

Status = Appointment.Status

DOCTOR = OrganizationUser.ROLE_DOCTOR
PATIENT = OrganizationUser.ROLE_PATIENT

TRANSITIONS: dict[tuple[str, str], str] = {
    (Status.PENDING.value, Status.APPROVED.value): DOCTOR,
    (Status.PENDING.value, Status.DECLINED.value): DOCTOR,
    (Status.PENDING.value, Status.CANCELLED.value): PATIENT,
    (Status.APPROVED.value, Status.CANCELLED.value): PATIENT,
    (Status.APPROVED.value, Status.COMPLETED.value): DOCTOR,
}

# Party acting on each target status, whatever the source
TARGET_ACTOR = {to: actor for (_, to), actor in TRANSITIONS.items()}


def can_transition(from_status: str, to_status: str) -> bool:
    return (from_status, to_status) in TRANSITIONS


def parse_appointment_datetime(value) -> dt.datetime:
    """Parse an ISO 8601 value; a bare date means midnight UTC."""
    if isinstance(value, dt.datetime):
        parsed = value
    else:
        text = str(value or '').strip()
        try:
            parsed = parse_datetime(text)
        except ValueError:
            parsed = None
        if parsed is None:
            try:
                day = parse_date(text)
            except ValueError:
                day = None
            if day is None:
                raise ValidationFailed('appointment_datetime must be a valid ISO 8601 date or datetime')
            parsed = dt.datetime.combine(day, dt.time.min)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt.timezone.utc)
    try:
        return parsed.astimezone(dt.timezone.utc)
    except OverflowError:
        raise ValidationFailed('appointment_datetime is out of range')


def clean_notes(notes: Optional[str]) -> Optional[str]:
    if notes is None:
        return None
    cleaned = bleach.clean(notes, tags=[], attributes={}, strip=True).strip()
    return cleaned or None


def book_appointment(org: Organization, patient: OrganizationUser, *, doctor_id,
                     appointment_datetime, notes: Optional[str] = None) -> Appointment:
    if patient.role != PATIENT:
        raise AuthorizationError()
    doctor = get_doctor(org, doctor_id)
    if doctor is None:
        raise ResourceNotFound()
    when = parse_appointment_datetime(appointment_datetime)
    if when <= timezone.now():
        raise ValidationFailed('Appointment date must be in the future')
    with transaction.atomic():
        appt = Appointment.objects.create(
            organization=org,
            patient=patient,
            doctor=doctor,
            appointment_datetime=when,
            status=Status.PENDING,
            notes=clean_notes(notes),
        )
        notifications.appointment_booked(appt)
    logger.info('appointment %s booked in %s (doctor=%s patient=%s)', appt.id, org.slug, doctor.id, patient.id)
    return appt


def _scoped(org: Organization) -> QuerySet:
    return Appointment.objects.select_related(
        'organization', 'doctor', 'doctor__doctor_profile', 'patient',
    ).filter(organization=org)


def get_appointment(org: Organization, appointment_id) -> Appointment:
    appt = _scoped(org).filter(pk=appointment_id).first()
    if appt is None:
        raise ResourceNotFound()
    return appt


def get_appointment_for(org: Organization, actor: OrganizationUser, appointment_id) -> Appointment:
    """Fetch an appointment the actor is a party to."""
    appt = get_appointment(org, appointment_id)
    if actor.id not in (appt.doctor_id, appt.patient_id):
        raise AuthorizationError()
    return appt


def _check_actor(appt: Appointment, actor: OrganizationUser, to_status: str) -> None:
    required = TARGET_ACTOR.get(to_status)
    if required is None:
        raise InvalidStateTransition(f'Cannot move appointment to {to_status}')
    if actor.role != required:
        raise AuthorizationError()
    owner_id = appt.doctor_id if required == DOCTOR else appt.patient_id
    if owner_id != actor.id:
        raise AuthorizationError()


def apply_transition(appt: Appointment, to_status: str, *, actor: OrganizationUser) -> Appointment:
    """Move ``appt`` from the status it was read with to ``to_status``."""
    _check_actor(appt, actor, to_status)
    observed = appt.status
    if not can_transition(observed, to_status):
        raise InvalidStateTransition(f'Cannot change appointment status from {observed} to {to_status}')
    now = timezone.now()
    with transaction.atomic():
        updated = Appointment.objects.filter(pk=appt.pk, status=observed).update(status=to_status, updated_at=now)
        if not updated:
            logger.info('appointment %s changed concurrently, %s -> %s rejected', appt.pk, observed, to_status)
            raise InvalidStateTransition('Appointment status was changed by another request')
        AppointmentTransition.objects.create(
            appointment=appt, from_status=observed, to_status=to_status, actor=actor,
        )
        appt.status = to_status
        appt.updated_at = now
        notifications.appointment_status_changed(appt, observed, to_status)
    logger.info('appointment %s %s -> %s by %s', appt.pk, observed, to_status, actor.id)
    return appt


def transition_appointment(org: Organization, actor: OrganizationUser, appointment_id, to_status: str) -> Appointment:
    appt = get_appointment(org, appointment_id)
    return apply_transition(appt, to_status, actor=actor)


def approve(org, actor, appointment_id):
    return transition_appointment(org, actor, appointment_id, Status.APPROVED.value)


def decline(org, actor, appointment_id):
    return transition_appointment(org, actor, appointment_id, Status.DECLINED.value)


def complete(org, actor, appointment_id):
    return transition_appointment(org, actor, appointment_id, Status.COMPLETED.value)


def cancel(org, actor, appointment_id):
    return transition_appointment(org, actor, appointment_id, Status.CANCELLED.value)


def patient_appointments(org: Organization, patient: OrganizationUser) -> QuerySet:
    return _scoped(org).filter(patient=patient).order_by('-appointment_datetime', '-id')


def doctor_appointments(org: Organization, doctor: OrganizationUser, status: Optional[str] = None) -> QuerySet:
    qs = _scoped(org).filter(doctor=doctor)
    if status:
        if status not in Status.values:
            raise ValidationFailed(f"status must be one of {', '.join(Status.values)}")
        qs = qs.filter(status=status)
    return qs.order_by('appointment_datetime', 'id')


def pending_for_doctor(org: Organization, doctor: OrganizationUser) -> QuerySet:
    return _scoped(org).filter(doctor=doctor, status=Status.PENDING).order_by('appointment_datetime', 'id')


def _party(user: Optional[OrganizationUser]) -> Optional[dict]:
    if user is None:
        return None
    return {'id': user.id, 'first_name': user.first_name, 'last_name': user.last_name, 'email': user.email}


def serialize_appointment(appt: Appointment, *, with_history: bool = False) -> dict:
    doctor = _party(appt.doctor)
    if doctor is not None and appt.doctor.doctor_profile_id:
        doctor['specialization'] = appt.doctor.doctor_profile.specialization
    data = {
        'id': appt.id,
        'doctor': doctor,
        'patient': _party(appt.patient),
        'appointment_datetime': appt.appointment_datetime.isoformat(),
        'status': appt.status,
        'notes': appt.notes,
        'created_at': appt.created_at.isoformat() if appt.created_at else None,
        'updated_at': appt.updated_at.isoformat() if appt.updated_at else None,
    }
    if with_history:
        data['history'] = [
            {
                'from_status': t.from_status,
                'to_status': t.to_status,
                'actor_id': t.actor_id,
                'at': t.created_at.isoformat(),
            }
            for t in appt.transitions.all()
        ]
    return data
