"""
Outbound notifications: plain-text email and websocket pushes.

Everything here is scheduled with ``transaction.on_commit`` so nothing is
sent for a write that rolls back.  Delivery failures are logged and never
undo the committed change.
"""
from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction

logger = logging.getLogger('clinic.notifications')


def user_group(org_id: int, user_id: int) -> str:
    """Channel-layer group receiving events for one organization user."""
    return f"org.{org_id}.user.{user_id}"


def _enabled() -> bool:
    return getattr(settings, 'NOTIFICATIONS_ENABLED', True)


def _send_email(to: str | None, subject: str, body: str) -> None:
    if not to:
        return
    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [to], fail_silently=False)
    except Exception:
        logger.exception('failed to send "%s" to %s', subject, to)


def _push(group: str, event: dict) -> None:
    layer = get_channel_layer()
    if layer is None:
        return
    try:
        async_to_sync(layer.group_send)(group, event)
    except Exception:
        logger.exception('failed to push %s to %s', event.get('type'), group)


def _schedule(fn) -> None:
    if _enabled():
        transaction.on_commit(fn)


def patient_registered(user) -> None:
    org = user.organization
    _schedule(lambda: _send_email(
        user.email,
        f'Welcome to {org.name}',
        f'Hello {user.first_name},\n\nYour patient account at {org.name} has been created.\n',
    ))


def patient_deleted(email: str, name: str, org) -> None:
    _schedule(lambda: _send_email(
        email,
        f'Your {org.name} account was deleted',
        f'Hello {name},\n\nYour patient account at {org.name} has been deleted.\n',
    ))


def appointment_booked(appointment) -> None:
    doctor, patient = appointment.doctor, appointment.patient
    when = appointment.appointment_datetime.isoformat()
    _schedule(lambda: _send_email(
        doctor.email,
        'New appointment request',
        f'{patient.full_name} requested an appointment on {when}.\n',
    ))


_STATUS_MAIL = {
    'APPROVED': ('patient', 'Your appointment was approved'),
    'DECLINED': ('patient', 'Your appointment was declined'),
    'COMPLETED': ('patient', 'Your appointment is complete'),
    'CANCELLED': ('doctor', 'An appointment was cancelled'),
}


def appointment_status_changed(appointment, from_status: str, to_status: str) -> None:
    event = {
        'type': 'appointment.status',
        'appointment_id': appointment.id,
        'from_status': from_status,
        'to_status': to_status,
        'appointment_datetime': appointment.appointment_datetime.isoformat(),
    }
    recipients = [u for u in (appointment.doctor, appointment.patient) if u is not None]
    recipient_role, subject = _STATUS_MAIL.get(to_status, (None, None))
    mail_to = getattr(appointment, recipient_role, None) if recipient_role else None
    when = appointment.appointment_datetime.isoformat()

    def deliver():
        for user in recipients:
            _push(user_group(appointment.organization_id, user.id), event)
        if mail_to is not None:
            _send_email(mail_to.email, subject, f'Appointment {appointment.id} on {when} is now {to_status}.\n')

    _schedule(deliver)
