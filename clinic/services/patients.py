"""
Patient accounts: self-registration, profile maintenance and listings.

A doctor only sees patients who have at least one appointment with them;
organization admins see every patient of the organization.
"""
from __future__ import annotations

import logging

from django.contrib.auth.hashers import make_password
from django.db import transaction
from django.db.models import QuerySet

from clinic.models import Organization, OrganizationUser, PatientProfile
from clinic.services import notifications
from clinic.services.audit import log_action
from clinic.services.org_users import create_org_user
from clinic.services.profiles import ensure_profile_exclusivity
from clinic.services.tokens import issue_org_tokens

logger = logging.getLogger('clinic')

PROFILE_FIELDS = (
    'date_of_birth', 'phone_number', 'address', 'emergency_contact_name',
    'emergency_contact_phone', 'blood_type', 'allergies', 'chronic_conditions',
)
USER_FIELDS = ('first_name', 'last_name')


def register_patient(org: Organization, data: dict, *, ip: str | None = None) -> tuple[OrganizationUser, dict]:
    profile = PatientProfile(ip_address=ip, **{f: data.get(f) for f in PROFILE_FIELDS})
    user = create_org_user(org, data, profile=profile)
    tokens = issue_org_tokens(user)
    log_action(actor=user, action='patient_register', object_type='organization_user', object_id=user.id,
               detail={'ip': ip})
    notifications.patient_registered(user)
    return user, tokens


def list_patients(org: Organization, actor: OrganizationUser) -> QuerySet:
    qs = OrganizationUser.objects.select_related('patient_profile').filter(
        organization=org, patient_profile__isnull=False,
    )
    if actor.role == OrganizationUser.ROLE_DOCTOR:
        qs = qs.filter(patient_appointments__doctor=actor).distinct()
    return qs.order_by('last_name', 'first_name', 'id')


def update_patient(user: OrganizationUser, data: dict, *, ip: str | None = None) -> OrganizationUser:
    profile = user.patient_profile
    with transaction.atomic():
        for name in USER_FIELDS:
            if name in data:
                setattr(user, name, data[name])
        if data.get('password'):
            user.password = make_password(data['password'])
            user.refresh_token = None
        for name in PROFILE_FIELDS:
            if name in data:
                setattr(profile, name, data[name])
        if ip:
            profile.ip_address = ip
        profile.save()
        ensure_profile_exclusivity(user)
        user.save()
    log_action(actor=user, action='patient_update', object_type='organization_user', object_id=user.id,
               detail={'fields': sorted(k for k in data if k != 'password')})
    return user


def delete_patient(user: OrganizationUser) -> None:
    """Remove the account; appointments keep their history with the patient unset."""
    email, name, org, user_id = user.email, user.full_name, user.organization, user.id
    profile = user.patient_profile
    with transaction.atomic():
        user.delete()
        if profile is not None:
            profile.delete()
        log_action(action='patient_delete', organization=org, object_type='organization_user', object_id=user_id)
        notifications.patient_deleted(email, name, org)
    logger.info('patient %s deleted from %s', user_id, org.slug)


def serialize_patient(user: OrganizationUser) -> dict:
    p = user.patient_profile
    return {
        'id': user.id,
        'email': user.email,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'date_of_birth': p.date_of_birth.isoformat() if p and p.date_of_birth else None,
        'phone_number': p.phone_number if p else None,
        'address': p.address if p else None,
        'emergency_contact_name': p.emergency_contact_name if p else None,
        'emergency_contact_phone': p.emergency_contact_phone if p else None,
        'blood_type': p.blood_type if p else None,
        'allergies': p.allergies if p else None,
        'chronic_conditions': p.chronic_conditions if p else None,
    }
