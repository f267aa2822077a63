"""Creation and lookup of organization user accounts."""
from __future__ import annotations

from django.contrib.auth.hashers import check_password, make_password
from django.db import IntegrityError, transaction

from clinic.exceptions import DuplicateResource
from clinic.models import AdminProfile, DoctorProfile, Organization, OrganizationUser, PatientProfile
from clinic.services.profiles import ensure_profile_exclusivity

DUPLICATE_EMAIL_MESSAGE = 'User with this email already exists in the organization'

_PROFILE_ATTR = {
    DoctorProfile: 'doctor_profile',
    PatientProfile: 'patient_profile',
    AdminProfile: 'admin_profile',
}


def normalize_email(email: str) -> str:
    return (email or '').strip().lower()


def create_org_user(org: Organization, data: dict, *, profile) -> OrganizationUser:
    """Create a user in ``org`` holding ``profile`` (an unsaved profile instance).

    ``data`` carries ``email``, ``password``, ``first_name`` and ``last_name``.
    """
    email = normalize_email(data['email'])
    if OrganizationUser.objects.filter(organization=org, email=email).exists():
        raise DuplicateResource(DUPLICATE_EMAIL_MESSAGE)
    try:
        with transaction.atomic():
            profile.save()
            user = OrganizationUser(
                organization=org,
                email=email,
                password=make_password(data['password']),
                first_name=data['first_name'],
                last_name=data['last_name'],
            )
            setattr(user, _PROFILE_ATTR[type(profile)], profile)
            ensure_profile_exclusivity(user)
            user.save()
    except IntegrityError as exc:
        raise DuplicateResource(DUPLICATE_EMAIL_MESSAGE) from exc
    return user


def authenticate_org_user(org: Organization, email: str, password: str) -> OrganizationUser | None:
    user = (
        OrganizationUser.objects.select_related('organization', 'doctor_profile', 'patient_profile', 'admin_profile')
        .filter(organization=org, email=normalize_email(email))
        .first()
    )
    if user is None or not check_password(password, user.password):
        return None
    return user


def describe_user(user: OrganizationUser) -> dict:
    return {
        'id': user.id,
        'email': user.email,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'role': user.role,
        'organization': user.organization.slug,
    }
