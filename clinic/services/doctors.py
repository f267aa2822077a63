from django.db.models import QuerySet

from clinic.models import DoctorProfile, Organization, OrganizationUser
from clinic.services.org_users import create_org_user


def list_doctors(org: Organization) -> QuerySet:
    return (
        OrganizationUser.objects.select_related('doctor_profile')
        .filter(organization=org, doctor_profile__isnull=False)
        .order_by('last_name', 'first_name', 'id')
    )


def get_doctor(org: Organization, doctor_id) -> OrganizationUser | None:
    return (
        OrganizationUser.objects.select_related('doctor_profile')
        .filter(organization=org, pk=doctor_id, doctor_profile__isnull=False)
        .first()
    )


def create_doctor(org: Organization, data: dict) -> OrganizationUser:
    profile = DoctorProfile(
        specialization=data['specialization'],
        license_number=data['license_number'],
        phone_number=data.get('phone_number') or None,
    )
    return create_org_user(org, data, profile=profile)


def serialize_doctor(user: OrganizationUser) -> dict:
    profile = user.doctor_profile
    return {
        'id': user.id,
        'email': user.email,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'specialization': profile.specialization if profile else None,
        'license_number': profile.license_number if profile else None,
        'phone_number': profile.phone_number if profile else None,
    }
