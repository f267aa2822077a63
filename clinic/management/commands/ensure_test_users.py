from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.db import transaction

from clinic.models import AdminProfile, CentralUser, DoctorProfile, Organization, OrganizationUser, PatientProfile, slugify_org_name
from clinic.services.org_users import create_org_user
from clinic.services.profiles import ensure_profile_exclusivity

DEMO_PASSWORD = "123456"
DEMO_ORG = "Demo Clinic"

ORG_USERS = [
    ("admin@demo.clinic", "Ada", "Admin", "admin"),
    ("doctor@demo.clinic", "Dana", "Doctor", "doctor"),
    ("patient@demo.clinic", "Pat", "Patient", "patient"),
]


def _profile(kind):
    """An unsaved profile for ``kind``; ``create_org_user`` saves it."""
    if kind == "admin":
        return AdminProfile()
    if kind == "doctor":
        return DoctorProfile(specialization="General Practice", license_number="DEMO-0001")
    return PatientProfile(date_of_birth="1990-01-01", phone_number="5550000000")


class Command(BaseCommand):
    help = "Ensure a verified central admin and a demo organization with admin/doctor/patient exist (idempotent)."

    @transaction.atomic
    def handle(self, *args, **opts):
        central, created = CentralUser.objects.get_or_create(
            email="central@demo.clinic",
            defaults={"name": "Central Admin", "is_verified": True, "is_staff": True, "is_superuser": True},
        )
        central.set_password(DEMO_PASSWORD)
        central.is_verified = True
        central.save()
        self.stdout.write(self.style.SUCCESS(f"ok: {central.email} (central)"))

        org, _ = Organization.objects.get_or_create(
            slug=slugify_org_name(DEMO_ORG), defaults={"name": DEMO_ORG, "created_by": central},
        )
        for email, first, last, kind in ORG_USERS:
            user = OrganizationUser.objects.filter(organization=org, email=email).first()
            if user is None:
                create_org_user(
                    org,
                    {"email": email, "password": DEMO_PASSWORD, "first_name": first, "last_name": last},
                    profile=_profile(kind),
                )
            else:
                ensure_profile_exclusivity(user)
                user.password = make_password(DEMO_PASSWORD)
                user.refresh_token = None
                user.save()
            self.stdout.write(self.style.SUCCESS(f"ok: {email} ({kind}) @ {org.slug}"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
