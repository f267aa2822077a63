from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from clinic.models import Appointment, AppointmentTransition, Organization, OrganizationUser

# Status history leading to each seeded state, as (from, to, actor) steps
PATHS = {
    "PENDING": [],
    "APPROVED": [("PENDING", "APPROVED", "doctor")],
    "DECLINED": [("PENDING", "DECLINED", "doctor")],
    "COMPLETED": [("PENDING", "APPROVED", "doctor"), ("APPROVED", "COMPLETED", "doctor")],
    "CANCELLED": [("PENDING", "CANCELLED", "patient")],
}


class Command(BaseCommand):
    help = "Create one demo appointment per lifecycle state in an organization."

    def add_arguments(self, parser):
        parser.add_argument("--org", default="demo_clinic", help="organization slug")

    @transaction.atomic
    def handle(self, *args, **opts):
        org = Organization.objects.filter(slug=opts["org"]).first()
        if org is None:
            raise CommandError(f"organization {opts['org']!r} not found; run ensure_test_users first")
        doctor = OrganizationUser.objects.filter(organization=org, doctor_profile__isnull=False).first()
        patient = OrganizationUser.objects.filter(organization=org, patient_profile__isnull=False).first()
        if doctor is None or patient is None:
            raise CommandError("organization needs at least one doctor and one patient")

        start = timezone.now().replace(minute=0, second=0, microsecond=0) + timedelta(days=1)
        actors = {"doctor": doctor, "patient": patient}
        for i, (status, steps) in enumerate(PATHS.items()):
            appt = Appointment.objects.create(
                organization=org, doctor=doctor, patient=patient,
                appointment_datetime=start + timedelta(hours=i), status=status,
                notes=f"demo {status.lower()}",
            )
            for from_status, to_status, actor in steps:
                AppointmentTransition.objects.create(
                    appointment=appt, from_status=from_status, to_status=to_status, actor=actors[actor],
                )
            self.stdout.write(self.style.SUCCESS(f"ok: appointment {appt.id} {status}"))
