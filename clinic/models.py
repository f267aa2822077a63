"""
Database models for the clinic portal.

Two authentication realms share one database.  ``CentralUser`` is the
platform administrator realm (and Django's ``AUTH_USER_MODEL``) which
provisions :class:`Organization` tenants.  Everything inside a tenant hangs
off an ``organization`` foreign key: :class:`OrganizationUser` accounts,
their role profiles and the :class:`Appointment` records between doctors and
patients.
"""
from __future__ import annotations

import re

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.core.validators import MinLengthValidator
from django.db import models
from django.db.models import Q


RESERVED_SLUGS = frozenset({
    'auth', 'organizations', 'healthz', 'metrics', 'admin',
    'swagger', 'redoc', 'ws', 'static', 'media',
})


def slugify_org_name(name: str) -> str:
    """Lowercase ``name`` and replace every character outside ``[a-z0-9]`` with ``_``."""
    return re.sub(r'[^a-z0-9]', '_', (name or '').lower())


class TimestampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


# ---------------------------------------------------------------------------
# Central realm
# ---------------------------------------------------------------------------

class CentralUserManager(BaseUserManager):
    use_in_migrations = True

    def create_user(self, email: str, name: str, password: str | None = None, **extra):
        if not email:
            raise ValueError('email is required')
        if not name:
            raise ValueError('name is required')
        user = self.model(email=self.normalize_email(email).lower(), name=name, **extra)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email: str, name: str, password: str | None = None, **extra):
        extra.setdefault('is_staff', True)
        extra.setdefault('is_superuser', True)
        extra.setdefault('is_verified', True)
        return self.create_user(email, name, password, **extra)


class CentralUser(AbstractBaseUser, PermissionsMixin):
    """A platform administrator.

    Central users never belong to an organization; they create tenants and
    seed each tenant's first admin account.  New registrations stay
    unverified until another central user verifies them.
    """
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=150, unique=True)
    is_verified = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    # Hash of the currently valid refresh token; NULL after logout
    refresh_token = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CentralUserManager()

    USERNAME_FIELD = 'email'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = ['name']

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


class Organization(TimestampedModel):
    """A clinic tenant."""
    name = models.CharField(max_length=100, unique=True, validators=[MinLengthValidator(4)])
    slug = models.SlugField(max_length=100, unique=True)
    created_by = models.ForeignKey(
        CentralUser, null=True, blank=True, on_delete=models.SET_NULL, related_name='organizations_created'
    )

    class Meta:
        ordering = ['id']

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify_org_name(self.name)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.name} ({self.slug})"


# ---------------------------------------------------------------------------
# Organization realm
# ---------------------------------------------------------------------------

class DoctorProfile(TimestampedModel):
    specialization = models.CharField(max_length=255)
    license_number = models.CharField(max_length=100)
    phone_number = models.CharField(max_length=32, blank=True, null=True)

    def __str__(self) -> str:
        return f"{self.specialization} #{self.license_number}"


class PatientProfile(TimestampedModel):
    BLOOD_TYPE_CHOICES = [(bt, bt) for bt in ('A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-')]

    date_of_birth = models.DateField()
    phone_number = models.CharField(max_length=32)
    address = models.CharField(max_length=255, blank=True, null=True)
    emergency_contact_name = models.CharField(max_length=255, blank=True, null=True)
    emergency_contact_phone = models.CharField(max_length=32, blank=True, null=True)
    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES, blank=True, null=True)
    allergies = models.TextField(blank=True, null=True)
    chronic_conditions = models.TextField(blank=True, null=True)
    # Address the profile was last written from
    ip_address = models.GenericIPAddressField(blank=True, null=True)

    def __str__(self) -> str:
        return f"patient profile {self.id} (dob {self.date_of_birth})"


class AdminProfile(TimestampedModel):
    def __str__(self) -> str:
        return f"admin profile {self.id}"


class OrganizationUser(TimestampedModel):
    """A person belonging to exactly one organization.

    The role is carried by at most one linked profile.  The rule is checked
    by :func:`clinic.services.profiles.ensure_profile_exclusivity` in every
    write path and backed by the ``organization_user_single_profile`` check
    constraint.
    """
    ROLE_ADMIN = 'admin'
    ROLE_DOCTOR = 'doctor'
    ROLE_PATIENT = 'patient'

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='users')
    email = models.EmailField()
    password = models.CharField(max_length=255)
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    refresh_token = models.TextField(null=True, blank=True)

    doctor_profile = models.OneToOneField(
        DoctorProfile, null=True, blank=True, on_delete=models.SET_NULL, related_name='user'
    )
    patient_profile = models.OneToOneField(
        PatientProfile, null=True, blank=True, on_delete=models.SET_NULL, related_name='user'
    )
    admin_profile = models.OneToOneField(
        AdminProfile, null=True, blank=True, on_delete=models.SET_NULL, related_name='user'
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['organization', 'email'], name='organization_user_email_unique'),
            models.CheckConstraint(
                condition=(
                    ~(Q(doctor_profile__isnull=False) & Q(patient_profile__isnull=False))
                    & ~(Q(doctor_profile__isnull=False) & Q(admin_profile__isnull=False))
                    & ~(Q(patient_profile__isnull=False) & Q(admin_profile__isnull=False))
                ),
                name='organization_user_single_profile',
            ),
        ]

    # DRF's IsAuthenticated inspects these on ``request.user``
    is_authenticated = True
    is_anonymous = False

    @property
    def role(self) -> str | None:
        if self.admin_profile_id:
            return self.ROLE_ADMIN
        if self.doctor_profile_id:
            return self.ROLE_DOCTOR
        if self.patient_profile_id:
            return self.ROLE_PATIENT
        return None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self) -> str:
        return f"{self.email} ({self.role or 'no role'}) @ {self.organization_id}"


class Appointment(TimestampedModel):
    class Status(models.TextChoices):
        PENDING = 'PENDING', 'Pending'
        APPROVED = 'APPROVED', 'Approved'
        DECLINED = 'DECLINED', 'Declined'
        COMPLETED = 'COMPLETED', 'Completed'
        CANCELLED = 'CANCELLED', 'Cancelled'

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='appointments')
    patient = models.ForeignKey(
        OrganizationUser, null=True, on_delete=models.SET_NULL, related_name='patient_appointments'
    )
    doctor = models.ForeignKey(
        OrganizationUser, null=True, on_delete=models.SET_NULL, related_name='doctor_appointments'
    )
    appointment_datetime = models.DateTimeField()
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING, db_index=True)
    notes = models.TextField(blank=True, null=True)

    class Meta:
        indexes = [
            models.Index(fields=['doctor', 'status', 'appointment_datetime'], name='appt_doctor_status_time_idx'),
            models.Index(fields=['patient', 'appointment_datetime'], name='appt_patient_time_idx'),
        ]

    def __str__(self) -> str:
        return f"appt {self.id} d={self.doctor_id} p={self.patient_id} {self.status}"


class AppointmentTransition(models.Model):
    """Records a status change of an appointment."""
    appointment = models.ForeignKey(Appointment, related_name='transitions', on_delete=models.CASCADE)
    from_status = models.CharField(max_length=16)
    to_status = models.CharField(max_length=16)
    actor = models.ForeignKey(
        OrganizationUser, null=True, blank=True, on_delete=models.SET_NULL, related_name='appointment_transitions'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self) -> str:
        return f"{self.appointment_id}: {self.from_status} → {self.to_status}"


class AuditEvent(models.Model):
    REALM_CENTRAL = 'central'
    REALM_ORG = 'org'
    REALM_ANONYMOUS = 'anonymous'
    REALM_CHOICES = (
        (REALM_CENTRAL, 'central'),
        (REALM_ORG, 'org'),
        (REALM_ANONYMOUS, 'anonymous'),
    )

    organization = models.ForeignKey(Organization, null=True, blank=True, on_delete=models.SET_NULL)
    actor_realm = models.CharField(max_length=16, choices=REALM_CHOICES, default=REALM_ANONYMOUS)
    actor_id = models.BigIntegerField(blank=True, null=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.BigIntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.actor_realm}/{self.actor_id}@{self.created_at:%F %T}"
