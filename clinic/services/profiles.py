"""
Profile exclusivity for organization users.

An organization user holds at most one of the doctor, patient and admin
profiles; the profile decides the user's role.  The check is a pure function
so that callers can inspect the outcome, with :func:`ensure_profile_exclusivity`
as the raising form used by every write path before ``save()``.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from clinic.exceptions import ValidationFailed

PROFILE_FIELDS = (
    ('doctor', 'doctor_profile_id'),
    ('patient', 'patient_profile_id'),
    ('admin', 'admin_profile_id'),
)


@dataclass(frozen=True)
class ProfileCheck:
    ok: bool
    profiles: tuple[str, ...] = field(default_factory=tuple)
    message: str = ''


def _linked(user, attr: str) -> bool:
    if getattr(user, attr, None) is not None:
        return True
    # Unsaved related objects have no id yet
    return getattr(user, attr[:-3], None) is not None


def validate_profile_exclusivity(user) -> ProfileCheck:
    profiles = tuple(kind for kind, attr in PROFILE_FIELDS if _linked(user, attr))
    if len(profiles) > 1:
        return ProfileCheck(
            ok=False,
            profiles=profiles,
            message=f"A user can only have one profile, found: {', '.join(profiles)}",
        )
    return ProfileCheck(ok=True, profiles=profiles)


def ensure_profile_exclusivity(user) -> None:
    result = validate_profile_exclusivity(user)
    if not result.ok:
        raise ValidationFailed(result.message)
