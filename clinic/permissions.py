"""
Role based permission classes for organization users.

The role of an :class:`~clinic.models.OrganizationUser` is derived from the
profile it holds, see ``OrganizationUser.role``.
"""
from rest_framework.permissions import BasePermission

from clinic.models import CentralUser, OrganizationUser


def _org_role(request):
    user = getattr(request, 'user', None)
    if isinstance(user, OrganizationUser):
        return user.role
    return None


class IsCentralUser(BasePermission):
    """Only platform administrators."""
    def has_permission(self, request, view) -> bool:
        return isinstance(getattr(request, 'user', None), CentralUser)


class IsOrgUser(BasePermission):
    def has_permission(self, request, view) -> bool:
        return isinstance(getattr(request, 'user', None), OrganizationUser)


class IsOrgAdmin(BasePermission):
    def has_permission(self, request, view) -> bool:
        return _org_role(request) == OrganizationUser.ROLE_ADMIN


class IsDoctor(BasePermission):
    def has_permission(self, request, view) -> bool:
        return _org_role(request) == OrganizationUser.ROLE_DOCTOR


class IsPatient(BasePermission):
    def has_permission(self, request, view) -> bool:
        return _org_role(request) == OrganizationUser.ROLE_PATIENT


class IsDoctorOrAdmin(BasePermission):
    """Doctors and organization admins."""
    def has_permission(self, request, view) -> bool:
        return _org_role(request) in {OrganizationUser.ROLE_DOCTOR, OrganizationUser.ROLE_ADMIN}
