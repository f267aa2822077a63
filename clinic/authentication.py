"""
JWT authentication for the two realms.

Both realms use djangorestframework-simplejwt tokens signed with the same
key.  A ``realm`` claim separates them: central tokens identify a
``CentralUser`` through the standard ``user_id`` claim, while organization
tokens carry ``org_user_id`` together with the ``org`` slug they were issued
for.  An organization token is only accepted on routes under that same
slug.
"""
from __future__ import annotations

from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken

from clinic.models import OrganizationUser

REALM_CLAIM = 'realm'
ORG_CLAIM = 'org'
ORG_USER_CLAIM = 'org_user_id'
REALM_CENTRAL = 'central'
REALM_ORG = 'org'


class CentralJWTAuthentication(JWTAuthentication):
    """Bearer tokens issued to platform administrators."""

    def get_validated_token(self, raw_token):
        token = super().get_validated_token(raw_token)
        if token.get(REALM_CLAIM) != REALM_CENTRAL:
            raise InvalidToken({'detail': 'Token is not valid for this realm.', 'code': 'token_not_valid'})
        return token

    def get_user(self, validated_token):
        user = super().get_user(validated_token)
        if not user.is_verified:
            raise AuthenticationFailed('User is not verified.', code='user_not_verified')
        return user


def org_user_from_token(validated_token, org_slug: str | None) -> OrganizationUser:
    """Resolve the organization user named by an access token.

    Raises ``InvalidToken`` when the token belongs to another realm or was
    issued for a different organization than ``org_slug``.
    """
    if validated_token.get(REALM_CLAIM) != REALM_ORG:
        raise InvalidToken({'detail': 'Token is not valid for this realm.', 'code': 'token_not_valid'})
    token_org = validated_token.get(ORG_CLAIM)
    if not org_slug or token_org != org_slug:
        raise InvalidToken({'detail': 'Token was issued for another organization.', 'code': 'token_not_valid'})
    user_id = validated_token.get(ORG_USER_CLAIM)
    if user_id is None:
        raise InvalidToken({'detail': 'Token contained no recognizable user identification.'})
    user = (
        OrganizationUser.objects.select_related('organization', 'doctor_profile', 'patient_profile', 'admin_profile')
        .filter(pk=user_id, organization__slug=org_slug)
        .first()
    )
    if user is None:
        raise AuthenticationFailed('User not found.', code='user_not_found')
    return user


class OrgJWTAuthentication(JWTAuthentication):
    """Bearer tokens issued to members of one organization.

    The organization comes from the ``org_slug`` URL keyword of the view
    being dispatched.
    """

    def authenticate(self, request):
        header = self.get_header(request)
        if header is None:
            return None
        raw_token = self.get_raw_token(header)
        if raw_token is None:
            return None
        validated_token = self.get_validated_token(raw_token)
        kwargs = (getattr(request, 'parser_context', None) or {}).get('kwargs') or {}
        return org_user_from_token(validated_token, kwargs.get('org_slug')), validated_token


class PublicEndpointAuthentication(JWTAuthentication):
    """For anonymous endpoints such as login, refresh and registration.

    Any bearer header is ignored, so a stale or foreign token never blocks
    the request.  The ``WWW-Authenticate`` challenge is kept, which makes
    rejected credentials answer 401 rather than 403.
    """

    def authenticate(self, request):
        return None
