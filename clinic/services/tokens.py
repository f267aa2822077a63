"""
Token issuance and refresh rotation for both realms.

Only a hash of the most recently issued refresh token is stored on the user
row.  Refreshing requires the presented token to match that hash; the old
token is blacklisted and a new pair is issued.  Logging out clears the hash.
"""
from __future__ import annotations

import logging

from django.contrib.auth.hashers import check_password, make_password
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from clinic.authentication import (
    ORG_CLAIM, ORG_USER_CLAIM, REALM_CENTRAL, REALM_CLAIM, REALM_ORG,
)
from clinic.models import CentralUser, OrganizationUser

logger = logging.getLogger('clinic.security')


def _pair(refresh: RefreshToken) -> dict:
    return {'access': str(refresh.access_token), 'refresh': str(refresh)}


def issue_central_tokens(user: CentralUser) -> dict:
    refresh = RefreshToken.for_user(user)
    refresh[REALM_CLAIM] = REALM_CENTRAL
    tokens = _pair(refresh)
    user.refresh_token = make_password(tokens['refresh'])
    user.save(update_fields=['refresh_token', 'updated_at'])
    return tokens


def issue_org_tokens(user: OrganizationUser) -> dict:
    # Org users are not AUTH_USER_MODEL rows, so no ``user_id`` claim is set
    refresh = RefreshToken()
    refresh[REALM_CLAIM] = REALM_ORG
    refresh[ORG_CLAIM] = user.organization.slug
    refresh[ORG_USER_CLAIM] = user.id
    refresh['role'] = user.role
    tokens = _pair(refresh)
    user.refresh_token = make_password(tokens['refresh'])
    user.save(update_fields=['refresh_token', 'updated_at'])
    return tokens


def _decode(raw: str) -> RefreshToken:
    if not raw:
        raise InvalidToken({'detail': 'Refresh token is required.', 'code': 'token_not_valid'})
    try:
        return RefreshToken(raw)
    except TokenError as exc:
        raise InvalidToken({'detail': str(exc), 'code': 'token_not_valid'}) from exc


def _retire(token: RefreshToken) -> None:
    try:
        token.blacklist()
    except TokenError:
        logger.warning('refresh token %s already blacklisted', token.get('jti'))


def rotate_central(raw: str) -> tuple[CentralUser, dict]:
    token = _decode(raw)
    if token.get(REALM_CLAIM) != REALM_CENTRAL:
        raise InvalidToken({'detail': 'Token is not valid for this realm.', 'code': 'token_not_valid'})
    user = CentralUser.objects.filter(pk=token.get('user_id'), is_active=True).first()
    if user is None or not user.refresh_token or not check_password(raw, user.refresh_token):
        raise InvalidToken({'detail': 'Refresh token has been revoked.', 'code': 'token_not_valid'})
    _retire(token)
    return user, issue_central_tokens(user)


def rotate_org(raw: str, org_slug: str) -> tuple[OrganizationUser, dict]:
    token = _decode(raw)
    if token.get(REALM_CLAIM) != REALM_ORG or token.get(ORG_CLAIM) != org_slug:
        raise InvalidToken({'detail': 'Token is not valid for this organization.', 'code': 'token_not_valid'})
    user = (
        OrganizationUser.objects.select_related('organization')
        .filter(pk=token.get(ORG_USER_CLAIM), organization__slug=org_slug)
        .first()
    )
    if user is None or not user.refresh_token or not check_password(raw, user.refresh_token):
        raise InvalidToken({'detail': 'Refresh token has been revoked.', 'code': 'token_not_valid'})
    _retire(token)
    return user, issue_org_tokens(user)


def revoke(user, raw: str | None = None) -> None:
    """Forget the stored refresh hash and blacklist ``raw`` when given."""
    user.refresh_token = None
    user.save(update_fields=['refresh_token', 'updated_at'])
    if raw:
        try:
            _retire(RefreshToken(raw))
        except TokenError:
            logger.info('logout with unusable refresh token for %s', user.pk)
