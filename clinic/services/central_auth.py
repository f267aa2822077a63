"""Registration, login and verification of platform administrators."""
from __future__ import annotations

import logging

from django.conf import settings
from django.db import IntegrityError, transaction
from rest_framework.exceptions import AuthenticationFailed

from clinic.exceptions import AuthorizationError, DuplicateResource, ResourceNotFound, ValidationFailed
from clinic.models import CentralUser
from clinic.services.audit import log_action
from clinic.services.tokens import issue_central_tokens

logger = logging.getLogger('clinic.security')


def register_central_user(*, email: str, name: str, password: str) -> CentralUser:
    email = (email or '').strip().lower()
    if CentralUser.objects.filter(email=email).exists():
        raise DuplicateResource('User with this email already exists')
    if CentralUser.objects.filter(name=name).exists():
        raise DuplicateResource('User with this name already exists')
    try:
        with transaction.atomic():
            user = CentralUser.objects.create_user(
                email, name, password, is_verified=bool(getattr(settings, 'CENTRAL_AUTO_VERIFY', False)),
            )
    except IntegrityError as exc:
        raise DuplicateResource('User with this email or name already exists') from exc
    log_action(actor=user, action='central_register', object_type='central_user', object_id=user.id)
    return user


def login_central_user(*, email: str, password: str, ip: str | None = None) -> tuple[CentralUser, dict]:
    email = (email or '').strip().lower()
    user = CentralUser.objects.filter(email=email, is_active=True).first()
    if user is None or not user.check_password(password):
        log_action(action='central_login', detail={'result': 'fail', 'email': email, 'ip': ip})
        raise AuthenticationFailed('Invalid email or password.')
    if not user.is_verified:
        log_action(actor=user, action='central_login', object_type='central_user', object_id=user.id,
                   detail={'result': 'unverified', 'ip': ip})
        raise AuthenticationFailed('User is not verified.', code='user_not_verified')
    tokens = issue_central_tokens(user)
    log_action(actor=user, action='central_login', object_type='central_user', object_id=user.id,
               detail={'result': 'ok', 'ip': ip})
    return user, tokens


def verify_central_user(actor: CentralUser, target_id: int) -> CentralUser:
    if actor.id == target_id:
        raise AuthorizationError()
    target = CentralUser.objects.filter(pk=target_id).first()
    if target is None:
        raise ResourceNotFound()
    if target.is_verified:
        raise ValidationFailed('User is already verified')
    # Conditional update so two verifiers cannot both succeed
    updated = CentralUser.objects.filter(pk=target.pk, is_verified=False).update(is_verified=True)
    if not updated:
        raise ValidationFailed('User is already verified')
    target.is_verified = True
    log_action(actor=actor, action='central_verify', object_type='central_user', object_id=target.id)
    return target


def describe_central_user(user: CentralUser) -> dict:
    return {
        'id': user.id,
        'email': user.email,
        'name': user.name,
        'is_verified': user.is_verified,
        'created_at': user.created_at,
    }
