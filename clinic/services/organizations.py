"""
Organization provisioning and slug lookup.

Lookups by slug sit on every organization-scoped request, so they go
through Django's cache for ``ORG_CACHE_TTL`` seconds.  Missing slugs are not
cached; a freshly created organization is visible immediately.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.conf import settings
from django.core.cache import cache
from django.db import IntegrityError, transaction

from clinic.exceptions import DuplicateResource, ResourceNotFound, ValidationFailed
from clinic.models import RESERVED_SLUGS, AdminProfile, CentralUser, Organization, slugify_org_name
from clinic.services.audit import log_action
from clinic.services.org_users import create_org_user

logger = logging.getLogger('clinic')

ORG_NAME_MIN_LENGTH = 4


def _cache_key(slug: str) -> str:
    return f"org:slug={slug}"


def get_org_by_slug(slug: str) -> Optional[Organization]:
    key = _cache_key(slug)
    org = cache.get(key)
    if org is not None:
        return org
    org = Organization.objects.filter(slug=slug).first()
    if org is not None:
        cache.set(key, org, getattr(settings, 'ORG_CACHE_TTL', 300))
    return org


def require_org(slug: str) -> Organization:
    org = get_org_by_slug(slug)
    if org is None:
        raise ResourceNotFound()
    return org


def organization_exists(slug: str) -> bool:
    return get_org_by_slug(slug) is not None


def count_organizations() -> int:
    return Organization.objects.count()


def list_organizations():
    return Organization.objects.order_by('id')


def create_organization(name: str, *, created_by: Optional[CentralUser] = None) -> Organization:
    name = (name or '').strip()
    if len(name) < ORG_NAME_MIN_LENGTH:
        raise ValidationFailed(f'Organization name must be at least {ORG_NAME_MIN_LENGTH} characters long')
    slug = slugify_org_name(name)
    if slug in RESERVED_SLUGS:
        raise ValidationFailed(f'Organization name "{name}" is reserved')
    if Organization.objects.filter(name=name).exists() or Organization.objects.filter(slug=slug).exists():
        raise DuplicateResource('Organization with this name already exists')
    try:
        with transaction.atomic():
            org = Organization.objects.create(name=name, slug=slug, created_by=created_by)
    except IntegrityError as exc:
        # Lost a race against a concurrent create with the same name
        raise DuplicateResource('Organization with this name already exists') from exc
    cache.delete(_cache_key(slug))
    log_action(actor=created_by, action='organization_created', organization=org,
               object_type='organization', object_id=org.id, detail={'name': name, 'slug': slug})
    logger.info('organization %s created', slug)
    return org


def create_org_admin(org_id: int, data: dict, *, created_by: Optional[CentralUser] = None):
    """Create an admin account inside organization ``org_id``."""
    org = Organization.objects.filter(pk=org_id).first()
    if org is None:
        raise ResourceNotFound()
    user = create_org_user(org, data, profile=AdminProfile())
    log_action(actor=created_by, action='org_admin_created', organization=org,
               object_type='organization_user', object_id=user.id, detail={'email': user.email})
    return user
