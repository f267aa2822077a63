import logging
from typing import Any, Dict, Optional

from clinic.models import AuditEvent, CentralUser, Organization, OrganizationUser

logger = logging.getLogger('clinic.security')


def _realm_of(actor) -> str:
    if isinstance(actor, CentralUser):
        return AuditEvent.REALM_CENTRAL
    if isinstance(actor, OrganizationUser):
        return AuditEvent.REALM_ORG
    return AuditEvent.REALM_ANONYMOUS


def log_action(*, actor=None, action: str, organization: Optional[Organization] = None,
               object_type: Optional[str] = None, object_id: Optional[int] = None,
               detail: Optional[Dict[str, Any]] = None) -> AuditEvent:
    realm = _realm_of(actor)
    if organization is None and isinstance(actor, OrganizationUser):
        organization = actor.organization
    logger.info(
        '%s actor=%s/%s org=%s object=%s/%s detail=%s',
        action, realm, getattr(actor, 'id', None), getattr(organization, 'slug', None),
        object_type, object_id, detail or {},
    )
    return AuditEvent.objects.create(
        organization=organization,
        actor_realm=realm,
        actor_id=getattr(actor, 'id', None),
        action=action,
        object_type=object_type,
        object_id=object_id,
        detail=detail or {},
    )
