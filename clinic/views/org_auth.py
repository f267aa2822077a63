"""
Authentication endpoints of an organization portal.

Tokens issued here carry ``realm=org`` and the organization slug, and are
accepted only under ``/<org_slug>/`` for that same slug.
"""
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from clinic.authentication import OrgJWTAuthentication, PublicEndpointAuthentication
from clinic.permissions import IsOrgUser
from clinic.serializers.auth import LoginSerializer, LogoutSerializer, RefreshSerializer
from clinic.services import tokens
from clinic.services.audit import log_action
from clinic.services.org_users import authenticate_org_user, describe_user
from clinic.services.organizations import require_org
from clinic.views import client_ip


@api_view(['POST'])
@authentication_classes([PublicEndpointAuthentication])
@permission_classes([AllowAny])
def org_login_view(request, org_slug):
    org = require_org(org_slug)
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    ip = client_ip(request)
    user = authenticate_org_user(org, s.validated_data['email'], s.validated_data['password'])
    if user is None:
        log_action(action='org_login', organization=org,
                   detail={'result': 'fail', 'email': s.validated_data['email'], 'ip': ip})
        raise AuthenticationFailed('Invalid email or password.')
    pair = tokens.issue_org_tokens(user)
    log_action(actor=user, action='org_login', object_type='organization_user', object_id=user.id,
               detail={'result': 'ok', 'ip': ip})
    return Response({'ok': True, **pair, 'user': describe_user(user)})


@api_view(['POST'])
@authentication_classes([PublicEndpointAuthentication])
@permission_classes([AllowAny])
def org_refresh_view(request, org_slug):
    require_org(org_slug)
    s = RefreshSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user, pair = tokens.rotate_org(s.validated_data['refresh'], org_slug)
    log_action(actor=user, action='org_refresh', object_type='organization_user', object_id=user.id)
    return Response({'ok': True, **pair})


@api_view(['POST'])
@authentication_classes([OrgJWTAuthentication])
@permission_classes([IsOrgUser])
def org_logout_view(request, org_slug):
    s = LogoutSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    tokens.revoke(request.user, s.validated_data.get('refresh'))
    log_action(actor=request.user, action='org_logout', object_type='organization_user', object_id=request.user.id)
    return Response({'ok': True})


@api_view(['GET'])
@authentication_classes([OrgJWTAuthentication])
@permission_classes([IsOrgUser])
def org_me_view(request, org_slug):
    return Response({'ok': True, 'user': describe_user(request.user)})


org_login_view.cls.throttle_scope = 'login'
org_refresh_view.cls.throttle_scope = 'refresh'
