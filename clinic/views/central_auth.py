"""
Authentication endpoints of the central realm.

Platform administrators register, log in and verify each other here.  The
project-wide default authentication class is the central JWT realm, so the
authenticated views below need no explicit ``authentication_classes``; the
anonymous ones ignore any bearer header sent along.
"""
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from clinic.authentication import PublicEndpointAuthentication
from clinic.permissions import IsCentralUser
from clinic.serializers.auth import (
    CentralRegisterSerializer, LoginSerializer, LogoutSerializer, RefreshSerializer, VerifySerializer,
)
from clinic.services import central_auth, tokens
from clinic.services.audit import log_action
from clinic.views import client_ip


@api_view(['POST'])
@authentication_classes([PublicEndpointAuthentication])
@permission_classes([AllowAny])
def register_view(request):
    s = CentralRegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = central_auth.register_central_user(**s.validated_data)
    return Response({'ok': True, 'user': central_auth.describe_central_user(user)}, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@authentication_classes([PublicEndpointAuthentication])
@permission_classes([AllowAny])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user, pair = central_auth.login_central_user(ip=client_ip(request), **s.validated_data)
    return Response({'ok': True, **pair, 'user': central_auth.describe_central_user(user)})


@api_view(['POST'])
@authentication_classes([PublicEndpointAuthentication])
@permission_classes([AllowAny])
def refresh_view(request):
    s = RefreshSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user, pair = tokens.rotate_central(s.validated_data['refresh'])
    log_action(actor=user, action='central_refresh', object_type='central_user', object_id=user.id)
    return Response({'ok': True, **pair})


@api_view(['POST'])
@permission_classes([IsCentralUser])
def logout_view(request):
    s = LogoutSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    tokens.revoke(request.user, s.validated_data.get('refresh'))
    log_action(actor=request.user, action='central_logout', object_type='central_user', object_id=request.user.id)
    return Response({'ok': True})


@api_view(['GET'])
@permission_classes([IsCentralUser])
def me_view(request):
    return Response({'ok': True, 'user': central_auth.describe_central_user(request.user)})


@api_view(['POST'])
@permission_classes([IsCentralUser])
def verify_view(request):
    s = VerifySerializer(data=request.data)
    s.is_valid(raise_exception=True)
    target = central_auth.verify_central_user(request.user, s.validated_data['user_id'])
    return Response({'ok': True, 'user': central_auth.describe_central_user(target)})


# DRF's ScopedRateThrottle reads throttle_scope off the view class
register_view.cls.throttle_scope = 'register'
login_view.cls.throttle_scope = 'login'
refresh_view.cls.throttle_scope = 'refresh'
