from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from clinic.permissions import IsCentralUser
from clinic.serializers.organization import (
    OrganizationCreateSerializer, OrganizationSerializer, OrgUserCreateSerializer,
)
from clinic.services import organizations
from clinic.services.org_users import describe_user


@api_view(['GET', 'POST'])
@permission_classes([IsCentralUser])
def organizations_view(request):
    if request.method == 'GET':
        data = OrganizationSerializer(organizations.list_organizations(), many=True).data
        return Response({'ok': True, 'data': data})
    s = OrganizationCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    org = organizations.create_organization(s.validated_data['name'], created_by=request.user)
    return Response({'ok': True, 'organization': OrganizationSerializer(org).data}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsCentralUser])
def organization_count(request):
    return Response({'ok': True, 'count': organizations.count_organizations()})


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def organization_exists(request, slug):
    return Response({'ok': True, 'exists': organizations.organization_exists(slug)})


@api_view(['POST'])
@permission_classes([IsCentralUser])
def organization_users(request, org_id):
    """Create an admin account inside an organization."""
    s = OrgUserCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = organizations.create_org_admin(org_id, s.validated_data, created_by=request.user)
    return Response({'ok': True, 'user': describe_user(user)}, status=status.HTTP_201_CREATED)
