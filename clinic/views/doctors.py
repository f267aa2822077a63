from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.response import Response

from clinic.authentication import OrgJWTAuthentication
from clinic.exceptions import AuthorizationError
from clinic.models import OrganizationUser
from clinic.permissions import IsOrgUser
from clinic.serializers.doctor import DoctorCreateSerializer
from clinic.services.audit import log_action
from clinic.services.doctors import create_doctor, list_doctors, serialize_doctor


@api_view(['GET', 'POST'])
@authentication_classes([OrgJWTAuthentication])
@permission_classes([IsOrgUser])
def doctors_view(request, org_slug):
    """GET lists the organization's doctors; POST (admins only) adds one."""
    org = request.user.organization
    if request.method == 'GET':
        return Response({'ok': True, 'data': [serialize_doctor(d) for d in list_doctors(org)]})

    if request.user.role != OrganizationUser.ROLE_ADMIN:
        raise AuthorizationError()
    s = DoctorCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    doctor = create_doctor(org, s.validated_data)
    log_action(actor=request.user, action='doctor_create', object_type='organization_user', object_id=doctor.id)
    return Response({'ok': True, 'doctor': serialize_doctor(doctor)}, status=status.HTTP_201_CREATED)
