from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from clinic.authentication import OrgJWTAuthentication, PublicEndpointAuthentication
from clinic.permissions import IsDoctorOrAdmin, IsPatient
from clinic.serializers.patient import PatientRegisterSerializer, PatientUpdateSerializer
from clinic.services import patients
from clinic.services.org_users import describe_user
from clinic.services.organizations import require_org
from clinic.views import client_ip


@api_view(['POST'])
@authentication_classes([PublicEndpointAuthentication])
@permission_classes([AllowAny])
def patient_register(request, org_slug):
    org = require_org(org_slug)
    s = PatientRegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user, pair = patients.register_patient(org, s.validated_data, ip=client_ip(request))
    return Response({'ok': True, **pair, 'user': describe_user(user)}, status=status.HTTP_201_CREATED)


patient_register.cls.throttle_scope = 'register'


@api_view(['GET'])
@authentication_classes([OrgJWTAuthentication])
@permission_classes([IsDoctorOrAdmin])
def list_patients(request, org_slug):
    """Admins see every patient; doctors only those with appointments with them."""
    qs = patients.list_patients(request.user.organization, request.user)
    return Response({'ok': True, 'data': [patients.serialize_patient(p) for p in qs]})


@api_view(['GET', 'PUT', 'DELETE'])
@authentication_classes([OrgJWTAuthentication])
@permission_classes([IsPatient])
def patient_me(request, org_slug):
    user = request.user
    if request.method == 'GET':
        return Response({'ok': True, 'patient': patients.serialize_patient(user)})
    if request.method == 'PUT':
        s = PatientUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        user = patients.update_patient(user, s.validated_data, ip=client_ip(request))
        return Response({'ok': True, 'patient': patients.serialize_patient(user)})
    patients.delete_patient(user)
    return Response(status=status.HTTP_204_NO_CONTENT)
