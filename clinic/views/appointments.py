"""
Appointment endpoints of an organization portal.

Patients book and cancel; doctors approve, decline and complete.  The
lifecycle rules themselves live in :mod:`clinic.services.appointments`.
"""
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.response import Response

from clinic.authentication import OrgJWTAuthentication
from clinic.exceptions import AuthorizationError
from clinic.models import OrganizationUser
from clinic.permissions import IsDoctor, IsOrgUser, IsPatient
from clinic.serializers.appointment import AppointmentCreateSerializer, PaginationSerializer
from clinic.services import appointments as svc


def _paginated(request, qs):
    """Slice ``qs`` by the ``limit``/``offset`` query parameters."""
    page = PaginationSerializer(data=request.query_params)
    page.is_valid(raise_exception=True)
    limit, offset = page.validated_data['limit'], page.validated_data['offset']
    total = qs.count()
    data = [svc.serialize_appointment(a) for a in qs[offset:offset + limit]]
    return Response({'ok': True, 'data': data, 'pagination': {'total': total, 'limit': limit, 'offset': offset}})


@api_view(['GET', 'POST'])
@authentication_classes([OrgJWTAuthentication])
@permission_classes([IsOrgUser])
def appointments_view(request, org_slug):
    """POST books an appointment (patients); GET lists the doctor's own."""
    user = request.user
    org = user.organization
    if request.method == 'POST':
        if user.role != OrganizationUser.ROLE_PATIENT:
            raise AuthorizationError()
        s = AppointmentCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        appt = svc.book_appointment(org, user, **s.validated_data)
        return Response({'ok': True, 'appointment': svc.serialize_appointment(appt)}, status=status.HTTP_201_CREATED)

    if user.role != OrganizationUser.ROLE_DOCTOR:
        raise AuthorizationError()
    return _paginated(request, svc.doctor_appointments(org, user, request.query_params.get('status') or None))


@api_view(['GET'])
@authentication_classes([OrgJWTAuthentication])
@permission_classes([IsPatient])
def my_appointments(request, org_slug):
    return _paginated(request, svc.patient_appointments(request.user.organization, request.user))


@api_view(['GET'])
@authentication_classes([OrgJWTAuthentication])
@permission_classes([IsDoctor])
def pending_appointments(request, org_slug):
    return _paginated(request, svc.pending_for_doctor(request.user.organization, request.user))


@api_view(['GET'])
@authentication_classes([OrgJWTAuthentication])
@permission_classes([IsOrgUser])
def appointment_detail(request, org_slug, appointment_id):
    appt = svc.get_appointment_for(request.user.organization, request.user, appointment_id)
    return Response({'ok': True, 'appointment': svc.serialize_appointment(appt, with_history=True)})


def _transition_view(action):
    def view(request, org_slug, appointment_id):
        appt = action(request.user.organization, request.user, appointment_id)
        return Response({'ok': True, 'appointment': svc.serialize_appointment(appt)})
    view.__name__ = f'{action.__name__}_appointment'
    view = permission_classes([IsOrgUser])(view)
    view = authentication_classes([OrgJWTAuthentication])(view)
    return api_view(['PUT'])(view)


approve_appointment = _transition_view(svc.approve)
decline_appointment = _transition_view(svc.decline)
complete_appointment = _transition_view(svc.complete)
cancel_appointment = _transition_view(svc.cancel)
