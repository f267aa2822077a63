"""
URL mappings for the clinic portal API.

Central routes come first so that their prefixes can never be read as an
organization slug (those names are also reserved at organization
creation).  Trailing slashes are deliberately omitted.
"""
from django.urls import include, path

from .views import appointments, central_auth, doctors, health, org_auth, organizations, patients

central_patterns = [
    path('auth/register', central_auth.register_view, name='central_register'),
    path('auth/login', central_auth.login_view, name='central_login'),
    path('auth/refresh', central_auth.refresh_view, name='central_refresh'),
    path('auth/logout', central_auth.logout_view, name='central_logout'),
    path('auth/me', central_auth.me_view, name='central_me'),
    path('auth/verify', central_auth.verify_view, name='central_verify'),
    path('organizations', organizations.organizations_view, name='organizations'),
    path('organizations/count', organizations.organization_count, name='organization_count'),
    path('organizations/<slug:slug>/exists', organizations.organization_exists, name='organization_exists'),
    path('organizations/<int:org_id>/users', organizations.organization_users, name='organization_users'),
    path('healthz', health.healthz, name='healthz'),
]

org_patterns = [
    path('auth/login', org_auth.org_login_view, name='org_login'),
    path('auth/refresh', org_auth.org_refresh_view, name='org_refresh'),
    path('auth/logout', org_auth.org_logout_view, name='org_logout'),
    path('auth/me', org_auth.org_me_view, name='org_me'),
    path('doctors', doctors.doctors_view, name='doctors'),
    path('patients/register', patients.patient_register, name='patient_register'),
    path('patients/me', patients.patient_me, name='patient_me'),
    path('patients', patients.list_patients, name='patients'),
    path('appointments', appointments.appointments_view, name='appointments'),
    path('appointments/me', appointments.my_appointments, name='my_appointments'),
    path('appointments/pending', appointments.pending_appointments, name='pending_appointments'),
    path('appointments/<int:appointment_id>', appointments.appointment_detail, name='appointment_detail'),
    path('appointments/<int:appointment_id>/approve', appointments.approve_appointment, name='appointment_approve'),
    path('appointments/<int:appointment_id>/decline', appointments.decline_appointment, name='appointment_decline'),
    path('appointments/<int:appointment_id>/complete', appointments.complete_appointment,
         name='appointment_complete'),
    path('appointments/<int:appointment_id>/cancel', appointments.cancel_appointment, name='appointment_cancel'),
]

urlpatterns = central_patterns + [
    path('', include('django_prometheus.urls')),
    path('<slug:org_slug>/', include(org_patterns)),
]
