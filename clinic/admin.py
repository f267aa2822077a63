"""
Django admin registrations for the clinic models.

Superusers (central users with ``is_staff``) can inspect organizations,
accounts and appointments under ``/admin/``.
"""
from django.contrib import admin

from .models import (
    AdminProfile,
    Appointment,
    AppointmentTransition,
    AuditEvent,
    CentralUser,
    DoctorProfile,
    Organization,
    OrganizationUser,
    PatientProfile,
)


@admin.register(CentralUser)
class CentralUserAdmin(admin.ModelAdmin):
    list_display = ('email', 'name', 'is_verified', 'is_staff', 'created_at')
    list_filter = ('is_verified', 'is_staff')
    search_fields = ('email', 'name')
    exclude = ('password', 'refresh_token')


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'slug', 'created_by', 'created_at')
    search_fields = ('name', 'slug')


@admin.register(OrganizationUser)
class OrganizationUserAdmin(admin.ModelAdmin):
    list_display = ('email', 'first_name', 'last_name', 'organization', 'role')
    list_filter = ('organization',)
    search_fields = ('email', 'first_name', 'last_name')
    exclude = ('password', 'refresh_token')


admin.site.register(DoctorProfile)
admin.site.register(PatientProfile)
admin.site.register(AdminProfile)


class AppointmentTransitionInline(admin.TabularInline):
    model = AppointmentTransition
    extra = 0
    readonly_fields = ('from_status', 'to_status', 'actor', 'created_at')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'organization', 'doctor', 'patient', 'appointment_datetime', 'status')
    list_filter = ('status', 'organization')
    # Status only moves through the lifecycle endpoints
    readonly_fields = ('status',)
    inlines = [AppointmentTransitionInline]


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'action', 'actor_realm', 'actor_id', 'organization', 'object_type', 'object_id')
    list_filter = ('action', 'actor_realm')
