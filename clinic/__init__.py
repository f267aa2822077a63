"""Clinic application for the multi-tenant clinic portal.

This package contains the models, serializers, services, views and route
registrations for both the central administration realm and the
organization-scoped portal used by admins, doctors and patients.
"""
