from django.urls import path

from .consumers import AppointmentUpdatesConsumer

websocket_urlpatterns = [
    path('ws/<slug:org_slug>/appointments/', AppointmentUpdatesConsumer.as_asgi()),
]
