import json
import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken

from clinic.authentication import org_user_from_token
from clinic.services.notifications import user_group

logger = logging.getLogger('clinic')


class AppointmentUpdatesConsumer(AsyncWebsocketConsumer):
    """Streams ``appointment.status`` events to one organization user.

    The access token is passed as ``?token=`` since browsers cannot set
    headers on a websocket handshake.
    """

    async def connect(self):
        self.group_name = None
        org_slug = self.scope['url_route']['kwargs']['org_slug']
        query = parse_qs(self.scope.get('query_string', b'').decode())
        raw = (query.get('token') or [''])[0]
        user = await self._resolve(raw, org_slug)
        if user is None:
            await self.close(code=4401)
            return
        self.group_name = user_group(user.organization_id, user.id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        await self.send(json.dumps({'type': 'welcome', 'role': user.role}))

    @database_sync_to_async
    def _resolve(self, raw, org_slug):
        if not raw:
            return None
        try:
            return org_user_from_token(AccessToken(raw), org_slug)
        except (TokenError, AuthenticationFailed):
            logger.info('websocket rejected for org %s', org_slug)
            return None

    async def disconnect(self, close_code):
        if self.group_name:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def appointment_status(self, event):
        await self.send(json.dumps(event))
