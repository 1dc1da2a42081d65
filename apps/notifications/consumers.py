import logging

from channels.generic.websocket import AsyncJsonWebsocketConsumer

from .sinks import user_group

logger = logging.getLogger(__name__)


class NotificationConsumer(AsyncJsonWebsocketConsumer):

    async def connect(self):
        user = self.scope.get("user")

        if not user or not user.is_authenticated:
            logger.info("Notification socket rejected: unauthenticated")
            await self.close()
            return

        self.group_name = user_group(user.id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

    async def disconnect(self, close_code):
        group_name = getattr(self, "group_name", None)
        if group_name:
            await self.channel_layer.group_discard(group_name, self.channel_name)

    async def send_notification(self, event):
        payload = {key: value for key, value in event.items() if key != "type"}
        await self.send_json(payload)
