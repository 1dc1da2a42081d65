import asyncio
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings

logger = logging.getLogger(__name__)


def user_group(user_id):
    return f"user_{user_id}"


class NotificationSink:
    """Live delivery channel for notifications."""

    def push(self, user_id, event):
        raise NotImplementedError


class NullSink(NotificationSink):
    """Used when no live channel is configured."""

    def push(self, user_id, event):
        return None


class ChannelLayerSink(NotificationSink):
    """
    Push through the Channels layer to the user's group.

    A user with no open socket simply has no group members; the event is
    dropped by the layer. A send that outlives ``timeout`` seconds is
    abandoned and logged.
    """

    def __init__(self, channel_layer=None, timeout=None):
        self.channel_layer = channel_layer
        if timeout is None:
            timeout = getattr(settings, "NOTIFICATION_PUSH_TIMEOUT", 2)
        self.timeout = timeout

    def push(self, user_id, event):
        channel_layer = self.channel_layer or get_channel_layer()
        if channel_layer is None:
            logger.debug("No channel layer configured, skipping push to user %s", user_id)
            return
        try:
            async_to_sync(self._send)(
                channel_layer,
                user_group(user_id),
                {"type": "send_notification", **event},
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Push to user %s timed out after %ss", user_id, self.timeout,
            )

    async def _send(self, channel_layer, group, message):
        await asyncio.wait_for(channel_layer.group_send(group, message), timeout=self.timeout)


def get_default_sink():
    if get_channel_layer() is None:
        return NullSink()
    return ChannelLayerSink()
