import logging

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, DatabaseError
from django.utils import timezone

from apps.cores.exceptions import Forbidden, NotFound, storage_guard
from apps.notifications.models import Notification
from apps.notifications.sinks import get_default_sink

logger = logging.getLogger(__name__)


def serialize_event(notif):
    return {
        "id": notif.id,
        "title": notif.title,
        "message": notif.message,
        "notif_type": notif.notif_type,
        "data": notif.data,
        "sender_id": notif.sender_id,
        "created_at": notif.created_at.isoformat() if notif.created_at else None,
        "is_read": notif.is_read,
    }


class NotificationService:
    """
    Records notifications and pushes them to the live channel.

    ``notify`` is best-effort: it runs after the triggering transaction has
    committed and never raises, so a failed push or insert cannot undo the
    state change that caused it.
    """

    def __init__(self, sink=None, using=DEFAULT_DB_ALIAS):
        self.sink = sink if sink is not None else get_default_sink()
        self.using = using

    def _notifications(self):
        return Notification.objects.using(self.using)

    # ------------------------------------
    # Fan-out
    # ------------------------------------
    def notify(self, recipient_id, title, message="", notif_type="", sender_id=None, data=None):
        try:
            notif = self._notifications().create(
                recipient_id=recipient_id,
                sender_id=sender_id,
                title=title,
                message=message,
                notif_type=notif_type,
                data=data or {},
            )
        except DatabaseError:
            logger.exception("Failed to store %s notification for user %s", notif_type, recipient_id)
            return None

        try:
            self.sink.push(recipient_id, serialize_event(notif))
        except Exception:
            logger.warning("Live push failed for notification %s", notif.id, exc_info=True)

        if getattr(settings, "NOTIFICATION_EMAILS_ENABLED", False):
            self._queue_email(notif)

        return notif

    def _queue_email(self, notif):
        from apps.notifications.tasks import send_notification_email

        try:
            send_notification_email.delay(notif.id)
        except Exception:
            logger.warning("Could not queue email for notification %s", notif.id, exc_info=True)

    # ------------------------------------
    # Inbox
    # ------------------------------------
    @storage_guard("list_notifications")
    def list_for_user(self, user_id):
        return list(
            self._notifications()
            .filter(recipient_id=user_id)
            .select_related(
                "sender",
                "sender__client_profile",
                "sender__freelancer_profile",
            )
            .order_by("-created_at", "-id")
        )

    def _get_owned(self, notification_id, actor):
        notif = self._notifications().filter(id=notification_id).first()
        if notif is None:
            raise NotFound("Notification not found.")
        if notif.recipient_id != actor.user_id:
            raise Forbidden("Unauthorized access.")
        return notif

    @storage_guard("mark_notification_read")
    def mark_read(self, notification_id, actor):
        notif = self._get_owned(notification_id, actor)
        if not notif.is_read:
            notif.is_read = True
            notif.save(update_fields=["is_read", "updated_at"])
        return notif

    @storage_guard("mark_all_notifications_read")
    def mark_all_read(self, user_id):
        return (
            self._notifications()
            .filter(recipient_id=user_id, is_read=False)
            .update(is_read=True, updated_at=timezone.now())
        )

    @storage_guard("unread_notification_count")
    def unread_count(self, user_id):
        return self._notifications().filter(recipient_id=user_id, is_read=False).count()

    @storage_guard("delete_notification")
    def delete_notification(self, notification_id, actor):
        notif = self._get_owned(notification_id, actor)
        notif.delete()
