from smtplib import SMTPException

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

from .models import Notification


@shared_task(
    bind=True,
    autoretry_for=(SMTPException, ConnectionError),
    retry_backoff=10,
    retry_kwargs={"max_retries": 3},
    soft_time_limit=getattr(settings, "NOTIFICATION_EMAIL_TIME_LIMIT", 15),
)
def send_notification_email(self, notification_id):
    """Mirror an in-app notification to the recipient's inbox."""
    try:
        notification = (
            Notification.objects
            .select_related("recipient")
            .get(id=notification_id)
        )
    except Notification.DoesNotExist:
        return False

    recipient = notification.recipient
    if not recipient.email:
        return False

    send_mail(
        subject=notification.title,
        message=notification.message or notification.title,
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[recipient.email],
    )
    return True
