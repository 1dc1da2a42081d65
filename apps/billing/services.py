import logging
from decimal import Decimal

from django.db import DEFAULT_DB_ALIAS, IntegrityError, transaction

from apps.cores.exceptions import Conflict, ValidationError

from .models import Payment

logger = logging.getLogger(__name__)


class PaymentService:

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using

    def issue_payment(self, project_id, freelancer_id, amount):
        """
        Create the immutable payment for a completed project.

        Runs inside the caller's transaction; linking ``project.payment`` is
        the caller's job.
        """
        if amount is None:
            raise ValidationError("Payment amount is required.")

        amount = Decimal(amount)
        if amount < 0:
            raise ValidationError("Payment amount cannot be negative.")

        try:
            with transaction.atomic(using=self.using):
                payment = Payment.objects.using(self.using).create(
                    project_id=project_id,
                    freelancer_id=freelancer_id,
                    amount=amount,
                )
        except IntegrityError as exc:
            raise Conflict("A payment already exists for this project.") from exc

        logger.info(
            "Issued payment %s of %s for project %s to freelancer %s",
            payment.id, amount, project_id, freelancer_id,
        )
        return payment
