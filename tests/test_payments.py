from decimal import Decimal

import pytest

from apps.billing.models import Payment
from apps.billing.selectors import FreelancerEarningsSelector, PaymentAccessSelector
from apps.billing.services import PaymentService
from apps.cores.context import Actor
from apps.cores.exceptions import Conflict, InvalidState, ValidationError

pytestmark = pytest.mark.django_db


def test_issue_payment(open_project, freelancer):
    payment = PaymentService().issue_payment(open_project.id, freelancer.id, Decimal("800.00"))

    assert payment.amount == Decimal("800.00")
    assert payment.currency == "USD"
    assert payment.paid_at is not None


def test_one_payment_per_project(open_project, freelancer):
    service = PaymentService()
    service.issue_payment(open_project.id, freelancer.id, Decimal("10"))

    with pytest.raises(Conflict):
        service.issue_payment(open_project.id, freelancer.id, Decimal("10"))
    assert Payment.objects.count() == 1


@pytest.mark.parametrize("amount", [None, Decimal("-5")])
def test_invalid_amounts(open_project, freelancer, amount):
    with pytest.raises(ValidationError):
        PaymentService().issue_payment(open_project.id, freelancer.id, amount)


def test_payments_are_immutable(open_project, freelancer):
    payment = PaymentService().issue_payment(open_project.id, freelancer.id, Decimal("10"))
    payment.amount = Decimal("99")

    with pytest.raises(InvalidState):
        payment.save()

    payment.refresh_from_db()
    assert payment.amount == Decimal("10")


def test_payment_visibility(lifecycle, staffed_project, client_user, other_client, freelancer, admin_user):
    lifecycle.complete_project(staffed_project.id, Actor.from_user(client_user))

    for user in (client_user, freelancer, admin_user):
        assert PaymentAccessSelector.for_actor(Actor.from_user(user)).count() == 1
    assert PaymentAccessSelector.for_actor(Actor.from_user(other_client)).count() == 0


def test_earnings_summary_and_graph(lifecycle, staffed_project, client_user, freelancer):
    lifecycle.complete_project(staffed_project.id, Actor.from_user(client_user))
    payment = Payment.objects.get()

    summary = FreelancerEarningsSelector.summary(freelancer.id)
    assert summary == {"payment_count": 1, "total_earned": Decimal("800.00")}

    graph = FreelancerEarningsSelector.earnings_graph(
        freelancer.id, year=payment.paid_at.year, compare=True
    )
    assert graph["monthly_earnings"] == [
        {"month": payment.paid_at.strftime("%Y-%m"), "total": Decimal("800.00")}
    ]
    assert graph["previous_year_comparison"] == []


def test_empty_earnings(freelancer):
    assert FreelancerEarningsSelector.summary(freelancer.id) == {
        "payment_count": 0,
        "total_earned": Decimal("0.00"),
    }
