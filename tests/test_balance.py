"""Tests for the balance calculator."""

import pytest
from datetime import date
from decimal import Decimal
from bubu.domain.balance import BALANCED, PARTNER_OWES_USER, USER_OWES_PARTNER
from bubu.domain.errors import NoRelationshipError

USER = "5551234567"
PARTNER = "5559876543"
OTHER = "5550001111"
TODAY = date(2024, 3, 20)


@pytest.fixture
def comida(seeded_categories):
    return seeded_categories["Comida"]


def test_partner_owes_user(balance_service, shared_service, partners, comida):
    """Test a 200 expense paid by the user at 65/35 leaves the partner owing 70."""
    shared_service.register_for(USER, Decimal("200"), comida.id, "expense", None, date(2024, 3, 5))

    report = balance_service.calculate_balance(USER, today=TODAY)

    assert report.total_shared_expenses == Decimal("200.00")
    assert report.expense_count == 1
    assert report.user.paid_total == Decimal("200.00")
    assert report.user.owes_total == Decimal("130.00")
    assert report.partner.owes_total == Decimal("70.00")
    assert report.who_owes_whom == PARTNER_OWES_USER
    assert report.amount_owed == Decimal("70.00")


def test_balance_is_symmetric(balance_service, shared_service, partners, comida):
    """Test the partner's view mirrors the user's view."""
    shared_service.register_for(USER, Decimal("200"), comida.id, "expense", None, date(2024, 3, 5))
    shared_service.register_for(PARTNER, Decimal("50"), comida.id, "expense", None, date(2024, 3, 6))

    mine = balance_service.calculate_balance(USER, today=TODAY)
    theirs = balance_service.calculate_balance(PARTNER, today=TODAY)

    assert mine.user.balance == -theirs.user.balance
    assert mine.user.balance + mine.partner.balance == Decimal("0")
    assert theirs.who_owes_whom == USER_OWES_PARTNER
    assert theirs.amount_owed == mine.amount_owed


def test_balanced(balance_service, shared_service, relationship_service, comida):
    """Test equal payments at 50/50 leave nobody owing."""
    relationship_service.create_relationship(USER, PARTNER)
    relationship_service.accept(PARTNER, USER)
    shared_service.register_for(USER, Decimal("80"), comida.id, "expense", None, date(2024, 3, 1))
    shared_service.register_for(PARTNER, Decimal("80"), comida.id, "expense", None, date(2024, 3, 2))

    report = balance_service.calculate_balance(USER, period="current_month", today=TODAY)

    assert report.who_owes_whom == BALANCED
    assert report.amount_owed == Decimal("0.00")


def test_period_filter(balance_service, shared_service, partners, comida):
    """Test only expenses inside the period count."""
    shared_service.register_for(USER, Decimal("200"), comida.id, "expense", None, date(2024, 2, 10))

    assert balance_service.calculate_balance(USER, today=TODAY).expense_count == 0
    assert balance_service.calculate_balance(USER, period="previous_month", today=TODAY).expense_count == 1
    assert balance_service.calculate_balance(USER, period="all", today=TODAY).expense_count == 1


def test_balance_requires_relationship(balance_service, partners):
    """Test a balance needs the active partner."""
    with pytest.raises(NoRelationshipError):
        balance_service.calculate_balance(OTHER)
    with pytest.raises(NoRelationshipError):
        balance_service.calculate_balance(USER, partner_phone=OTHER)


def test_balance_history(balance_service, shared_service, partners, comida):
    """Test monthly history, most recent month first."""
    shared_service.register_for(USER, Decimal("200"), comida.id, "expense", None, date(2024, 3, 5))
    shared_service.register_for(PARTNER, Decimal("100"), comida.id, "expense", None, date(2024, 1, 15))

    history = balance_service.balance_history(USER, months=3, today=TODAY)

    assert [row["month"] for row in history] == ["2024-03", "2024-02", "2024-01"]
    assert history[0]["who_owes_whom"] == PARTNER_OWES_USER
    assert history[0]["user_balance"] == Decimal("70.00")
    assert history[1]["expense_count"] == 0
    assert history[2]["who_owes_whom"] == USER_OWES_PARTNER
    assert history[2]["user_balance"] == Decimal("-65.00")
