"""Tests for shared expenses."""

import pytest
from datetime import date
from decimal import Decimal
from bubu.domain.errors import NoRelationshipError, NotFoundError, ValidationError
from bubu.domain.shared import split_total

USER = "5551234567"
PARTNER = "5559876543"
OTHER = "5550001111"


@pytest.fixture
def comida(seeded_categories):
    return seeded_categories["Comida"]


@pytest.mark.parametrize(
    "total,splits,expected",
    [
        ("200", ("65", "35"), ("130.00", "70.00")),
        ("100", ("33.33", "66.67"), ("33.33", "66.67")),
        ("10", ("33.33", "66.67"), ("3.33", "6.67")),
        ("99.99", ("50", "50"), ("50.00", "49.99")),
    ],
)
def test_split_total(total, splits, expected):
    """Test legs are rounded half-up and always add up to the total."""
    payer, partner = split_total(Decimal(total), Decimal(splits[0]), Decimal(splits[1]))
    assert (payer, partner) == (Decimal(expected[0]), Decimal(expected[1]))
    assert payer + partner == Decimal(total)


def test_register_shared_with_default_split(shared_service, transaction_service, partners, comida):
    """Test a 200 expense at 65/35 creates legs of 130 and 70."""
    shared = shared_service.register_for(USER, Decimal("200"), comida.id, "expense", "súper", date(2024, 3, 1))

    assert shared.payer_phone == USER
    assert shared.partner_phone == PARTNER
    assert shared.total_amount == Decimal("200.00")
    assert shared.relationship_id == partners.id

    payer_leg = transaction_service.get_transaction(shared.transaction_1_id)
    partner_leg = transaction_service.get_transaction(shared.transaction_2_id)
    assert (payer_leg.user_phone, payer_leg.amount) == (USER, Decimal("130.00"))
    assert (partner_leg.user_phone, partner_leg.amount) == (PARTNER, Decimal("70.00"))
    assert payer_leg.is_shared and partner_leg.is_shared
    assert payer_leg.transaction_date == date(2024, 3, 1)
    assert shared.percentage_for(PARTNER) == Decimal("35.00")


def test_register_shared_paid_by_partner(shared_service, transaction_service, partners, comida):
    """Test percentages given from the caller's view are reoriented when the partner paid."""
    shared = shared_service.register_for(
        USER, Decimal("100"), comida.id, "expense", None, paid_by_user=False
    )

    assert shared.payer_phone == PARTNER
    assert shared.split_percentage_1 == Decimal("35.00")
    assert shared.split_percentage_2 == Decimal("65.00")
    assert transaction_service.get_transaction(shared.transaction_2_id).amount == Decimal("65.00")


def test_custom_split_is_completed(shared_service, partners):
    """Test a single explicit percentage is completed to 100."""
    split = shared_service.resolve_split(USER, user_split=80)
    assert (split["user_split"], split["partner_split"]) == (Decimal("80.00"), Decimal("20.00"))
    assert split["is_custom"] is True

    default = shared_service.resolve_split(PARTNER)
    assert default["user_split"] == Decimal("35.00")
    assert default["is_custom"] is False

    with pytest.raises(ValidationError):
        shared_service.resolve_split(USER, user_split=70, partner_split=40)


def test_shared_requires_active_relationship(shared_service, relationship_service, comida):
    """Test shared expenses need an active partner."""
    with pytest.raises(NoRelationshipError):
        shared_service.register_for(USER, Decimal("100"), comida.id, "expense", None)

    relationship_service.create_relationship(USER, PARTNER)
    with pytest.raises(NoRelationshipError):
        shared_service.create_shared(USER, PARTNER, Decimal("100"), comida.id, "expense", None, 50, 50)


def test_create_shared_with_wrong_partner(shared_service, partners, comida):
    """Test the partner must be the other member of the relationship."""
    with pytest.raises(NoRelationshipError):
        shared_service.create_shared(USER, OTHER, Decimal("100"), comida.id, "expense", None, 50, 50)


@pytest.mark.parametrize(
    "total,payer_split,partner_split",
    [("200", 100, 0), ("0.01", 50, 50)],
)
def test_create_shared_rejects_empty_leg(
    shared_service, transaction_service, partners, comida, total, payer_split, partner_split
):
    """Test a split that leaves one leg at 0.00 is rejected and writes nothing."""
    with pytest.raises(ValidationError):
        shared_service.create_shared(
            USER, PARTNER, Decimal(total), comida.id, "expense", "cena", payer_split, partner_split
        )

    assert transaction_service.list_for_user(USER) == []
    assert transaction_service.list_for_user(PARTNER) == []
    assert shared_service.list_shared(USER, "all") == []


def test_get_details(shared_service, partners, comida):
    """Test the detail view includes both legs."""
    shared = shared_service.register_for(USER, Decimal("200"), comida.id, "expense", "súper")

    details = shared_service.get_details(shared.id, PARTNER)

    assert details["split"] == "65/35"
    assert details["category_name"] == "Comida"
    assert details["user1"]["phone"] == USER
    assert details["user1"]["amount"] == Decimal("130.00")
    assert details["user2"]["amount"] == Decimal("70.00")
    with pytest.raises(NotFoundError):
        shared_service.get_details(shared.id, OTHER)


def test_list_shared(shared_service, partners, comida):
    """Test both members see the shared expense."""
    shared = shared_service.register_for(USER, Decimal("200"), comida.id, "expense", None, date(2024, 3, 1))

    assert [s.id for s in shared_service.list_shared(PARTNER, "all")] == [shared.id]
    assert shared_service.list_shared(USER, "current_month", today=date(2024, 5, 10)) == []
    assert [s.id for s in shared_service.list_shared(USER, "current_month", today=date(2024, 3, 20))] == [shared.id]


def test_delete_shared_removes_legs(shared_service, transaction_service, partners, comida):
    """Test deleting a shared expense deletes both legs."""
    shared = shared_service.register_for(USER, Decimal("200"), comida.id, "expense", None)

    shared_service.delete_shared(shared.id, PARTNER)

    assert shared_service.get_shared(shared.id) is None
    assert transaction_service.get_transaction(shared.transaction_1_id) is None
    assert transaction_service.get_transaction(shared.transaction_2_id) is None
    with pytest.raises(NotFoundError):
        shared_service.delete_shared(shared.id)


def test_failed_link_leaves_no_legs(shared_service, transaction_service, partners, comida, monkeypatch):
    """Test a failure while writing the link row rolls back both legs."""

    def broken(**kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr("bubu.database.sqlalchemy_db.SharedTransaction", broken)

    with pytest.raises(RuntimeError):
        shared_service.register_for(USER, Decimal("200"), comida.id, "expense", None)

    assert transaction_service.list_for_user(USER) == []
    assert transaction_service.list_for_user(PARTNER) == []
