"""Tests for the transaction ledger."""

import pytest
from datetime import date
from decimal import Decimal
from bubu.domain.errors import ConflictError, NotFoundError, ValidationError

PHONE = "5551234567"
OTHER = "5550001111"


@pytest.fixture
def comida(seeded_categories):
    return seeded_categories["Comida"]


def test_create_transaction(transaction_service, comida):
    """Test creating an expense with two-decimal money."""
    txn = transaction_service.create_transaction(
        PHONE, comida.id, "expense", Decimal("350"), "tacos", date(2024, 3, 1)
    )
    assert txn.id is not None
    assert txn.amount == Decimal("350.00")
    assert txn.category_name == "Comida"
    assert txn.transaction_type == "expense"
    assert txn.transaction_date == date(2024, 3, 1)
    assert txn.is_shared is False


def test_create_transaction_defaults_to_today(transaction_service, comida):
    """Test a missing date means today."""
    txn = transaction_service.create_transaction(PHONE, comida.id, "expense", Decimal("1"))
    assert txn.transaction_date == transaction_service.today()


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), Decimal("0.001")])
def test_create_transaction_rejects_non_positive(transaction_service, comida, amount):
    """Test amounts must round to more than zero."""
    with pytest.raises(ValidationError):
        transaction_service.create_transaction(PHONE, comida.id, "expense", amount)


def test_create_transaction_invalid_type_or_category(transaction_service, comida):
    """Test unknown types and categories are rejected."""
    with pytest.raises(ValidationError):
        transaction_service.create_transaction(PHONE, comida.id, "transfer", Decimal("10"))
    with pytest.raises(ValidationError):
        transaction_service.create_transaction(PHONE, 9999, "expense", Decimal("10"))


def test_list_for_user_filters_and_orders(transaction_service, seeded_categories):
    """Test listing by owner, type, category and date range, newest first."""
    comida = seeded_categories["Comida"]
    nomina = seeded_categories["Nómina"]
    older = transaction_service.create_transaction(PHONE, comida.id, "expense", Decimal("100"), None, date(2024, 2, 28))
    newer = transaction_service.create_transaction(PHONE, comida.id, "expense", Decimal("200"), None, date(2024, 3, 5))
    income = transaction_service.create_transaction(PHONE, nomina.id, "income", Decimal("15000"), None, date(2024, 3, 1))
    transaction_service.create_transaction(OTHER, comida.id, "expense", Decimal("999"), None, date(2024, 3, 2))

    all_rows = transaction_service.list_for_user(PHONE)
    assert [t.id for t in all_rows] == [newer.id, income.id, older.id]

    expenses = transaction_service.list_for_user(PHONE, transaction_type="expense")
    assert {t.id for t in expenses} == {older.id, newer.id}

    march = transaction_service.list_for_user(PHONE, start_date=date(2024, 3, 1), end_date=date(2024, 3, 31))
    assert {t.id for t in march} == {newer.id, income.id}

    assert len(transaction_service.list_for_user(PHONE, limit=1)) == 1


def test_summarize(transaction_service, seeded_categories):
    """Test totals and per-category breakdown."""
    comida = seeded_categories["Comida"]
    transporte = seeded_categories["Transporte"]
    nomina = seeded_categories["Nómina"]
    transaction_service.create_transaction(PHONE, comida.id, "expense", Decimal("350"), None, date(2024, 3, 1))
    transaction_service.create_transaction(PHONE, comida.id, "expense", Decimal("150"), None, date(2024, 3, 2))
    transaction_service.create_transaction(PHONE, transporte.id, "expense", Decimal("200"), None, date(2024, 3, 3))
    transaction_service.create_transaction(PHONE, nomina.id, "income", Decimal("15000"), None, date(2024, 3, 4))
    transaction_service.create_transaction(PHONE, comida.id, "expense", Decimal("999"), None, date(2024, 2, 1))

    summary = transaction_service.summarize(PHONE, date(2024, 3, 1), date(2024, 3, 31))

    assert summary.income_total == Decimal("15000.00")
    assert summary.expense_total == Decimal("700.00")
    assert summary.balance == Decimal("14300.00")
    assert summary.expense_count == 3
    assert summary.income_count == 1
    by_name = {row.category_name: row for row in summary.by_category}
    assert by_name["Comida"].total == Decimal("500.00")
    assert by_name["Comida"].count == 2


def test_update_transaction(transaction_service, seeded_categories):
    """Test updating fields of an owned transaction."""
    txn = transaction_service.create_transaction(PHONE, seeded_categories["Comida"].id, "expense", Decimal("350"))
    updated = transaction_service.update_transaction(
        txn.id, PHONE, amount=Decimal("400"), category_id=seeded_categories["Transporte"].id, description="uber"
    )
    assert updated.amount == Decimal("400.00")
    assert updated.category_name == "Transporte"
    assert updated.description == "uber"


def test_update_transaction_errors(transaction_service, comida):
    """Test ownership, empty updates and invalid amounts."""
    txn = transaction_service.create_transaction(PHONE, comida.id, "expense", Decimal("350"))
    with pytest.raises(NotFoundError):
        transaction_service.update_transaction(txn.id, OTHER, amount=Decimal("1"))
    with pytest.raises(ValidationError, match="No data to update"):
        transaction_service.update_transaction(txn.id, PHONE)
    with pytest.raises(ValidationError):
        transaction_service.update_transaction(txn.id, PHONE, amount=Decimal("-1"))


def test_delete_transaction(transaction_service, comida):
    """Test deleting an owned transaction."""
    txn = transaction_service.create_transaction(PHONE, comida.id, "expense", Decimal("350"))
    with pytest.raises(NotFoundError):
        transaction_service.delete_transaction(txn.id, OTHER)

    deleted = transaction_service.delete_transaction(txn.id, PHONE)

    assert deleted.id == txn.id
    assert transaction_service.get_transaction(txn.id) is None


def test_shared_legs_are_locked(transaction_service, shared_service, partners, comida):
    """Test legs of a shared expense cannot be edited or deleted directly."""
    shared = shared_service.register_for(PHONE, Decimal("200"), comida.id, "expense", "súper")
    with pytest.raises(ConflictError):
        transaction_service.update_transaction(shared.transaction_1_id, PHONE, amount=Decimal("1"))
    with pytest.raises(ConflictError):
        transaction_service.delete_transaction(shared.transaction_1_id, PHONE)
