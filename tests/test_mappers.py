"""Tests for database mappers."""

from datetime import date, datetime, UTC
from decimal import Decimal

from bubu.database.models import (
    Category as ORMCategory,
    Relationship as ORMRelationship,
    SharedTransaction as ORMSharedTransaction,
    Transaction as ORMTransaction,
)
from bubu.database.mappers import (
    category_to_domain,
    relationship_to_domain,
    shared_transaction_to_domain,
    transaction_to_domain,
)
from bubu.domain.entities import Category, Relationship, SharedTransaction, Transaction


class TestTransactionMapper:
    """Tests for Transaction mapper."""

    def test_transaction_to_domain(self):
        """Test converting ORM Transaction to domain Transaction."""
        now = datetime.now(UTC)
        orm_category = ORMCategory(id=3, name="Comida", category_type="expense", color="#F59E0B", created_at=now)
        orm_txn = ORMTransaction(
            id=7,
            user_phone="5551234567",
            category_id=3,
            category=orm_category,
            transaction_type="expense",
            amount=Decimal("350.00"),
            description="tacos",
            transaction_date=date(2024, 3, 1),
            created_at=now,
            is_shared=False,
            shared_transaction_id=None,
        )

        txn = transaction_to_domain(orm_txn)

        assert isinstance(txn, Transaction)
        assert txn.category_name == "Comida"
        assert txn.amount == Decimal("350.00")
        assert txn.is_shared is False

    def test_category_to_domain(self):
        """Test converting ORM Category to domain Category."""
        orm_category = ORMCategory(
            id=1, name="Nómina", category_type="income", color="#22C55E", icon="💼", created_at=datetime.now(UTC)
        )

        category = category_to_domain(orm_category)

        assert isinstance(category, Category)
        assert category.category_type == "income"
        assert category.icon == "💼"


class TestRelationshipMappers:
    """Tests for relationship and shared-expense mappers."""

    def test_relationship_to_domain(self):
        """Test converting ORM Relationship to domain Relationship."""
        now = datetime.now(UTC)
        orm_rel = ORMRelationship(
            id=2,
            user_phone_1="5551234567",
            user_phone_2="5559876543",
            default_split_1=Decimal("65.00"),
            default_split_2=Decimal("35.00"),
            status="active",
            created_at=now,
            updated_at=now,
        )

        rel = relationship_to_domain(orm_rel)

        assert isinstance(rel, Relationship)
        assert rel.other_phone("5559876543") == "5551234567"
        assert rel.involves("5551234567")
        assert not rel.involves("5550001111")

    def test_shared_transaction_to_domain(self):
        """Test converting ORM SharedTransaction to domain SharedTransaction."""
        orm_shared = ORMSharedTransaction(
            id=4,
            relationship_id=2,
            payer_phone="5551234567",
            partner_phone="5559876543",
            transaction_1_id=10,
            transaction_2_id=11,
            total_amount=Decimal("200.00"),
            split_percentage_1=Decimal("65.00"),
            split_percentage_2=Decimal("35.00"),
            category_id=3,
            transaction_type="expense",
            description="súper",
            transaction_date=date(2024, 3, 1),
            created_at=datetime.now(UTC),
        )

        shared = shared_transaction_to_domain(orm_shared)

        assert isinstance(shared, SharedTransaction)
        assert shared.percentage_for("5559876543") == Decimal("35.00")
        assert shared.percentage_for("5551234567") == Decimal("65.00")
