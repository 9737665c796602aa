"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from bubu.domain.entities import (
    User,
    Category,
    Transaction,
    Relationship,
    SharedTransaction,
    ChatMessage,
    CategoryTotal,
)


class Database(ABC):
    """Abstract database interface for bubu."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # User operations
    @abstractmethod
    def get_or_create_user(self, phone: str, name: Optional[str] = None) -> User:
        """Return the user for a phone, creating it on first contact."""
        pass

    @abstractmethod
    def get_user(self, phone: str) -> Optional[User]:
        """Get user by phone."""
        pass

    @abstractmethod
    def update_user_name(self, phone: str, name: str) -> None:
        """Update the display name of a user."""
        pass

    @abstractmethod
    def list_users(self) -> list[User]:
        """List all users."""
        pass

    # Category operations
    @abstractmethod
    def create_category(
        self, name: str, category_type: str, color: str, icon: Optional[str] = None
    ) -> int:
        """Create a new category. Returns category ID."""
        pass

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def get_category_by_name(self, name: str) -> Optional[Category]:
        """Get category by name, ignoring case."""
        pass

    @abstractmethod
    def list_categories(self, category_type: Optional[str] = None) -> list[Category]:
        """List categories, optionally filtered by type."""
        pass

    @abstractmethod
    def update_category(
        self,
        category_id: int,
        name: Optional[str] = None,
        color: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> None:
        """Update category fields that are not None."""
        pass

    @abstractmethod
    def delete_category(self, category_id: int, fallback_category_id: int) -> int:
        """Reassign the category's transactions to the fallback and delete it.

        Both steps run in one unit. Returns the number of moved transactions.
        """
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        user_phone: str,
        category_id: int,
        transaction_type: str,
        amount: Decimal,
        description: Optional[str],
        transaction_date: date,
    ) -> int:
        """Create a new transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        user_phone: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        transaction_type: Optional[str] = None,
        category_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[Transaction]:
        """List a user's transactions, newest date first."""
        pass

    @abstractmethod
    def update_transaction(
        self,
        transaction_id: int,
        amount: Optional[Decimal] = None,
        category_id: Optional[int] = None,
        description: Optional[str] = None,
        transaction_date: Optional[date] = None,
    ) -> None:
        """Update transaction fields that are not None."""
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction."""
        pass

    @abstractmethod
    def reassign_category(
        self, from_category_id: int, to_category_id: int, user_phone: Optional[str] = None
    ) -> int:
        """Move transactions between categories. Returns moved count."""
        pass

    @abstractmethod
    def count_category_transactions(self, category_id: int) -> int:
        """Count transactions referencing a category."""
        pass

    @abstractmethod
    def get_category_totals(
        self,
        user_phone: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        transaction_type: Optional[str] = None,
        category_id: Optional[int] = None,
    ) -> list[CategoryTotal]:
        """Aggregate amounts per (category, type), largest total first."""
        pass

    # Relationship operations
    @abstractmethod
    def create_relationship(
        self, user_phone_1: str, user_phone_2: str, split_1: Decimal, split_2: Decimal
    ) -> int:
        """Create a pending relationship. Returns relationship ID."""
        pass

    @abstractmethod
    def get_relationship(self, relationship_id: int) -> Optional[Relationship]:
        """Get relationship by ID."""
        pass

    @abstractmethod
    def find_relationship_between(self, phone_a: str, phone_b: str) -> Optional[Relationship]:
        """Get the relationship row for an unordered phone pair."""
        pass

    @abstractmethod
    def get_active_relationship(self, phone: str) -> Optional[Relationship]:
        """Get the active relationship where the phone is in either slot."""
        pass

    @abstractmethod
    def update_relationship(
        self,
        relationship_id: int,
        status: Optional[str] = None,
        user_phone_1: Optional[str] = None,
        user_phone_2: Optional[str] = None,
        split_1: Optional[Decimal] = None,
        split_2: Optional[Decimal] = None,
    ) -> None:
        """Update relationship fields that are not None."""
        pass

    @abstractmethod
    def list_pending_relationships(self, recipient_phone: str) -> list[Relationship]:
        """List pending relationships addressed to a phone, newest first."""
        pass

    # Shared transaction operations
    @abstractmethod
    def create_shared_transaction(
        self,
        relationship_id: int,
        payer_phone: str,
        partner_phone: str,
        total_amount: Decimal,
        payer_split: Decimal,
        partner_split: Decimal,
        payer_amount: Decimal,
        partner_amount: Decimal,
        category_id: int,
        transaction_type: str,
        description: Optional[str],
        transaction_date: date,
    ) -> int:
        """Create both legs and the link row as one unit. Returns shared ID."""
        pass

    @abstractmethod
    def get_shared_transaction(self, shared_id: int) -> Optional[SharedTransaction]:
        """Get shared transaction by ID."""
        pass

    @abstractmethod
    def list_shared_transactions(
        self,
        phone: str,
        partner_phone: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[SharedTransaction]:
        """List shared transactions touching a phone (optionally only with a partner)."""
        pass

    @abstractmethod
    def delete_shared_transaction(self, shared_id: int) -> None:
        """Delete the link row and both legs as one unit."""
        pass

    # Chat log operations
    @abstractmethod
    def add_chat_message(
        self, user_phone: str, role: str, content: str, intent: Optional[str] = None
    ) -> int:
        """Append a chat message. Returns message ID."""
        pass

    @abstractmethod
    def list_chat_messages(self, user_phone: str, limit: int = 50) -> list[ChatMessage]:
        """List the latest chat messages, oldest first."""
        pass
