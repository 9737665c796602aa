"""Domain model entities for bubu.

These are pure data classes representing business concepts, independent of
database schema. Reports produced by the services are entities as well so
they can be serialized the same way by the API and the CLI.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class TransactionType(str, Enum):
    """Direction of money for a transaction or category."""

    EXPENSE = "expense"
    INCOME = "income"


class RelationshipStatus(str, Enum):
    """Lifecycle states of a relationship between two phones."""

    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class User:
    """User domain entity, keyed by normalized phone number."""

    phone: str
    name: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class Category:
    """Category domain entity."""

    id: int
    name: str
    category_type: str
    color: str
    icon: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity."""

    id: int
    user_phone: str
    category_id: int
    transaction_type: str
    amount: Decimal
    description: Optional[str]
    transaction_date: date
    created_at: datetime
    is_shared: bool = False
    shared_transaction_id: Optional[int] = None
    category_name: Optional[str] = None


@dataclass(frozen=True)
class Relationship:
    """Relationship between a requester (slot 1) and a recipient (slot 2)."""

    id: int
    user_phone_1: str
    user_phone_2: str
    default_split_1: Decimal
    default_split_2: Decimal
    status: str
    created_at: datetime
    updated_at: datetime

    def involves(self, phone: str) -> bool:
        return phone in (self.user_phone_1, self.user_phone_2)

    def other_phone(self, phone: str) -> str:
        return self.user_phone_2 if phone == self.user_phone_1 else self.user_phone_1


@dataclass(frozen=True)
class SharedTransaction:
    """Link record for a shared expense.

    Slot 1 is always the payer and slot 2 the partner, so each split
    percentage belongs to the phone stored in the same slot.
    """

    id: int
    relationship_id: int
    payer_phone: str
    partner_phone: str
    transaction_1_id: int
    transaction_2_id: int
    total_amount: Decimal
    split_percentage_1: Decimal
    split_percentage_2: Decimal
    category_id: int
    transaction_type: str
    description: Optional[str]
    transaction_date: date
    created_at: datetime

    def percentage_for(self, phone: str) -> Decimal:
        if phone == self.payer_phone:
            return self.split_percentage_1
        return self.split_percentage_2


@dataclass(frozen=True)
class ChatMessage:
    """A logged inbound or outbound chat message."""

    id: int
    user_phone: str
    role: str
    content: str
    intent: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class CategoryTotal:
    """Aggregated amount for one (category, type) pair."""

    category_id: int
    category_name: str
    transaction_type: str
    total: Decimal
    count: int


@dataclass(frozen=True)
class LedgerSummary:
    """Income/expense summary for a phone over a date range."""

    user_phone: str
    start_date: Optional[date]
    end_date: Optional[date]
    income_total: Decimal
    expense_total: Decimal
    balance: Decimal
    income_count: int
    expense_count: int
    by_category: list[CategoryTotal] = field(default_factory=list)


@dataclass(frozen=True)
class PartyBalance:
    """One side of a balance report."""

    phone: str
    paid_total: Decimal
    paid_count: int
    owes_total: Decimal
    balance: Decimal


@dataclass(frozen=True)
class BalanceReport:
    """Who owes whom for the shared expenses of a period."""

    user_phone: str
    partner_phone: str
    period: str
    total_shared_expenses: Decimal
    expense_count: int
    user: PartyBalance
    partner: PartyBalance
    who_owes_whom: str
    amount_owed: Decimal
