"""Shared-expense domain service."""

from datetime import date
from decimal import Decimal
from typing import Optional

from loguru import logger

from bubu.database.base import Database
from bubu.domain.category import validate_type
from bubu.domain.collaborators import NotificationEvent, Notifier, send_notification
from bubu.domain.entities import RelationshipStatus, SharedTransaction
from bubu.domain.errors import (
    NoRelationshipError,
    NotFoundError,
    ValidationError,
    category_not_found,
    no_active_relationship,
)
from bubu.domain.relationship import HUNDRED, RelationshipService, validate_split
from bubu.domain.transaction import validate_amount
from bubu.utils.amount_parser import to_money
from bubu.utils.date_parser import DEFAULT_TIMEZONE, get_date_range, today_in


def split_total(total: Decimal, payer_split: Decimal, partner_split: Decimal) -> tuple[Decimal, Decimal]:
    """Split a total into two legs rounded half-up to cents.

    Any rounding remainder is added to the smaller leg (the partner leg on a
    tie) so that the legs always add up to the total exactly.

    Returns:
        Tuple of (payer_amount, partner_amount)
    """
    payer_amount = to_money(total * payer_split / HUNDRED)
    partner_amount = to_money(total * partner_split / HUNDRED)
    remainder = total - payer_amount - partner_amount
    if remainder:
        if payer_amount < partner_amount:
            payer_amount += remainder
        else:
            partner_amount += remainder
    return payer_amount, partner_amount


class SharedExpenseService:
    """Service for expenses split between the two members of a relationship."""

    def __init__(
        self,
        db: Database,
        relationships: Optional[RelationshipService] = None,
        timezone: str = DEFAULT_TIMEZONE,
        notifier: Optional[Notifier] = None,
    ):
        """Initialize shared-expense service.

        Args:
            db: Database instance
            relationships: Relationship service (created from db if omitted)
            timezone: Timezone whose calendar defines "today"
            notifier: Optional notifier told about new shared expenses
        """
        self.db = db
        self.relationships = relationships or RelationshipService(db, notifier=notifier)
        self.timezone = timezone
        self.notifier = notifier

    def resolve_split(
        self, phone: str, user_split=None, partner_split=None
    ) -> dict:
        """Work out the split to apply for an expense registered by phone.

        Explicit percentages win (a single one is completed to 100); otherwise
        the relationship's default split, oriented to the phone, is used.

        Returns:
            Dict with user_split, partner_split, partner_phone,
            relationship_id and is_custom

        Raises:
            NoRelationshipError: If the phone has no active relationship
            ValidationError: If explicit percentages don't sum to 100
        """
        default = self.relationships.get_default_split(phone)
        if user_split is None and partner_split is None:
            return {**default, "is_custom": False}

        try:
            if user_split is None:
                user_split = HUNDRED - Decimal(str(partner_split))
            elif partner_split is None:
                partner_split = HUNDRED - Decimal(str(user_split))
        except ArithmeticError as e:
            raise ValidationError(f"Invalid split percentages: {user_split}/{partner_split}") from e
        user_split, partner_split = validate_split(user_split, partner_split)
        return {
            **default,
            "user_split": user_split,
            "partner_split": partner_split,
            "is_custom": True,
        }

    def create_shared(
        self,
        payer_phone: str,
        partner_phone: str,
        total_amount: Decimal,
        category_id: int,
        transaction_type: str,
        description: Optional[str],
        payer_split,
        partner_split,
        transaction_date: Optional[date] = None,
        relationship_id: Optional[int] = None,
        registered_by: Optional[str] = None,
    ) -> SharedTransaction:
        """Create a shared expense as two ledger legs plus a link row.

        The member who did not register it is notified.

        Args:
            payer_phone: Phone that paid the whole amount
            partner_phone: The other member of the relationship
            total_amount: Total paid (> 0)
            category_id: Category for both legs
            transaction_type: "expense" or "income"
            description: Description for both legs
            payer_split: Payer's percentage
            partner_split: Partner's percentage
            transaction_date: Date for both legs (defaults to today)
            relationship_id: Relationship to attach to (defaults to the payer's active one)
            registered_by: Member registering the expense (defaults to the payer)

        Returns:
            The created shared transaction

        Raises:
            ValidationError: If amount, split, type or category is invalid
            NoRelationshipError: If the two phones are not in an active relationship
        """
        total_amount = validate_amount(total_amount)
        payer_split, partner_split = validate_split(payer_split, partner_split)
        validate_type(transaction_type)
        if self.db.get_category(category_id) is None:
            raise ValidationError(category_not_found(category_id))

        if relationship_id is not None:
            relationship = self.db.get_relationship(relationship_id)
        else:
            relationship = self.db.get_active_relationship(payer_phone)
        if (
            relationship is None
            or relationship.status != RelationshipStatus.ACTIVE.value
            or not relationship.involves(payer_phone)
            or relationship.other_phone(payer_phone) != partner_phone
        ):
            raise NoRelationshipError(no_active_relationship(payer_phone))

        if transaction_date is None:
            transaction_date = today_in(self.timezone)

        payer_amount, partner_amount = split_total(total_amount, payer_split, partner_split)
        if payer_amount <= 0 or partner_amount <= 0:
            raise ValidationError(
                f"A {payer_split.normalize():f}/{partner_split.normalize():f} split of "
                f"{total_amount} leaves one side with nothing to pay"
            )
        shared_id = self.db.create_shared_transaction(
            relationship_id=relationship.id,
            payer_phone=payer_phone,
            partner_phone=partner_phone,
            total_amount=total_amount,
            payer_split=payer_split,
            partner_split=partner_split,
            payer_amount=payer_amount,
            partner_amount=partner_amount,
            category_id=category_id,
            transaction_type=transaction_type,
            description=description,
            transaction_date=transaction_date,
        )
        logger.info(
            "Created shared expense #{}: {} paid {} split {}/{}",
            shared_id,
            payer_phone,
            total_amount,
            payer_split,
            partner_split,
        )
        shared = self.db.get_shared_transaction(shared_id)
        registered_by = registered_by or payer_phone
        send_notification(
            self.notifier,
            partner_phone if registered_by == payer_phone else payer_phone,
            NotificationEvent.SHARED_EXPENSE_CREATED,
            {
                "shared_transaction_id": shared.id,
                "registered_by": registered_by,
                "payer_phone": shared.payer_phone,
                "total_amount": shared.total_amount,
                "description": shared.description,
                "split": f"{shared.split_percentage_1}/{shared.split_percentage_2}",
            },
        )
        return shared

    def register_for(
        self,
        phone: str,
        total_amount: Decimal,
        category_id: int,
        transaction_type: str,
        description: Optional[str],
        transaction_date: Optional[date] = None,
        user_split=None,
        partner_split=None,
        paid_by_user: bool = True,
    ) -> SharedTransaction:
        """Create a shared expense from one member's point of view.

        Percentages are given from the phone's perspective and reoriented
        when the partner is the payer.

        Raises:
            NoRelationshipError: If the phone has no active relationship
        """
        split = self.resolve_split(phone, user_split, partner_split)
        partner = split["partner_phone"]
        if paid_by_user:
            payer, other = phone, partner
            payer_split, other_split = split["user_split"], split["partner_split"]
        else:
            payer, other = partner, phone
            payer_split, other_split = split["partner_split"], split["user_split"]
        return self.create_shared(
            payer_phone=payer,
            partner_phone=other,
            total_amount=total_amount,
            category_id=category_id,
            transaction_type=transaction_type,
            description=description,
            payer_split=payer_split,
            partner_split=other_split,
            transaction_date=transaction_date,
            relationship_id=split["relationship_id"],
            registered_by=phone,
        )

    def get_shared(self, shared_id: int) -> Optional[SharedTransaction]:
        """Get a shared transaction by ID."""
        return self.db.get_shared_transaction(shared_id)

    def _require(self, shared_id: int, phone: Optional[str]) -> SharedTransaction:
        shared = self.db.get_shared_transaction(shared_id)
        if shared is None or (phone is not None and phone not in (shared.payer_phone, shared.partner_phone)):
            raise NotFoundError(f"Shared transaction {shared_id} not found")
        return shared

    def get_details(self, shared_id: int, phone: Optional[str] = None) -> dict:
        """Describe a shared expense with both legs.

        Raises:
            NotFoundError: If it doesn't exist (or doesn't involve phone)
        """
        shared = self._require(shared_id, phone)
        category = self.db.get_category(shared.category_id)
        legs = []
        for leg_phone, transaction_id, percentage in (
            (shared.payer_phone, shared.transaction_1_id, shared.split_percentage_1),
            (shared.partner_phone, shared.transaction_2_id, shared.split_percentage_2),
        ):
            leg = self.db.get_transaction(transaction_id)
            legs.append(
                {
                    "phone": leg_phone,
                    "transaction_id": transaction_id,
                    "amount": leg.amount if leg is not None else None,
                    "percentage": percentage,
                }
            )
        return {
            "shared_transaction_id": shared.id,
            "total_amount": shared.total_amount,
            "split": f"{shared.split_percentage_1.normalize():f}/{shared.split_percentage_2.normalize():f}",
            "payer_phone": shared.payer_phone,
            "partner_phone": shared.partner_phone,
            "user1": legs[0],
            "user2": legs[1],
            "category_id": shared.category_id,
            "category_name": category.name if category is not None else None,
            "type": shared.transaction_type,
            "description": shared.description,
            "transaction_date": shared.transaction_date,
        }

    def list_shared(
        self, phone: str, period: Optional[str] = "current_month", today: Optional[date] = None
    ) -> list[SharedTransaction]:
        """List shared expenses involving the phone for a period, newest first."""
        try:
            start_date, end_date = get_date_range(period, today or today_in(self.timezone))
        except ValueError as e:
            raise ValidationError(str(e)) from e
        return self.db.list_shared_transactions(phone, start_date=start_date, end_date=end_date)

    def delete_shared(self, shared_id: int, phone: Optional[str] = None) -> SharedTransaction:
        """Delete a shared expense together with both legs.

        Raises:
            NotFoundError: If it doesn't exist (or doesn't involve phone)
        """
        shared = self._require(shared_id, phone)
        self.db.delete_shared_transaction(shared_id)
        logger.info("Deleted shared expense #{}", shared_id)
        return shared
