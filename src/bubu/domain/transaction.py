"""Transaction ledger domain service."""

from typing import Optional
from datetime import date
from decimal import Decimal

from loguru import logger

from bubu.database.base import Database
from bubu.domain.category import validate_type
from bubu.domain.entities import LedgerSummary, Transaction, TransactionType
from bubu.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    category_not_found,
    shared_leg_locked,
    transaction_not_found,
)
from bubu.utils.amount_parser import to_money
from bubu.utils.date_parser import DEFAULT_TIMEZONE, today_in

DEFAULT_LIST_LIMIT = 100


def validate_amount(amount) -> Decimal:
    """Return the amount as money, raising ValidationError unless it is > 0."""
    try:
        amount = to_money(amount)
    except (ArithmeticError, ValueError) as e:
        raise ValidationError(f"Invalid amount '{amount}'") from e
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero")
    return amount


class TransactionService:
    """Service for managing ledger transactions owned by a phone."""

    def __init__(self, db: Database, timezone: str = DEFAULT_TIMEZONE):
        """Initialize transaction service.

        Args:
            db: Database instance
            timezone: Timezone whose calendar defines "today"
        """
        self.db = db
        self.timezone = timezone

    def today(self) -> date:
        """Current date in the configured timezone."""
        return today_in(self.timezone)

    def create_transaction(
        self,
        phone: str,
        category_id: int,
        transaction_type: str,
        amount: Decimal,
        description: Optional[str] = None,
        transaction_date: Optional[date] = None,
    ) -> Transaction:
        """Create a transaction.

        Args:
            phone: Owning phone number (normalized)
            category_id: Category ID
            transaction_type: "expense" or "income"
            amount: Positive amount
            description: Optional description
            transaction_date: Date of the movement (defaults to today)

        Returns:
            Created transaction

        Raises:
            ValidationError: If amount, type or category is invalid
        """
        amount = validate_amount(amount)
        validate_type(transaction_type)
        if self.db.get_category(category_id) is None:
            raise ValidationError(category_not_found(category_id))

        if transaction_date is None:
            transaction_date = self.today()

        transaction_id = self.db.create_transaction(
            user_phone=phone,
            category_id=category_id,
            transaction_type=transaction_type,
            amount=amount,
            description=description,
            transaction_date=transaction_date,
        )
        logger.info("Created {} {} for {} (#{})", transaction_type, amount, phone, transaction_id)
        return self.db.get_transaction(transaction_id)

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

    def get_owned_transaction(self, transaction_id: int, phone: str) -> Transaction:
        """Get a transaction, requiring that it belongs to the phone.

        Raises:
            NotFoundError: If it doesn't exist or belongs to someone else
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None or txn.user_phone != phone:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def list_for_user(
        self,
        phone: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        transaction_type: Optional[str] = None,
        category_id: Optional[int] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[Transaction]:
        """List a user's transactions, newest date first.

        Args:
            phone: Owning phone number
            start_date: Optional inclusive start date
            end_date: Optional inclusive end date
            transaction_type: Optional "expense" or "income"
            category_id: Optional category filter
            limit: Maximum number of rows (default 100)

        Returns:
            List of transactions
        """
        if transaction_type is not None:
            validate_type(transaction_type)
        if limit is None or limit < 1:
            limit = DEFAULT_LIST_LIMIT
        return self.db.list_transactions(
            user_phone=phone,
            start_date=start_date,
            end_date=end_date,
            transaction_type=transaction_type,
            category_id=category_id,
            limit=limit,
        )

    def summarize(
        self,
        phone: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        transaction_type: Optional[str] = None,
        category_id: Optional[int] = None,
    ) -> LedgerSummary:
        """Summarize income and expenses for a date range.

        Args:
            phone: Owning phone number
            start_date: Optional inclusive start date
            end_date: Optional inclusive end date
            transaction_type: Optional type filter
            category_id: Optional category filter

        Returns:
            LedgerSummary with totals and a per-category breakdown ordered by
            total, largest first
        """
        rows = self.db.get_category_totals(
            user_phone=phone,
            start_date=start_date,
            end_date=end_date,
            transaction_type=transaction_type,
            category_id=category_id,
        )
        income = [row for row in rows if row.transaction_type == TransactionType.INCOME.value]
        expense = [row for row in rows if row.transaction_type == TransactionType.EXPENSE.value]
        income_total = to_money(sum((row.total for row in income), Decimal("0")))
        expense_total = to_money(sum((row.total for row in expense), Decimal("0")))

        return LedgerSummary(
            user_phone=phone,
            start_date=start_date,
            end_date=end_date,
            income_total=income_total,
            expense_total=expense_total,
            balance=income_total - expense_total,
            income_count=sum(row.count for row in income),
            expense_count=sum(row.count for row in expense),
            by_category=rows,
        )

    def update_transaction(
        self,
        transaction_id: int,
        phone: str,
        amount: Optional[Decimal] = None,
        category_id: Optional[int] = None,
        description: Optional[str] = None,
        transaction_date: Optional[date] = None,
    ) -> Transaction:
        """Update fields of a transaction owned by the phone.

        Raises:
            NotFoundError: If the transaction doesn't belong to the phone
            ConflictError: If the transaction is a leg of a shared expense
            ValidationError: If nothing would change or a value is invalid
        """
        txn = self.get_owned_transaction(transaction_id, phone)
        if txn.is_shared:
            raise ConflictError(shared_leg_locked(transaction_id))
        if amount is None and category_id is None and description is None and transaction_date is None:
            raise ValidationError("No data to update")

        if amount is not None:
            amount = validate_amount(amount)
        if category_id is not None and self.db.get_category(category_id) is None:
            raise ValidationError(category_not_found(category_id))

        self.db.update_transaction(
            transaction_id,
            amount=amount,
            category_id=category_id,
            description=description,
            transaction_date=transaction_date,
        )
        logger.info("Updated transaction #{} for {}", transaction_id, phone)
        return self.db.get_transaction(transaction_id)

    def delete_transaction(self, transaction_id: int, phone: str) -> Transaction:
        """Delete a transaction owned by the phone.

        Returns:
            The deleted transaction

        Raises:
            NotFoundError: If the transaction doesn't belong to the phone
            ConflictError: If the transaction is a leg of a shared expense
        """
        txn = self.get_owned_transaction(transaction_id, phone)
        if txn.is_shared:
            raise ConflictError(shared_leg_locked(transaction_id))
        self.db.delete_transaction(transaction_id)
        logger.info("Deleted transaction #{} for {}", transaction_id, phone)
        return txn

    def reassign_category(
        self, from_category_id: int, to_category_id: int, phone: Optional[str] = None
    ) -> int:
        """Move every matching transaction to another category.

        Args:
            from_category_id: Source category ID
            to_category_id: Target category ID
            phone: Optional phone to restrict the move

        Returns:
            Number of moved transactions

        Raises:
            NotFoundError: If either category doesn't exist
        """
        for category_id in (from_category_id, to_category_id):
            if self.db.get_category(category_id) is None:
                raise NotFoundError(category_not_found(category_id))
        return self.db.reassign_category(from_category_id, to_category_id, user_phone=phone)
