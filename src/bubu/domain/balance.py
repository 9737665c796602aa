"""Balance calculation for shared expenses."""

from datetime import date
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from bubu.database.base import Database
from bubu.domain.entities import BalanceReport, PartyBalance
from bubu.domain.errors import NoRelationshipError, ValidationError, no_active_relationship
from bubu.domain.relationship import RelationshipService
from bubu.domain.shared import split_total
from bubu.utils.amount_parser import to_money
from bubu.utils.date_parser import (
    DEFAULT_TIMEZONE,
    get_date_range,
    month_range,
    normalize_period,
    today_in,
)

PARTNER_OWES_USER = "partner_owes_user"
USER_OWES_PARTNER = "user_owes_partner"
BALANCED = "balanced"


class BalanceService:
    """Service that turns shared expenses into a who-owes-whom report."""

    def __init__(
        self,
        db: Database,
        relationships: Optional[RelationshipService] = None,
        timezone: str = DEFAULT_TIMEZONE,
    ):
        """Initialize balance service.

        Args:
            db: Database instance
            relationships: Relationship service (created from db if omitted)
            timezone: Timezone whose calendar defines the current month
        """
        self.db = db
        self.relationships = relationships or RelationshipService(db)
        self.timezone = timezone

    def _resolve_partner(self, phone: str, partner_phone: Optional[str]) -> str:
        relationship = self.relationships.require_active(phone)
        partner = relationship.other_phone(phone)
        if partner_phone is not None and partner_phone != partner:
            raise NoRelationshipError(no_active_relationship(phone))
        return partner

    def calculate_balance(
        self,
        phone: str,
        partner_phone: Optional[str] = None,
        period: Optional[str] = "current_month",
        today: Optional[date] = None,
    ) -> BalanceReport:
        """Calculate who owes whom for a period.

        Args:
            phone: Phone asking for the balance
            partner_phone: Expected partner (defaults to the active partner)
            period: current_month, previous_month or all (aliases accepted)
            today: Reference date (defaults to today in the configured timezone)

        Returns:
            BalanceReport oriented to phone

        Raises:
            NoRelationshipError: If the phone has no active relationship with the partner
            ValidationError: If the period is not recognized
        """
        partner = self._resolve_partner(phone, partner_phone)
        try:
            period = normalize_period(period)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        start_date, end_date = get_date_range(period, today or today_in(self.timezone))
        return self._calculate(phone, partner, period, start_date, end_date)

    def _calculate(
        self,
        phone: str,
        partner: str,
        period: str,
        start_date: Optional[date],
        end_date: Optional[date],
    ) -> BalanceReport:
        rows = self.db.list_shared_transactions(
            phone, partner_phone=partner, start_date=start_date, end_date=end_date
        )
        # One entry per shared expense even if a backend returns one row per leg
        expenses = {row.id: row for row in rows}

        paid = {phone: Decimal("0"), partner: Decimal("0")}
        paid_count = {phone: 0, partner: 0}
        owes = {phone: Decimal("0"), partner: Decimal("0")}
        for expense in expenses.values():
            paid[expense.payer_phone] += expense.total_amount
            paid_count[expense.payer_phone] += 1
            # Same rounding as the ledger legs, so both sides always net to zero
            payer_share, partner_share = split_total(
                expense.total_amount, expense.split_percentage_1, expense.split_percentage_2
            )
            owes[expense.payer_phone] += payer_share
            owes[expense.partner_phone] += partner_share

        parties = {
            member: PartyBalance(
                phone=member,
                paid_total=to_money(paid[member]),
                paid_count=paid_count[member],
                owes_total=to_money(owes[member]),
                balance=to_money(paid[member] - owes[member]),
            )
            for member in (phone, partner)
        }
        net = parties[phone].balance
        if net > 0:
            verdict = PARTNER_OWES_USER
        elif net < 0:
            verdict = USER_OWES_PARTNER
        else:
            verdict = BALANCED

        return BalanceReport(
            user_phone=phone,
            partner_phone=partner,
            period=period,
            total_shared_expenses=to_money(sum((e.total_amount for e in expenses.values()), Decimal("0"))),
            expense_count=len(expenses),
            user=parties[phone],
            partner=parties[partner],
            who_owes_whom=verdict,
            amount_owed=abs(net),
        )

    def balance_history(
        self, phone: str, months: int = 6, today: Optional[date] = None
    ) -> list[dict]:
        """Month-by-month balances, most recent month first.

        Args:
            phone: Phone asking for the history
            months: Number of calendar months including the current one
            today: Reference date

        Returns:
            List of dicts with month ("YYYY-MM"), total_shared_expenses,
            expense_count, user_balance, partner_balance and who_owes_whom

        Raises:
            NoRelationshipError: If the phone has no active relationship
        """
        partner = self._resolve_partner(phone, None)
        today = today or today_in(self.timezone)
        history = []
        for offset in range(max(months, 1)):
            month_start = today.replace(day=1) - relativedelta(months=offset)
            start_date, end_date = month_range(month_start.year, month_start.month)
            label = month_start.strftime("%Y-%m")
            report = self._calculate(phone, partner, label, start_date, end_date)
            history.append(
                {
                    "month": label,
                    "total_shared_expenses": report.total_shared_expenses,
                    "expense_count": report.expense_count,
                    "user_balance": report.user.balance,
                    "partner_balance": report.partner.balance,
                    "who_owes_whom": report.who_owes_whom,
                }
            )
        return history
