"""Closed set of conversational intents and the classifier result."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Intent(str, Enum):
    """Every action the orchestrator knows how to handle."""

    REGISTER_TRANSACTION = "register_transaction"
    CONFIRM_TRANSACTION = "confirm_transaction"
    CANCEL_TRANSACTION = "cancel_transaction"
    CORRECT_LAST_TRANSACTION = "correct_last_transaction"
    EDIT_TRANSACTION = "edit_transaction"
    DELETE_TRANSACTION = "delete_transaction"
    LIST_TRANSACTIONS = "list_transactions"
    QUERY_SUMMARY = "query_summary"
    LIST_CATEGORIES = "list_categories"
    CREATE_CATEGORY = "create_category"
    DELETE_CATEGORY = "delete_category"
    MOVE_TRANSACTIONS = "move_transactions"
    REGISTER_PARTNER = "register_partner"
    ACCEPT_PARTNER_REQUEST = "accept_partner_request"
    REJECT_PARTNER_REQUEST = "reject_partner_request"
    REMOVE_PARTNER = "remove_partner"
    QUERY_BALANCE = "query_balance"
    LIST_SHARED_EXPENSES = "list_shared_expenses"
    UPDATE_DEFAULT_SPLIT = "update_default_split"
    CONFIRM_RECEIPT = "confirm_receipt"
    CORRECT_RECEIPT = "correct_receipt"
    PROVIDE_AMOUNT = "provide_amount"
    GENERAL_CONVERSATION = "general_conversation"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, action: Optional[str]) -> "Intent":
        """Map a classifier action name to an intent, defaulting to UNKNOWN."""
        if not action:
            return cls.UNKNOWN
        try:
            return cls(action.strip().lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class IntentResult:
    """Classified intent plus its parameter bag."""

    intent: Intent
    parameters: dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        value = self.parameters.get(name)
        return default if value is None or value == "" else value
