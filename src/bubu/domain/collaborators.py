"""Interfaces of the external collaborators the orchestrator depends on."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from loguru import logger

from bubu.domain.intents import IntentResult


class NotificationEvent(str, Enum):
    """Events pushed to the other member of a relationship."""

    RELATIONSHIP_REQUEST_RECEIVED = "relationship_request_received"
    RELATIONSHIP_ACCEPTED = "relationship_accepted"
    RELATIONSHIP_REJECTED = "relationship_rejected"
    SHARED_EXPENSE_CREATED = "shared_expense_created"
    DEFAULT_SPLIT_UPDATED = "default_split_updated"


@dataclass(frozen=True)
class ReceiptData:
    """Fields read from a receipt image."""

    amount: Optional[Decimal] = None
    merchant: Optional[str] = None
    category: Optional[str] = None
    date: Optional[date] = None
    description: Optional[str] = None
    confidence_score: int = 0


class IntentClassifier(ABC):
    """Turns free text into an intent and parameters."""

    @abstractmethod
    def classify(self, text: str, phone: str) -> IntentResult:
        """Classify a user message."""
        pass


class ReceiptExtractor(ABC):
    """Reads amount, merchant and category from a receipt image."""

    @abstractmethod
    def extract(self, image: bytes, mime_type: str) -> ReceiptData:
        """Extract receipt data. May raise on failure."""
        pass


class Notifier(ABC):
    """Delivers best-effort notifications to a phone."""

    @abstractmethod
    def notify(self, phone: str, event: NotificationEvent, payload: dict[str, Any]) -> None:
        """Send a notification. May raise on delivery failure."""
        pass


def send_notification(
    notifier: Optional[Notifier], phone: str, event: NotificationEvent, payload: dict[str, Any]
) -> None:
    """Deliver one notification, logging a failed delivery instead of raising."""
    if notifier is None:
        return
    try:
        notifier.notify(phone, event, payload)
    except Exception as e:
        logger.warning("Notification {} to {} failed: {}", event.value, phone, e)
