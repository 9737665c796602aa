"""Relationship registry domain service.

A relationship pairs two phones for shared expenses. The requester is stored
in slot 1 and the recipient in slot 2; each slot carries its default split
percentage. Lifecycle::

    (none) -> pending -> active -> inactive
    pending -> rejected -> pending (resubmitted)

A deactivated pair can be resubmitted the same way as a rejected one, so a
pair never has more than one row.
"""

from decimal import Decimal
from typing import Optional

from loguru import logger

from bubu.database.base import Database
from bubu.domain.collaborators import NotificationEvent, Notifier, send_notification
from bubu.domain.entities import Relationship, RelationshipStatus
from bubu.domain.errors import (
    ConflictError,
    NoRelationshipError,
    NotFoundError,
    ValidationError,
    invalid_split,
    no_active_relationship,
)
from bubu.utils.amount_parser import to_percentage

SPLIT_TOLERANCE = Decimal("0.01")
HUNDRED = Decimal("100")


def validate_split(first, second) -> tuple[Decimal, Decimal]:
    """Validate that two percentages are within [0, 100] and sum to 100.

    Returns:
        Both percentages as two-decimal Decimals

    Raises:
        ValidationError: If a value is not a number or the sum is off by more than 0.01
    """
    try:
        first, second = to_percentage(first), to_percentage(second)
    except (ArithmeticError, ValueError) as e:
        raise ValidationError(invalid_split(first, second)) from e
    if first < 0 or second < 0 or abs(first + second - HUNDRED) > SPLIT_TOLERANCE:
        raise ValidationError(invalid_split(first, second))
    return first, second


class RelationshipService:
    """Service for the relationship lifecycle between two phones."""

    def __init__(self, db: Database, notifier: Optional[Notifier] = None):
        """Initialize relationship service.

        Args:
            db: Database instance
            notifier: Optional notifier told about requests, answers and split changes
        """
        self.db = db
        self.notifier = notifier

    def create_relationship(
        self, phone: str, partner_phone: str, user_split=50, partner_split=50
    ) -> Relationship:
        """Send a relationship request from phone to partner_phone.

        Args:
            phone: Requester phone
            partner_phone: Recipient phone
            user_split: Requester's default percentage
            partner_split: Recipient's default percentage

        Returns:
            The pending relationship

        Raises:
            ValidationError: If the split doesn't sum to 100
            ConflictError: If the phones are equal, a request is already
                pending, or either phone already has an active relationship
        """
        if phone == partner_phone:
            raise ConflictError("You cannot create a relationship with yourself")
        user_split, partner_split = validate_split(user_split, partner_split)

        existing = self.db.find_relationship_between(phone, partner_phone)
        if existing is not None and existing.status == RelationshipStatus.PENDING.value:
            raise ConflictError("A relationship request is already pending for this pair")
        if existing is not None and existing.status == RelationshipStatus.ACTIVE.value:
            raise ConflictError("You already have an active relationship with this partner")

        for member in (phone, partner_phone):
            if self.db.get_active_relationship(member) is not None:
                raise ConflictError(f"{member} already has an active relationship")

        if existing is not None:
            # Rejected or inactive: reopen the same row with the new orientation
            self.db.update_relationship(
                existing.id,
                status=RelationshipStatus.PENDING.value,
                user_phone_1=phone,
                user_phone_2=partner_phone,
                split_1=user_split,
                split_2=partner_split,
            )
            relationship_id = existing.id
            logger.info("Resubmitted relationship #{} {} -> {}", relationship_id, phone, partner_phone)
        else:
            relationship_id = self.db.create_relationship(
                phone, partner_phone, user_split, partner_split
            )
            logger.info("Created relationship request #{} {} -> {}", relationship_id, phone, partner_phone)
        relationship = self.db.get_relationship(relationship_id)
        send_notification(
            self.notifier,
            partner_phone,
            NotificationEvent.RELATIONSHIP_REQUEST_RECEIVED,
            {
                "from_phone": phone,
                "relationship_id": relationship.id,
                "user_split": relationship.default_split_2,
                "partner_split": relationship.default_split_1,
            },
        )
        return relationship

    def get_active(self, phone: str) -> Optional[Relationship]:
        """Return the active relationship for a phone in either slot."""
        return self.db.get_active_relationship(phone)

    def require_active(self, phone: str) -> Relationship:
        """Return the active relationship or raise NoRelationshipError."""
        relationship = self.db.get_active_relationship(phone)
        if relationship is None:
            raise NoRelationshipError(no_active_relationship(phone))
        return relationship

    def get_partner_phone(self, phone: str) -> Optional[str]:
        """Return the partner phone of the active relationship, if any."""
        relationship = self.db.get_active_relationship(phone)
        if relationship is None:
            return None
        return relationship.other_phone(phone)

    def get_default_split(self, phone: str) -> dict:
        """Return the default split oriented to the phone.

        Returns:
            Dict with user_split, partner_split, partner_phone, relationship_id

        Raises:
            NoRelationshipError: If there is no active relationship
        """
        relationship = self.require_active(phone)
        if phone == relationship.user_phone_1:
            user_split, partner_split = relationship.default_split_1, relationship.default_split_2
        else:
            user_split, partner_split = relationship.default_split_2, relationship.default_split_1
        return {
            "user_split": user_split,
            "partner_split": partner_split,
            "partner_phone": relationship.other_phone(phone),
            "relationship_id": relationship.id,
        }

    def _pending_from(self, phone: str, requester_phone: str) -> Relationship:
        relationship = self.db.find_relationship_between(phone, requester_phone)
        if (
            relationship is None
            or relationship.status != RelationshipStatus.PENDING.value
            or relationship.user_phone_2 != phone
        ):
            raise NotFoundError(f"No pending relationship request from {requester_phone}")
        return relationship

    def accept(self, phone: str, requester_phone: str) -> Relationship:
        """Accept a pending request sent by requester_phone to phone.

        Raises:
            NotFoundError: If there is no such pending request
            ConflictError: If either phone already has an active relationship
        """
        relationship = self._pending_from(phone, requester_phone)
        for member in (phone, requester_phone):
            if self.db.get_active_relationship(member) is not None:
                raise ConflictError(f"{member} already has an active relationship")
        self.db.update_relationship(relationship.id, status=RelationshipStatus.ACTIVE.value)
        logger.info("Relationship #{} accepted by {}", relationship.id, phone)
        send_notification(
            self.notifier,
            requester_phone,
            NotificationEvent.RELATIONSHIP_ACCEPTED,
            {"partner_phone": phone, "relationship_id": relationship.id},
        )
        return self.db.get_relationship(relationship.id)

    def reject(self, phone: str, requester_phone: str) -> Relationship:
        """Reject a pending request sent by requester_phone to phone.

        Raises:
            NotFoundError: If there is no such pending request
        """
        relationship = self._pending_from(phone, requester_phone)
        self.db.update_relationship(relationship.id, status=RelationshipStatus.REJECTED.value)
        logger.info("Relationship #{} rejected by {}", relationship.id, phone)
        send_notification(
            self.notifier,
            requester_phone,
            NotificationEvent.RELATIONSHIP_REJECTED,
            {"partner_phone": phone, "relationship_id": relationship.id},
        )
        return self.db.get_relationship(relationship.id)

    def update_default_split(self, phone: str, user_split, partner_split) -> Relationship:
        """Change the default split of the active relationship.

        The user's percentage goes to whichever slot holds the phone.

        Raises:
            ValidationError: If the split doesn't sum to 100
            NoRelationshipError: If there is no active relationship
        """
        user_split, partner_split = validate_split(user_split, partner_split)
        relationship = self.require_active(phone)
        if phone == relationship.user_phone_1:
            split_1, split_2 = user_split, partner_split
        else:
            split_1, split_2 = partner_split, user_split
        self.db.update_relationship(relationship.id, split_1=split_1, split_2=split_2)
        logger.info("Default split of relationship #{} set to {}/{}", relationship.id, split_1, split_2)
        send_notification(
            self.notifier,
            relationship.other_phone(phone),
            NotificationEvent.DEFAULT_SPLIT_UPDATED,
            {"updated_by": phone, "user_split": partner_split, "partner_split": user_split},
        )
        return self.db.get_relationship(relationship.id)

    def deactivate(self, phone: str) -> Relationship:
        """End the active relationship of a phone.

        Raises:
            NoRelationshipError: If there is no active relationship
        """
        relationship = self.require_active(phone)
        self.db.update_relationship(relationship.id, status=RelationshipStatus.INACTIVE.value)
        logger.info("Relationship #{} deactivated by {}", relationship.id, phone)
        return self.db.get_relationship(relationship.id)

    def list_pending(self, phone: str) -> list[Relationship]:
        """List pending requests addressed to the phone, newest first."""
        return self.db.list_pending_relationships(phone)
