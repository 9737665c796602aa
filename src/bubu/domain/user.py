"""User domain service."""

from typing import Optional

from bubu.database.base import Database
from bubu.domain.entities import User
from bubu.domain.errors import NotFoundError, ValidationError
from bubu.utils.phone import normalize_phone


class UserService:
    """Service for managing users identified by phone number."""

    def __init__(self, db: Database):
        """Initialize user service.

        Args:
            db: Database instance
        """
        self.db = db

    @staticmethod
    def normalize(phone: str) -> str:
        """Normalize a phone number, raising ValidationError when invalid."""
        try:
            return normalize_phone(phone)
        except ValueError as e:
            raise ValidationError(str(e)) from e

    def get_or_create(self, phone: str, name: Optional[str] = None) -> User:
        """Return the user for a phone, creating it on first contact.

        Args:
            phone: Raw phone number
            name: Optional display name, stored if the user has none yet

        Returns:
            User entity

        Raises:
            ValidationError: If the phone number is invalid
        """
        return self.db.get_or_create_user(self.normalize(phone), name=name)

    def get_user(self, phone: str) -> Optional[User]:
        """Get a user by phone, or None if unknown."""
        return self.db.get_user(self.normalize(phone))

    def update_name(self, phone: str, name: str) -> User:
        """Update a user's display name.

        Raises:
            ValidationError: If the name is empty
            NotFoundError: If the user does not exist
        """
        if not name or not name.strip():
            raise ValidationError("Name cannot be empty")
        phone = self.normalize(phone)
        if self.db.get_user(phone) is None:
            raise NotFoundError(f"User {phone} not found")
        self.db.update_user_name(phone, name.strip())
        return self.db.get_user(phone)

    def list_users(self) -> list[User]:
        """List all users."""
        return self.db.list_users()
