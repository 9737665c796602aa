"""Chat history domain service."""

from typing import Optional

from bubu.database.base import Database
from bubu.domain.entities import ChatMessage
from bubu.domain.errors import ValidationError

ROLES = ("user", "assistant")


class ChatHistoryService:
    """Stores every inbound message and outbound reply."""

    def __init__(self, db: Database):
        self.db = db

    def record(self, phone: str, role: str, content: str, intent: Optional[str] = None) -> int:
        """Append a message to a phone's history. Returns message ID."""
        if role not in ROLES:
            raise ValidationError(f"Invalid chat role '{role}'")
        return self.db.add_chat_message(phone, role, content, intent=intent)

    def history(self, phone: str, limit: int = 50) -> list[ChatMessage]:
        """Return the latest messages, oldest first."""
        return self.db.list_chat_messages(phone, limit=limit)
