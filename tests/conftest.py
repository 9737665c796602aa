"""Shared pytest fixtures for bubu tests."""

import tempfile
import os
import pytest

from bubu.database.factories import create_sqlite_database
from bubu.domain.balance import BalanceService
from bubu.domain.category import CategoryService
from bubu.domain.chat import ChatHistoryService
from bubu.domain.collaborators import (
    IntentClassifier,
    NotificationEvent,
    Notifier,
    ReceiptData,
    ReceiptExtractor,
)
from bubu.domain.context import InMemoryContextStore
from bubu.domain.intents import Intent, IntentResult
from bubu.domain.orchestrator import Orchestrator
from bubu.domain.relationship import RelationshipService
from bubu.domain.shared import SharedExpenseService
from bubu.domain.transaction import TransactionService
from bubu.domain.user import UserService

USER_PHONE = "5551234567"
PARTNER_PHONE = "5559876543"
OTHER_PHONE = "5550001111"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedClassifier(IntentClassifier):
    """Returns canned results per message text; raises for unknown text."""

    def __init__(self):
        self.responses: dict[str, IntentResult] = {}
        self.calls: list[tuple[str, str]] = []

    def add(self, text: str, intent: Intent, **parameters) -> None:
        self.responses[text] = IntentResult(intent, parameters)

    def classify(self, text: str, phone: str) -> IntentResult:
        self.calls.append((text, phone))
        if text not in self.responses:
            raise RuntimeError(f"classifier unavailable for '{text}'")
        return self.responses[text]


class FakeReceiptExtractor(ReceiptExtractor):
    """Returns a preset ReceiptData or raises a preset error."""

    def __init__(self):
        self.result: ReceiptData | None = None
        self.error: Exception | None = None

    def extract(self, image: bytes, mime_type: str) -> ReceiptData:
        if self.error is not None:
            raise self.error
        return self.result


class RecordingNotifier(Notifier):
    """Keeps every notification in memory."""

    def __init__(self):
        self.sent: list[tuple[str, NotificationEvent, dict]] = []

    def notify(self, phone, event, payload) -> None:
        self.sent.append((phone, event, payload))

    def events_for(self, phone: str) -> list[NotificationEvent]:
        return [event for sent_phone, event, _ in self.sent if sent_phone == phone]


class FailingNotifier(Notifier):
    """Always fails to deliver."""

    def __init__(self):
        self.attempts = 0

    def notify(self, phone, event, payload) -> None:
        self.attempts += 1
        raise ConnectionError("messaging channel down")


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def user_service(temp_db):
    """Create a UserService with a temporary database."""
    return UserService(temp_db)


@pytest.fixture
def category_service(temp_db):
    """Create a CategoryService with a temporary database."""
    return CategoryService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def relationship_service(temp_db):
    """Create a RelationshipService with a temporary database."""
    return RelationshipService(temp_db)


@pytest.fixture
def shared_service(temp_db, relationship_service):
    """Create a SharedExpenseService with a temporary database."""
    return SharedExpenseService(temp_db, relationship_service)


@pytest.fixture
def balance_service(temp_db, relationship_service):
    """Create a BalanceService with a temporary database."""
    return BalanceService(temp_db, relationship_service)


@pytest.fixture
def chat_service(temp_db):
    """Create a ChatHistoryService with a temporary database."""
    return ChatHistoryService(temp_db)


@pytest.fixture
def seeded_categories(category_service):
    """Create the predefined categories and return them by name."""
    category_service.ensure_predefined()
    return {cat.name: cat for cat in category_service.list_categories()}


@pytest.fixture
def partners(relationship_service):
    """An active 65/35 relationship between USER_PHONE and PARTNER_PHONE."""
    relationship_service.create_relationship(USER_PHONE, PARTNER_PHONE, 65, 35)
    return relationship_service.accept(PARTNER_PHONE, USER_PHONE)


@pytest.fixture
def clock():
    """Create a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def context_store(clock):
    """Create an in-memory context store driven by the fake clock."""
    return InMemoryContextStore(clock=clock)


@pytest.fixture
def classifier():
    """Create a scripted intent classifier."""
    return ScriptedClassifier()


@pytest.fixture
def receipt_extractor():
    """Create a fake receipt extractor."""
    return FakeReceiptExtractor()


@pytest.fixture
def notifier():
    """Create a notifier that records notifications."""
    return RecordingNotifier()


@pytest.fixture
def orchestrator(temp_db, seeded_categories, context_store, classifier, notifier, receipt_extractor):
    """Create an Orchestrator wired to fakes and a temporary database."""
    return Orchestrator(
        temp_db,
        context=context_store,
        classifier=classifier,
        notifier=notifier,
        receipt_extractor=receipt_extractor,
    )


@pytest.fixture
def api_client(temp_db, orchestrator):
    """Create a FastAPI test client over the temporary database."""
    from fastapi.testclient import TestClient

    from bubu.api.app import create_app
    from bubu.api.deps import ServiceContainer
    from bubu.config import Settings

    settings = Settings(_env_file=None, openai_api_key="test-key", log_level="WARNING")
    app = create_app(settings, container=ServiceContainer(db=temp_db, orchestrator=orchestrator))
    return TestClient(app)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
