from dataclasses import dataclass
from functools import cached_property
from typing import Optional

from fastapi import Request
from loguru import logger

from bubu.config import Settings
from bubu.database import Database, open_database
from bubu.domain.category import CategoryService
from bubu.domain.context import InMemoryContextStore
from bubu.domain.orchestrator import Orchestrator
from bubu.domain.relationship import RelationshipService
from bubu.domain.shared import SharedExpenseService
from bubu.llm import OpenAIIntentClassifier, OpenAIReceiptExtractor
from bubu.notifications import LoggingNotifier


@dataclass
class ServiceContainer:
    """Everything the routes need, built once per application."""

    db: Database
    orchestrator: Orchestrator

    @property
    def users(self):
        return self.orchestrator.users

    @property
    def categories(self):
        return self.orchestrator.categories

    @property
    def ledger(self):
        return self.orchestrator.ledger

    @cached_property
    def relationships(self):
        # Routes notify directly; the orchestrator queues until its turn ends
        return RelationshipService(self.db, notifier=self.orchestrator.notifier)

    @cached_property
    def shared(self):
        return SharedExpenseService(
            self.db,
            self.relationships,
            timezone=self.orchestrator.timezone,
            notifier=self.orchestrator.notifier,
        )

    @property
    def balances(self):
        return self.orchestrator.balances

    @property
    def chat(self):
        return self.orchestrator.chat


def build_container(settings: Settings, db: Optional[Database] = None) -> ServiceContainer:
    """Wire the services, opening the configured database unless one is given."""
    if db is None:
        db = open_database(settings.database_url, settings.db_path)
    categories = CategoryService(db)
    created = categories.ensure_predefined()
    if created:
        logger.info("Seeded {} predefined categories", created)

    if not settings.openai_api_key:
        logger.warning("BUBU_OPENAI_API_KEY not set; chat classification will fail")

    orchestrator = Orchestrator(
        db,
        context=InMemoryContextStore(),
        classifier=OpenAIIntentClassifier(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            category_names=lambda: [c.name for c in categories.list_categories()],
            timezone=settings.timezone,
        ),
        notifier=LoggingNotifier(),
        receipt_extractor=OpenAIReceiptExtractor(
            api_key=settings.openai_api_key,
            model=settings.openai_vision_model,
            base_url=settings.openai_base_url,
        ),
        timezone=settings.timezone,
        receipt_confidence_threshold=settings.receipt_confidence_threshold,
    )
    return ServiceContainer(db=db, orchestrator=orchestrator)


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container
