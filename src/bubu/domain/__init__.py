"""Domain layer for bubu application.

Services are imported lazily: the database layer imports domain entities,
so importing the services here eagerly would create an import cycle.
"""

import importlib

_SERVICES = {
    "UserService": "bubu.domain.user",
    "CategoryService": "bubu.domain.category",
    "TransactionService": "bubu.domain.transaction",
    "RelationshipService": "bubu.domain.relationship",
    "SharedExpenseService": "bubu.domain.shared",
    "BalanceService": "bubu.domain.balance",
    "ChatHistoryService": "bubu.domain.chat",
    "InMemoryContextStore": "bubu.domain.context",
    "Orchestrator": "bubu.domain.orchestrator",
    "Reply": "bubu.domain.orchestrator",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
