"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist or is not owned by the caller."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations or protected records."""


class NoRelationshipError(DomainError):
    """Shared-expense feature used without an active relationship."""


def transaction_not_found(transaction_id: int) -> str:
    """Return message for a missing or foreign transaction."""
    return f"Transaction {transaction_id} not found or does not belong to you"


def category_not_found(category_id: int) -> str:
    """Return message for missing category by ID."""
    return f"Category {category_id} not found"


def category_name_not_found(name: str) -> str:
    """Return message for missing category by name."""
    return f"Category '{name}' not found"


def predefined_category(name: str) -> str:
    """Return message when a predefined category would be modified."""
    return f"Category '{name}' is predefined and cannot be modified or deleted"


def invalid_split(first: object, second: object) -> str:
    """Return message for percentages that do not add up to 100."""
    return f"Split percentages must add up to 100 (got {first} + {second})"


def no_active_relationship(phone: str) -> str:
    """Return message when a phone has no active relationship."""
    return f"No active relationship found for {phone}"


def shared_leg_locked(transaction_id: int) -> str:
    """Return message when a shared leg is edited through the ledger."""
    return (
        f"Transaction {transaction_id} is part of a shared expense; "
        "delete the shared expense instead"
    )
