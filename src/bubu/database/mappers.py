"""Mapper functions to convert SQLAlchemy models into domain entities.

This layer isolates the conversion logic, so the services keep working with
frozen entities while the table layout evolves.
"""

from decimal import Decimal

from bubu.domain import entities as domain
from bubu.database.models import (
    User as ORMUser,
    Category as ORMCategory,
    Transaction as ORMTransaction,
    Relationship as ORMRelationship,
    SharedTransaction as ORMSharedTransaction,
    ChatMessage as ORMChatMessage,
)


def user_to_domain(orm_user: ORMUser) -> domain.User:
    """Convert SQLAlchemy User model to domain User entity."""
    return domain.User(
        phone=orm_user.phone,
        name=orm_user.name,
        created_at=orm_user.created_at,
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        name=orm_category.name,
        category_type=orm_category.category_type,
        color=orm_category.color,
        icon=orm_category.icon,
        created_at=orm_category.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    category = orm_transaction.category
    return domain.Transaction(
        id=orm_transaction.id,
        user_phone=orm_transaction.user_phone,
        category_id=orm_transaction.category_id,
        transaction_type=orm_transaction.transaction_type,
        amount=Decimal(orm_transaction.amount),
        description=orm_transaction.description,
        transaction_date=orm_transaction.transaction_date,
        created_at=orm_transaction.created_at,
        is_shared=bool(orm_transaction.is_shared),
        shared_transaction_id=orm_transaction.shared_transaction_id,
        category_name=category.name if category is not None else None,
    )


def relationship_to_domain(orm_relationship: ORMRelationship) -> domain.Relationship:
    """Convert SQLAlchemy Relationship model to domain Relationship entity."""
    return domain.Relationship(
        id=orm_relationship.id,
        user_phone_1=orm_relationship.user_phone_1,
        user_phone_2=orm_relationship.user_phone_2,
        default_split_1=Decimal(orm_relationship.default_split_1),
        default_split_2=Decimal(orm_relationship.default_split_2),
        status=orm_relationship.status,
        created_at=orm_relationship.created_at,
        updated_at=orm_relationship.updated_at,
    )


def shared_transaction_to_domain(orm_shared: ORMSharedTransaction) -> domain.SharedTransaction:
    """Convert SQLAlchemy SharedTransaction model to domain entity."""
    return domain.SharedTransaction(
        id=orm_shared.id,
        relationship_id=orm_shared.relationship_id,
        payer_phone=orm_shared.payer_phone,
        partner_phone=orm_shared.partner_phone,
        transaction_1_id=orm_shared.transaction_1_id,
        transaction_2_id=orm_shared.transaction_2_id,
        total_amount=Decimal(orm_shared.total_amount),
        split_percentage_1=Decimal(orm_shared.split_percentage_1),
        split_percentage_2=Decimal(orm_shared.split_percentage_2),
        category_id=orm_shared.category_id,
        transaction_type=orm_shared.transaction_type,
        description=orm_shared.description,
        transaction_date=orm_shared.transaction_date,
        created_at=orm_shared.created_at,
    )


def chat_message_to_domain(orm_message: ORMChatMessage) -> domain.ChatMessage:
    """Convert SQLAlchemy ChatMessage model to domain entity."""
    return domain.ChatMessage(
        id=orm_message.id,
        user_phone=orm_message.user_phone,
        role=orm_message.role,
        content=orm_message.content,
        intent=orm_message.intent,
        created_at=orm_message.created_at,
    )
