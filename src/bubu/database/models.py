"""SQLAlchemy models for bubu database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _now() -> datetime:
    return datetime.now(UTC)


class User(Base):
    """User model, keyed by normalized 10-digit phone."""

    __tablename__ = "users"

    phone = Column(String(10), primary_key=True)
    name = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="user")


class Category(Base):
    """Category model shared by every user."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    category_type = Column(String, nullable=False)
    color = Column(String, nullable=False, default="#6B7280")
    icon = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="category")


class Transaction(Base):
    """Ledger row owned by exactly one phone."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    user_phone = Column(String(10), ForeignKey("users.phone"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    transaction_type = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String, nullable=True)
    transaction_date = Column(Date, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    is_shared = Column(Boolean, default=False, nullable=False)
    # Points at shared_transactions.id; no FK to avoid a cycle with the link table
    shared_transaction_id = Column(Integer, nullable=True)

    __table_args__ = (Index("ix_transactions_user_date", "user_phone", "transaction_date"),)

    # Relationships
    user = relationship("User", back_populates="transactions")
    category = relationship("Category", back_populates="transactions")


def pair_key(phone_a: str, phone_b: str) -> str:
    """Key of an unordered phone pair."""
    return ":".join(sorted((phone_a, phone_b)))


class Relationship(Base):
    """Pairing between a requester (slot 1) and a recipient (slot 2)."""

    __tablename__ = "relationships"

    id = Column(Integer, primary_key=True)
    user_phone_1 = Column(String(10), ForeignKey("users.phone"), nullable=False)
    user_phone_2 = Column(String(10), ForeignKey("users.phone"), nullable=False)
    # One row per unordered pair, whichever member asked first
    pair_key = Column(String(21), unique=True, nullable=False)
    default_split_1 = Column(Numeric(5, 2), nullable=False, default=50)
    default_split_2 = Column(Numeric(5, 2), nullable=False, default=50)
    status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)


class SharedTransaction(Base):
    """Link between the payer leg (slot 1) and the partner leg (slot 2)."""

    __tablename__ = "shared_transactions"

    id = Column(Integer, primary_key=True)
    relationship_id = Column(Integer, ForeignKey("relationships.id"), nullable=False)
    payer_phone = Column(String(10), ForeignKey("users.phone"), nullable=False)
    partner_phone = Column(String(10), ForeignKey("users.phone"), nullable=False)
    transaction_1_id = Column(Integer, ForeignKey("transactions.id"), nullable=False)
    transaction_2_id = Column(Integer, ForeignKey("transactions.id"), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    split_percentage_1 = Column(Numeric(5, 2), nullable=False)
    split_percentage_2 = Column(Numeric(5, 2), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    transaction_type = Column(String, nullable=False)
    description = Column(String, nullable=True)
    transaction_date = Column(Date, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)


class ChatMessage(Base):
    """Chat log entry."""

    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True)
    user_phone = Column(String(10), ForeignKey("users.phone"), nullable=False)
    role = Column(String, nullable=False)
    content = Column(String, nullable=False)
    intent = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Sessions are opened per operation from FastAPI worker threads
        connect_args["check_same_thread"] = False
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
