import base64
import binascii
from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from loguru import logger

from bubu.api.deps import ServiceContainer, get_container
from bubu.api.schemas import (
    ChatButtonRequest,
    ChatMessageRequest,
    ChatReceiptRequest,
    CreateCategoryRequest,
    CreateRelationshipRequest,
    CreateSharedRequest,
    CreateTransactionRequest,
    MoveTransactionsRequest,
    PhoneRequest,
    RelationshipAnswerRequest,
    UpdateCategoryRequest,
    UpdateSplitRequest,
    UpdateTransactionRequest,
    UpdateUserRequest,
    UserRequest,
)
from bubu.domain.errors import NotFoundError, ValidationError, category_name_not_found
from bubu.domain.orchestrator import Reply
from bubu.utils.date_parser import get_date_range

router = APIRouter()


def ok(data: Any = None) -> dict:
    return {"success": True, "data": jsonable_encoder(data)}


def reply_payload(reply: Reply) -> dict:
    return ok({"reply": reply.text, "intent": reply.intent, "buttons": reply.buttons, "data": reply.data})


def period_range(container: ServiceContainer, period: Optional[str]) -> tuple[Optional[date], Optional[date]]:
    try:
        return get_date_range(period, container.ledger.today())
    except ValueError as e:
        raise ValidationError(str(e)) from e


def resolve_category_id(container: ServiceContainer, category_id: Optional[int], name: Optional[str], txn_type: str, description: Optional[str]) -> int:
    """Pick the category from an id, a name or the description."""
    if category_id is not None:
        return category_id
    if name:
        category = container.categories.find_by_name(name)
        if category is None:
            raise NotFoundError(category_name_not_found(name))
        return category.id
    category = container.categories.suggest(description, txn_type) or container.categories.get_fallback(txn_type)
    return category.id


# Users


@router.post("/users")
def create_user(request: UserRequest, container: ServiceContainer = Depends(get_container)):
    return ok(container.users.get_or_create(request.phone, name=request.name))


@router.get("/users/{phone}")
def get_user(phone: str, container: ServiceContainer = Depends(get_container)):
    user = container.users.get_user(phone)
    if user is None:
        raise NotFoundError(f"User {phone} not found")
    return ok(user)


@router.patch("/users/{phone}")
def update_user(phone: str, request: UpdateUserRequest, container: ServiceContainer = Depends(get_container)):
    return ok(container.users.update_name(phone, request.name))


# Chat


@router.post("/chat/message")
def chat_message(request: ChatMessageRequest, container: ServiceContainer = Depends(get_container)):
    logger.info("Chat message from {}", request.phone)
    return reply_payload(container.orchestrator.handle_message(request.phone, request.message))


@router.post("/chat/button")
def chat_button(request: ChatButtonRequest, container: ServiceContainer = Depends(get_container)):
    return reply_payload(container.orchestrator.handle_button(request.phone, request.button_id))


@router.post("/chat/receipt")
def chat_receipt(request: ChatReceiptRequest, container: ServiceContainer = Depends(get_container)):
    try:
        image = base64.b64decode(request.image_base64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("image_base64 is not valid base64") from e
    return reply_payload(container.orchestrator.handle_receipt(request.phone, image, request.mime_type))


@router.get("/chat/history/{phone}")
def chat_history(phone: str, limit: int = Query(50, ge=1, le=500), container: ServiceContainer = Depends(get_container)):
    return ok(container.chat.history(container.users.normalize(phone), limit=limit))


# Transactions


@router.get("/transactions")
def list_transactions(
    phone: str,
    period: Optional[str] = "all",
    type: Optional[str] = None,
    category_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = Query(100, ge=1, le=1000),
    container: ServiceContainer = Depends(get_container),
):
    if start_date is None and end_date is None:
        start_date, end_date = period_range(container, period)
    transactions = container.ledger.list_for_user(
        container.users.normalize(phone),
        start_date=start_date,
        end_date=end_date,
        transaction_type=type,
        category_id=category_id,
        limit=limit,
    )
    return ok(transactions)


@router.get("/transactions/summary")
def transaction_summary(
    phone: str,
    period: Optional[str] = "current_month",
    type: Optional[str] = None,
    category_id: Optional[int] = None,
    container: ServiceContainer = Depends(get_container),
):
    start_date, end_date = period_range(container, period)
    summary = container.ledger.summarize(
        container.users.normalize(phone),
        start_date=start_date,
        end_date=end_date,
        transaction_type=type,
        category_id=category_id,
    )
    return ok(summary)


@router.post("/transactions")
def create_transaction(request: CreateTransactionRequest, container: ServiceContainer = Depends(get_container)):
    user = container.users.get_or_create(request.phone)
    category_id = resolve_category_id(container, request.category_id, request.category, request.type, request.description)
    txn = container.ledger.create_transaction(
        user.phone, category_id, request.type, request.amount, request.description, request.date
    )
    return ok(txn)


@router.get("/transactions/{transaction_id}")
def get_transaction(transaction_id: int, phone: str, container: ServiceContainer = Depends(get_container)):
    return ok(container.ledger.get_owned_transaction(transaction_id, container.users.normalize(phone)))


@router.api_route("/transactions/{transaction_id}", methods=["PUT", "PATCH"])
def update_transaction(transaction_id: int, request: UpdateTransactionRequest, container: ServiceContainer = Depends(get_container)):
    txn = container.ledger.update_transaction(
        transaction_id,
        container.users.normalize(request.phone),
        amount=request.amount,
        category_id=request.category_id,
        description=request.description,
        transaction_date=request.date,
    )
    return ok(txn)


@router.delete("/transactions/{transaction_id}")
def delete_transaction(transaction_id: int, request: PhoneRequest, container: ServiceContainer = Depends(get_container)):
    return ok(container.ledger.delete_transaction(transaction_id, container.users.normalize(request.phone)))


# Categories


@router.get("/categories")
def list_categories(type: Optional[str] = None, container: ServiceContainer = Depends(get_container)):
    return ok(container.categories.list_categories(type))


@router.post("/categories")
def create_category(request: CreateCategoryRequest, container: ServiceContainer = Depends(get_container)):
    return ok(container.categories.create_category(request.name, request.type, color=request.color, icon=request.icon))


@router.patch("/categories/{category_id}")
def update_category(category_id: int, request: UpdateCategoryRequest, container: ServiceContainer = Depends(get_container)):
    return ok(container.categories.update_category(category_id, name=request.name, color=request.color, icon=request.icon))


@router.delete("/categories/{category_id}")
def delete_category(category_id: int, container: ServiceContainer = Depends(get_container)):
    return ok(container.categories.delete_category(category_id))


@router.post("/categories/move")
def move_transactions(request: MoveTransactionsRequest, container: ServiceContainer = Depends(get_container)):
    phone = container.users.normalize(request.phone) if request.phone else None
    return ok(container.categories.move_transactions(request.from_category, request.to_category, phone=phone))


# Relationships


@router.post("/relationships")
def create_relationship(request: CreateRelationshipRequest, container: ServiceContainer = Depends(get_container)):
    relationship = container.relationships.create_relationship(
        container.users.normalize(request.phone),
        container.users.normalize(request.partner_phone),
        request.user_split,
        request.partner_split,
    )
    return ok(relationship)


@router.get("/relationships/{phone}")
def get_relationships(phone: str, container: ServiceContainer = Depends(get_container)):
    phone = container.users.normalize(phone)
    return ok(
        {
            "active": container.relationships.get_active(phone),
            "pending": container.relationships.list_pending(phone),
        }
    )


@router.post("/relationships/accept")
def accept_relationship(request: RelationshipAnswerRequest, container: ServiceContainer = Depends(get_container)):
    users = container.users
    return ok(container.relationships.accept(users.normalize(request.phone), users.normalize(request.requester_phone)))


@router.post("/relationships/reject")
def reject_relationship(request: RelationshipAnswerRequest, container: ServiceContainer = Depends(get_container)):
    users = container.users
    return ok(container.relationships.reject(users.normalize(request.phone), users.normalize(request.requester_phone)))


@router.patch("/relationships/split")
def update_split(request: UpdateSplitRequest, container: ServiceContainer = Depends(get_container)):
    relationship = container.relationships.update_default_split(
        container.users.normalize(request.phone), request.user_split, request.partner_split
    )
    return ok(relationship)


@router.delete("/relationships/{phone}")
def deactivate_relationship(phone: str, container: ServiceContainer = Depends(get_container)):
    return ok(container.relationships.deactivate(container.users.normalize(phone)))


# Shared expenses and balance


@router.post("/shared")
def create_shared(request: CreateSharedRequest, container: ServiceContainer = Depends(get_container)):
    phone = container.users.normalize(request.phone)
    category_id = resolve_category_id(container, request.category_id, request.category, request.type, request.description)
    shared = container.shared.register_for(
        phone,
        total_amount=request.amount,
        category_id=category_id,
        transaction_type=request.type,
        description=request.description,
        transaction_date=request.date,
        user_split=request.user_split,
        partner_split=request.partner_split,
        paid_by_user=request.paid_by_user,
    )
    return ok(container.shared.get_details(shared.id))


@router.get("/shared")
def list_shared(phone: str, period: Optional[str] = "current_month", container: ServiceContainer = Depends(get_container)):
    return ok(container.shared.list_shared(container.users.normalize(phone), period))


@router.get("/shared/{shared_id}")
def get_shared(shared_id: int, phone: Optional[str] = None, container: ServiceContainer = Depends(get_container)):
    phone = container.users.normalize(phone) if phone else None
    return ok(container.shared.get_details(shared_id, phone))


@router.delete("/shared/{shared_id}")
def delete_shared(shared_id: int, phone: str, container: ServiceContainer = Depends(get_container)):
    return ok(container.shared.delete_shared(shared_id, container.users.normalize(phone)))


@router.get("/balance")
def get_balance(phone: str, period: Optional[str] = "current_month", container: ServiceContainer = Depends(get_container)):
    return ok(container.balances.calculate_balance(container.users.normalize(phone), period=period))


@router.get("/balance/history")
def get_balance_history(phone: str, months: int = Query(6, ge=1, le=24), container: ServiceContainer = Depends(get_container)):
    return ok(container.balances.balance_history(container.users.normalize(phone), months=months))
