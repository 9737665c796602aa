import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel


class UserRequest(BaseModel):
    phone: str
    name: Optional[str] = None


class UpdateUserRequest(BaseModel):
    name: str


class ChatMessageRequest(BaseModel):
    phone: str
    message: str


class ChatButtonRequest(BaseModel):
    phone: str
    button_id: str


class ChatReceiptRequest(BaseModel):
    phone: str
    image_base64: str
    mime_type: str = "image/jpeg"


class PhoneRequest(BaseModel):
    phone: str


class CreateTransactionRequest(BaseModel):
    phone: str
    type: Literal["expense", "income"] = "expense"
    amount: Decimal
    category_id: Optional[int] = None
    category: Optional[str] = None
    description: Optional[str] = None
    date: Optional[datetime.date] = None


class UpdateTransactionRequest(BaseModel):
    phone: str
    amount: Optional[Decimal] = None
    category_id: Optional[int] = None
    description: Optional[str] = None
    date: Optional[datetime.date] = None


class CreateCategoryRequest(BaseModel):
    name: str
    type: Literal["expense", "income"] = "expense"
    color: Optional[str] = None
    icon: Optional[str] = None


class UpdateCategoryRequest(BaseModel):
    name: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None


class MoveTransactionsRequest(BaseModel):
    from_category: str
    to_category: str
    phone: Optional[str] = None


class CreateRelationshipRequest(BaseModel):
    phone: str
    partner_phone: str
    user_split: Decimal = Decimal("50")
    partner_split: Decimal = Decimal("50")


class RelationshipAnswerRequest(BaseModel):
    phone: str
    requester_phone: str


class UpdateSplitRequest(BaseModel):
    phone: str
    user_split: Decimal
    partner_split: Decimal


class CreateSharedRequest(BaseModel):
    phone: str
    amount: Decimal
    category_id: Optional[int] = None
    category: Optional[str] = None
    type: Literal["expense", "income"] = "expense"
    description: Optional[str] = None
    date: Optional[datetime.date] = None
    user_split: Optional[Decimal] = None
    partner_split: Optional[Decimal] = None
    paid_by_user: bool = True