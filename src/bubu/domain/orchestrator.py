"""Conversation orchestrator.

Receives user messages, button presses and receipt images for a phone,
consults the per-phone conversation context and routes classified intents
to the ledger, category, relationship, shared-expense and balance services.

Work for one phone is serialized with a per-phone lock. The intent
classifier and the receipt extractor are called outside that lock, and
notifications are delivered after it is released; a failed delivery is
logged and never undoes the state change that triggered it.
"""

import re
import threading
import weakref
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Optional

from loguru import logger

from bubu.database.base import Database
from bubu.domain import replies
from bubu.domain.balance import BalanceService
from bubu.domain.category import CategoryService, validate_type
from bubu.domain.chat import ChatHistoryService
from bubu.domain.collaborators import (
    IntentClassifier,
    NotificationEvent,
    Notifier,
    ReceiptData,
    ReceiptExtractor,
    send_notification,
)
from bubu.domain.context import ContextSlot, ContextStore
from bubu.domain.entities import Category, SharedTransaction, Transaction
from bubu.domain.errors import (
    ConflictError,
    DomainError,
    NoRelationshipError,
    NotFoundError,
    ValidationError,
    category_name_not_found,
)
from bubu.domain.intents import Intent, IntentResult
from bubu.domain.relationship import RelationshipService
from bubu.domain.shared import SharedExpenseService
from bubu.domain.transaction import TransactionService, validate_amount
from bubu.domain.user import UserService
from bubu.utils.amount_parser import parse_amount
from bubu.utils.date_parser import DEFAULT_TIMEZONE, get_date_range, parse_date, today_in

AFFIRMATIVE_WORDS = ("sí", "si", "ok", "confirmo", "confirma", "correcto", "yes")
CANCEL_WORDS = ("no", "cancelar", "cancela")

FIELD_ALIASES = {
    "category": "category",
    "categoria": "category",
    "categoría": "category",
    "amount": "amount",
    "monto": "amount",
    "description": "description",
    "descripcion": "description",
    "descripción": "description",
    "date": "date",
    "fecha": "date",
}

CONFIRM_BUTTONS = [
    {"id": "confirm_pending", "title": "Sí"},
    {"id": "cancel_pending", "title": "No"},
]
RECEIPT_BUTTONS = [
    {"id": "receipt_individual", "title": "Individual"},
    {"id": "receipt_shared_yo", "title": "Compartido, pagué yo"},
    {"id": "receipt_shared_pareja", "title": "Compartido, pagó mi pareja"},
]
RECEIPT_CHOICES = {
    "receipt_individual": "individual",
    "receipt_shared_yo": "user",
    "receipt_shared_pareja": "partner",
}

_TRANSACTION_BUTTON = re.compile(r"^(view|edit|delete|confirm_delete|cancel_delete)_(\d+)$")
_ANSWER_PUNCTUATION = re.compile(r"[¡!¿?.,]")

RECEIPT_PENDING_AMOUNT = "pending_amount"
RECEIPT_PENDING_CONFIRMATION = "pending_confirmation"
RECEIPT_PENDING_SPLIT = "pending_split_choice"


@dataclass
class Reply:
    """What to tell the user after handling one inbound event."""

    intent: str
    text: str
    data: Any = None
    buttons: list[dict[str, str]] = field(default_factory=list)


@dataclass
class _Turn:
    """State of one inbound event while it is being handled."""

    phone: str


class _Outbox(Notifier):
    """Holds notifications raised on this thread until its turn is finished."""

    def __init__(self):
        self._local = threading.local()

    def notify(self, phone: str, event: NotificationEvent, payload: dict) -> None:
        self._pending().append((phone, event, payload))

    def drain(self) -> list[tuple[str, NotificationEvent, dict]]:
        pending = self._pending()
        self._local.pending = []
        return pending

    def _pending(self) -> list:
        if not hasattr(self._local, "pending"):
            self._local.pending = []
        return self._local.pending


def _normalize_answer(text: str) -> str:
    return " ".join(_ANSWER_PUNCTUATION.sub(" ", text.lower()).split())


def _starts_with_word(text: str, words: tuple[str, ...]) -> bool:
    return any(text == word or text.startswith(word + " ") for word in words)


def _to_decimal(value: Any) -> Decimal:
    """Convert a classifier value (number or text) to Decimal."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    try:
        return parse_amount(str(value))
    except ValueError as e:
        raise ValidationError(str(e)) from e


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(Decimal(str(value)))
    except (ArithmeticError, ValueError):
        return None


class Orchestrator:
    """Routes conversational events to the domain services."""

    def __init__(
        self,
        db: Database,
        context: ContextStore,
        classifier: IntentClassifier,
        notifier: Optional[Notifier] = None,
        receipt_extractor: Optional[ReceiptExtractor] = None,
        timezone: str = DEFAULT_TIMEZONE,
        receipt_confidence_threshold: int = 70,
    ):
        """Initialize the orchestrator.

        Args:
            db: Database instance
            context: Conversation context store
            classifier: Intent classifier for free text
            notifier: Optional notifier for the other member of a relationship
            receipt_extractor: Optional receipt reader for images
            timezone: Timezone whose calendar defines "today"
            receipt_confidence_threshold: Receipts scored below this need confirmation
        """
        self.context = context
        self.classifier = classifier
        self.notifier = notifier
        self.receipt_extractor = receipt_extractor
        self.timezone = timezone
        self.receipt_confidence_threshold = receipt_confidence_threshold

        self.users = UserService(db)
        self.categories = CategoryService(db)
        self.ledger = TransactionService(db, timezone=timezone)
        self._outbox = _Outbox()
        self.relationships = RelationshipService(db, notifier=self._outbox)
        self.shared = SharedExpenseService(
            db, self.relationships, timezone=timezone, notifier=self._outbox
        )
        self.balances = BalanceService(db, self.relationships, timezone=timezone)
        self.chat = ChatHistoryService(db)

        # Entries disappear once no turn for the phone holds its lock
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

        self._handlers: dict[Intent, Callable[[_Turn, IntentResult], Reply]] = {
            Intent.REGISTER_TRANSACTION: self._register_transaction,
            Intent.CONFIRM_TRANSACTION: self._confirm_transaction,
            Intent.CANCEL_TRANSACTION: self._cancel_transaction,
            Intent.CORRECT_LAST_TRANSACTION: self._correct_last_transaction,
            Intent.EDIT_TRANSACTION: self._edit_transaction,
            Intent.DELETE_TRANSACTION: self._delete_transaction,
            Intent.LIST_TRANSACTIONS: self._list_transactions,
            Intent.QUERY_SUMMARY: self._query_summary,
            Intent.LIST_CATEGORIES: self._list_categories,
            Intent.CREATE_CATEGORY: self._create_category,
            Intent.DELETE_CATEGORY: self._delete_category,
            Intent.MOVE_TRANSACTIONS: self._move_transactions,
            Intent.REGISTER_PARTNER: self._register_partner,
            Intent.ACCEPT_PARTNER_REQUEST: self._accept_partner_request,
            Intent.REJECT_PARTNER_REQUEST: self._reject_partner_request,
            Intent.REMOVE_PARTNER: self._remove_partner,
            Intent.QUERY_BALANCE: self._query_balance,
            Intent.LIST_SHARED_EXPENSES: self._list_shared_expenses,
            Intent.UPDATE_DEFAULT_SPLIT: self._update_default_split,
            Intent.CONFIRM_RECEIPT: self._confirm_receipt,
            Intent.CORRECT_RECEIPT: self._correct_receipt,
            Intent.PROVIDE_AMOUNT: self._provide_amount,
            Intent.GENERAL_CONVERSATION: self._general_conversation,
            Intent.UNKNOWN: self._unknown,
        }
        missing = [intent.value for intent in Intent if intent not in self._handlers]
        if missing:
            raise RuntimeError(f"No handler registered for intents: {', '.join(missing)}")

    # Entry points

    def handle_message(self, phone: str, text: str) -> Reply:
        """Handle a free-text message from a phone.

        Raises:
            ValidationError: If the phone is invalid or the text is empty
        """
        text = (text or "").strip()
        if not text:
            raise ValidationError("Message text is required")
        turn = self._start_turn(phone, text)

        with self._lock_for(turn.phone):
            reply = self._handle_context_reply(turn, text)
        if reply is None:
            result = self._classify(text, turn.phone)
            with self._lock_for(turn.phone):
                reply = self._dispatch(turn, result)
        return self._finish_turn(turn, reply)

    def handle_button(self, phone: str, button_id: str) -> Reply:
        """Handle an interactive button reply.

        Raises:
            ValidationError: If the phone is invalid or the button id is empty
        """
        button_id = (button_id or "").strip()
        if not button_id:
            raise ValidationError("Button id is required")
        turn = self._start_turn(phone, f"[button] {button_id}")
        with self._lock_for(turn.phone):
            reply = self._handle_button(turn, button_id)
        return self._finish_turn(turn, reply)

    def handle_receipt(self, phone: str, image: bytes, mime_type: str) -> Reply:
        """Handle a receipt image.

        Raises:
            ValidationError: If the phone is invalid
        """
        turn = self._start_turn(phone, "[receipt]")
        data = None
        if self.receipt_extractor is None:
            logger.warning("No receipt extractor configured; asking {} for the amount", turn.phone)
        else:
            try:
                data = self.receipt_extractor.extract(image, mime_type)
            except Exception as e:
                logger.warning("Receipt extraction failed for {}: {}", turn.phone, e)
        with self._lock_for(turn.phone):
            reply = self._guard("receipt", lambda: self._process_receipt(turn, data))
        return self._finish_turn(turn, reply)

    # Plumbing

    def _start_turn(self, phone: str, content: str) -> _Turn:
        user = self.users.get_or_create(phone)
        self.chat.record(user.phone, "user", content)
        self._outbox.drain()
        return _Turn(phone=user.phone)

    def _finish_turn(self, turn: _Turn, reply: Reply) -> Reply:
        self._deliver()
        self.chat.record(turn.phone, "assistant", reply.text, intent=reply.intent)
        return reply

    def _lock_for(self, phone: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(phone)
            if lock is None:
                lock = self._locks[phone] = threading.Lock()
            return lock

    def _classify(self, text: str, phone: str) -> IntentResult:
        try:
            result = self.classifier.classify(text, phone)
        except Exception as e:
            logger.warning("Intent classification failed for {}: {}", phone, e)
            return IntentResult(Intent.UNKNOWN)
        logger.info("Classified message from {} as {}", phone, result.intent.value)
        return result

    def _deliver(self) -> None:
        for phone, event, payload in self._outbox.drain():
            send_notification(self.notifier, phone, event, payload)

    def _dispatch(self, turn: _Turn, result: IntentResult) -> Reply:
        handler = self._handlers[result.intent]
        return self._guard(result.intent.value, lambda: handler(turn, result))

    def _guard(self, intent: str, action: Callable[[], Reply]) -> Reply:
        """Run an action, turning errors into replies by error kind."""
        try:
            return action()
        except NoRelationshipError:
            return Reply(intent, replies.NO_PARTNER)
        except NotFoundError as e:
            return Reply(intent, f"🔍 No encontré lo que buscas: {e}")
        except ConflictError as e:
            return Reply(intent, f"⛔ No se puede: {e}")
        except (DomainError, ValueError) as e:
            return Reply(intent, f"⚠️ Revisa los datos: {e}")
        except Exception:
            logger.exception("Unhandled error while handling {}", intent)
            return Reply(intent, replies.GENERIC_ERROR)

    def _handle_context_reply(self, turn: _Turn, text: str) -> Optional[Reply]:
        """Answer messages that only make sense in the current context."""
        phone = turn.phone
        answer = _normalize_answer(text)

        if self.context.get(phone, ContextSlot.PENDING_TRANSACTION) is not None:
            if _starts_with_word(answer, AFFIRMATIVE_WORDS):
                return self._dispatch(turn, IntentResult(Intent.CONFIRM_TRANSACTION))
            if _starts_with_word(answer, CANCEL_WORDS):
                return self._dispatch(turn, IntentResult(Intent.CANCEL_TRANSACTION))

        amount = self._bare_amount(text)
        if amount is None:
            return None

        if self.context.get(phone, ContextSlot.EDITING_TRANSACTION) is not None:
            return self._dispatch(turn, IntentResult(Intent.EDIT_TRANSACTION, {"new_amount": amount}))

        receipt = self.context.get(phone, ContextSlot.PENDING_RECEIPT)
        if receipt is not None and receipt["status"] == RECEIPT_PENDING_AMOUNT:
            return self._dispatch(turn, IntentResult(Intent.PROVIDE_AMOUNT, {"amount": amount}))
        return None

    @staticmethod
    def _bare_amount(text: str) -> Optional[Decimal]:
        try:
            amount = parse_amount(text)
        except ValueError:
            return None
        return amount if amount > 0 else None

    # Helpers

    def _today(self) -> date:
        return today_in(self.timezone)

    def _amount(self, value: Any) -> Decimal:
        if value is None or value == "":
            raise ValidationError("Amount is required")
        return validate_amount(_to_decimal(value))

    def _date(self, value: Any) -> date:
        if value is None or value == "":
            return self._today()
        if isinstance(value, date):
            return value
        return parse_date(str(value), today=self._today())

    def _date_range(self, result: IntentResult, default_period: str) -> tuple[Optional[date], Optional[date]]:
        start, end = result.get("start_date"), result.get("end_date")
        if start is not None or end is not None:
            return (
                self._date(start) if start is not None else None,
                self._date(end) if end is not None else None,
            )
        return get_date_range(result.get("period", default_period), self._today())

    def _resolve_category(self, name: Optional[str], description: Optional[str], txn_type: str) -> Category:
        if name:
            category = self.categories.find_by_name(name)
            if category is not None:
                return category
        category = self.categories.suggest(description or name, txn_type)
        if category is None:
            category = self.categories.get_fallback(txn_type)
        return category

    def _category_filter(self, name: Optional[str]) -> Optional[int]:
        if not name:
            return None
        category = self.categories.find_by_name(name)
        if category is None:
            raise NotFoundError(category_name_not_found(name))
        return category.id

    @staticmethod
    def _type_filter(value: Optional[str]) -> Optional[str]:
        if value is None or value in ("all", "todos"):
            return None
        return validate_type(value)

    @staticmethod
    def _split_params(result: IntentResult) -> tuple[Optional[Decimal], Optional[Decimal]]:
        user_split, partner_split = result.get("user_split"), result.get("partner_split")
        if user_split is None and partner_split is None:
            return None, None
        if user_split is None:
            partner_split = _to_decimal(partner_split)
            return Decimal("100") - partner_split, partner_split
        user_split = _to_decimal(user_split)
        if partner_split is None:
            return user_split, Decimal("100") - user_split
        return user_split, _to_decimal(partner_split)

    def _remember_last(self, phone: str, transaction_id: int) -> None:
        self.context.put(phone, ContextSlot.LAST_TRANSACTION, {"transaction_id": transaction_id})

    def _own_leg(self, phone: str, shared: SharedTransaction) -> Transaction:
        transaction_id = shared.transaction_1_id if shared.payer_phone == phone else shared.transaction_2_id
        return self.ledger.get_transaction(transaction_id)

    def _save_shared(
        self,
        turn: _Turn,
        intent: str,
        amount: Decimal,
        category_id: int,
        txn_type: str,
        description: Optional[str],
        txn_date: date,
        user_split=None,
        partner_split=None,
        paid_by_user: bool = True,
    ) -> Reply:
        """Create a shared expense, falling back to an individual one without a partner."""
        try:
            shared = self.shared.register_for(
                turn.phone,
                total_amount=amount,
                category_id=category_id,
                transaction_type=txn_type,
                description=description,
                transaction_date=txn_date,
                user_split=user_split,
                partner_split=partner_split,
                paid_by_user=paid_by_user,
            )
        except NoRelationshipError:
            txn = self.ledger.create_transaction(
                turn.phone, category_id, txn_type, amount, description, txn_date
            )
            self._remember_last(turn.phone, txn.id)
            return Reply(intent, f"{replies.transaction_saved(txn)}\n{replies.NO_PARTNER}", data=txn)

        own = self._own_leg(turn.phone, shared)
        self._remember_last(turn.phone, own.id)
        return Reply(intent, replies.shared_saved(turn.phone, shared, own.amount), data=shared)

    def _delete_owned(self, turn: _Turn, intent: str, transaction_id: int) -> Reply:
        txn = self.ledger.get_owned_transaction(transaction_id, turn.phone)
        if txn.is_shared and txn.shared_transaction_id is not None:
            shared = self.shared.delete_shared(txn.shared_transaction_id, turn.phone)
            text = f"🗑️ Eliminé el gasto compartido de {replies.format_money(shared.total_amount)}."
            data: Any = shared
        else:
            self.ledger.delete_transaction(transaction_id, turn.phone)
            text = f"🗑️ Eliminé el movimiento de {replies.format_money(txn.amount)} ({txn.category_name})."
            data = txn
        last = self.context.get(turn.phone, ContextSlot.LAST_TRANSACTION)
        if last is not None and last["transaction_id"] == transaction_id:
            self.context.clear(turn.phone, ContextSlot.LAST_TRANSACTION)
        return Reply(intent, text, data=data)

    # Transaction intents

    def _register_transaction(self, turn: _Turn, result: IntentResult) -> Reply:
        txn_type = validate_type(result.get("type", "expense"))
        amount = self._amount(result.get("amount"))
        description = result.get("description")
        category = self._resolve_category(result.get("category"), description, txn_type)
        pending = {
            "type": txn_type,
            "amount": amount,
            "description": description,
            "category_id": category.id,
            "category_name": category.name,
            "date": self._date(result.get("date")),
            "shared": False,
        }

        note = ""
        if result.get("shared", False):
            user_split, partner_split = self._split_params(result)
            try:
                split = self.shared.resolve_split(turn.phone, user_split, partner_split)
            except NoRelationshipError:
                note = f"\n{replies.NO_PARTNER} Por ahora lo registraré como individual."
            else:
                pending.update(
                    shared=True,
                    user_split=split["user_split"],
                    partner_split=split["partner_split"],
                    partner_phone=split["partner_phone"],
                    paid_by_user=result.get("payer", "user") != "partner",
                )

        self.context.put(turn.phone, ContextSlot.PENDING_TRANSACTION, pending)
        return Reply(
            Intent.REGISTER_TRANSACTION.value,
            replies.pending_prompt(pending) + note,
            data=pending,
            buttons=list(CONFIRM_BUTTONS),
        )

    def _confirm_transaction(self, turn: _Turn, result: IntentResult) -> Reply:
        intent = Intent.CONFIRM_TRANSACTION.value
        pending = self.context.get(turn.phone, ContextSlot.PENDING_TRANSACTION)
        if pending is None:
            return Reply(intent, replies.NOTHING_PENDING)

        # The proposal stays pending until it is saved
        if pending.get("shared"):
            reply = self._save_shared(
                turn,
                intent,
                amount=pending["amount"],
                category_id=pending["category_id"],
                txn_type=pending["type"],
                description=pending["description"],
                txn_date=pending["date"],
                user_split=pending["user_split"],
                partner_split=pending["partner_split"],
                paid_by_user=pending["paid_by_user"],
            )
        else:
            txn = self.ledger.create_transaction(
                turn.phone,
                pending["category_id"],
                pending["type"],
                pending["amount"],
                pending["description"],
                pending["date"],
            )
            self._remember_last(turn.phone, txn.id)
            reply = Reply(intent, replies.transaction_saved(txn), data=txn)
        self.context.clear(turn.phone, ContextSlot.PENDING_TRANSACTION)
        return reply

    def _cancel_transaction(self, turn: _Turn, result: IntentResult) -> Reply:
        pending = self.context.pop(turn.phone, ContextSlot.PENDING_TRANSACTION)
        text = replies.PENDING_CANCELLED if pending is not None else replies.NOTHING_PENDING
        return Reply(Intent.CANCEL_TRANSACTION.value, text)

    def _correct_last_transaction(self, turn: _Turn, result: IntentResult) -> Reply:
        intent = Intent.CORRECT_LAST_TRANSACTION.value
        last = self.context.get(turn.phone, ContextSlot.LAST_TRANSACTION)
        if last is None:
            return Reply(intent, replies.NO_RECENT_TRANSACTION)

        field_name = FIELD_ALIASES.get(str(result.get("field", "")).strip().lower())
        value = result.get("value")
        if field_name is None or value is None:
            raise ValidationError("Tell me which field to fix (category, amount, description or date) and its new value")

        changes: dict[str, Any] = {}
        if field_name == "category":
            category = self.categories.find_by_name(str(value))
            if category is None:
                raise NotFoundError(category_name_not_found(str(value)))
            changes["category_id"] = category.id
        elif field_name == "amount":
            changes["amount"] = self._amount(value)
        elif field_name == "description":
            changes["description"] = str(value)
        else:
            changes["transaction_date"] = self._date(value)

        txn = self.ledger.update_transaction(last["transaction_id"], turn.phone, **changes)
        self._remember_last(turn.phone, txn.id)
        return Reply(intent, "✏️ Corregido.\n" + replies.transaction_detail(txn), data=txn)

    def _edit_transaction(self, turn: _Turn, result: IntentResult) -> Reply:
        intent = Intent.EDIT_TRANSACTION.value
        number = result.get("number")
        if number is not None:
            entry = self.context.resolve_list_index(turn.phone, _to_int(number))
            if entry is None:
                return Reply(intent, replies.LIST_EXPIRED)
            transaction_id = entry["transaction_id"]
        else:
            editing = self.context.get(turn.phone, ContextSlot.EDITING_TRANSACTION)
            if editing is None:
                return Reply(intent, "¿Qué número de la lista quieres editar?")
            transaction_id = editing["transaction_id"]

        txn = self.ledger.get_owned_transaction(transaction_id, turn.phone)
        if txn.is_shared:
            return Reply(intent, replies.SHARED_LEG_LOCKED)

        new_amount = result.get("new_amount")
        if new_amount is None:
            self.context.put(turn.phone, ContextSlot.EDITING_TRANSACTION, {"transaction_id": txn.id})
            return Reply(intent, f"¿Cuál es el nuevo monto para el movimiento de {replies.format_money(txn.amount)}?")

        updated = self.ledger.update_transaction(txn.id, turn.phone, amount=self._amount(new_amount))
        self.context.clear(turn.phone, ContextSlot.EDITING_TRANSACTION)
        return Reply(
            intent,
            f"✏️ Actualicé el monto de {replies.format_money(txn.amount)} a {replies.format_money(updated.amount)}.",
            data=updated,
        )

    def _delete_transaction(self, turn: _Turn, result: IntentResult) -> Reply:
        intent = Intent.DELETE_TRANSACTION.value
        entry = self.context.resolve_list_index(turn.phone, _to_int(result.get("number")))
        if entry is None:
            return Reply(intent, replies.LIST_EXPIRED)
        return self._delete_owned(turn, intent, entry["transaction_id"])

    def _list_transactions(self, turn: _Turn, result: IntentResult) -> Reply:
        start_date, end_date = self._date_range(result, default_period="all")
        transactions = self.ledger.list_for_user(
            turn.phone,
            start_date=start_date,
            end_date=end_date,
            transaction_type=self._type_filter(result.get("type")),
            category_id=self._category_filter(result.get("category")),
            limit=_to_int(result.get("limit", 20)) or 20,
        )
        self.context.put(
            turn.phone,
            ContextSlot.TRANSACTION_LIST,
            [{"transaction_id": txn.id} for txn in transactions],
        )
        return Reply(Intent.LIST_TRANSACTIONS.value, replies.transaction_list(transactions), data=transactions)

    def _query_summary(self, turn: _Turn, result: IntentResult) -> Reply:
        start_date, end_date = self._date_range(result, default_period="current_month")
        summary = self.ledger.summarize(
            turn.phone,
            start_date=start_date,
            end_date=end_date,
            transaction_type=self._type_filter(result.get("type")),
            category_id=self._category_filter(result.get("category")),
        )
        return Reply(Intent.QUERY_SUMMARY.value, replies.summary_text(summary), data=summary)

    # Category intents

    def _list_categories(self, turn: _Turn, result: IntentResult) -> Reply:
        categories = self.categories.list_categories(self._type_filter(result.get("type")))
        lines = ["Categorías:"]
        lines.extend(f"{cat.icon or ''} {cat.name} ({replies.TYPE_LABELS[cat.category_type]})".strip() for cat in categories)
        return Reply(Intent.LIST_CATEGORIES.value, "\n".join(lines), data=categories)

    def _create_category(self, turn: _Turn, result: IntentResult) -> Reply:
        category = self.categories.create_category(
            name=result.get("name", ""),
            category_type=result.get("type", "expense"),
            color=result.get("color"),
            icon=result.get("icon"),
        )
        return Reply(Intent.CREATE_CATEGORY.value, f"✅ Creé la categoría {category.name}.", data=category)

    def _delete_category(self, turn: _Turn, result: IntentResult) -> Reply:
        name = result.get("name", "")
        category = self.categories.find_by_name(name)
        if category is None:
            raise NotFoundError(category_name_not_found(name))
        outcome = self.categories.delete_category(category.id)
        return Reply(
            Intent.DELETE_CATEGORY.value,
            f"🗑️ Eliminé la categoría {outcome['deleted']}; moví {outcome['moved_count']} "
            f"movimientos a {outcome['moved_to_name']}.",
            data=outcome,
        )

    def _move_transactions(self, turn: _Turn, result: IntentResult) -> Reply:
        outcome = self.categories.move_transactions(
            result.get("from_category", ""), result.get("to_category", ""), phone=turn.phone
        )
        text = f"📦 Moví {outcome['moved_count']} movimientos de {outcome['from_name']} a {outcome['to_name']}."
        if outcome["created"]:
            text += f" (Creé la categoría {outcome['to_name']}.)"
        return Reply(Intent.MOVE_TRANSACTIONS.value, text, data=outcome)

    # Relationship intents

    def _register_partner(self, turn: _Turn, result: IntentResult) -> Reply:
        partner_phone = self.users.normalize(result.get("partner_phone", ""))
        user_split, partner_split = self._split_params(result)
        if user_split is None:
            user_split, partner_split = Decimal("50"), Decimal("50")
        relationship = self.relationships.create_relationship(
            turn.phone, partner_phone, user_split, partner_split
        )
        return Reply(
            Intent.REGISTER_PARTNER.value,
            f"💌 Envié la solicitud a {partner_phone} con división "
            f"{relationship.default_split_1.normalize():f}/{relationship.default_split_2.normalize():f}.",
            data=relationship,
        )

    def _requester_for(self, phone: str, result: IntentResult) -> str:
        requester = result.get("partner_phone")
        if requester is not None:
            return self.users.normalize(requester)
        pending = self.relationships.list_pending(phone)
        if not pending:
            raise NotFoundError("You have no pending relationship requests")
        return pending[0].user_phone_1

    def _accept_partner_request(self, turn: _Turn, result: IntentResult) -> Reply:
        requester = self._requester_for(turn.phone, result)
        relationship = self.relationships.accept(turn.phone, requester)
        return Reply(
            Intent.ACCEPT_PARTNER_REQUEST.value,
            f"💞 Ahora compartes gastos con {requester}.",
            data=relationship,
        )

    def _reject_partner_request(self, turn: _Turn, result: IntentResult) -> Reply:
        requester = self._requester_for(turn.phone, result)
        relationship = self.relationships.reject(turn.phone, requester)
        return Reply(
            Intent.REJECT_PARTNER_REQUEST.value,
            f"Rechacé la solicitud de {requester}.",
            data=relationship,
        )

    def _remove_partner(self, turn: _Turn, result: IntentResult) -> Reply:
        relationship = self.relationships.deactivate(turn.phone)
        return Reply(Intent.REMOVE_PARTNER.value, "Terminé la relación de gastos compartidos.", data=relationship)

    def _query_balance(self, turn: _Turn, result: IntentResult) -> Reply:
        report = self.balances.calculate_balance(
            turn.phone, period=result.get("period", "current_month"), today=self._today()
        )
        return Reply(Intent.QUERY_BALANCE.value, replies.balance_text(report), data=report)

    def _list_shared_expenses(self, turn: _Turn, result: IntentResult) -> Reply:
        self.relationships.require_active(turn.phone)
        expenses = self.shared.list_shared(turn.phone, result.get("period", "current_month"), today=self._today())
        return Reply(Intent.LIST_SHARED_EXPENSES.value, replies.shared_list(turn.phone, expenses), data=expenses)

    def _update_default_split(self, turn: _Turn, result: IntentResult) -> Reply:
        user_split, partner_split = self._split_params(result)
        if user_split is None:
            raise ValidationError("Tell me the new split, for example 60/40")
        relationship = self.relationships.update_default_split(turn.phone, user_split, partner_split)
        return Reply(
            Intent.UPDATE_DEFAULT_SPLIT.value,
            f"✅ Nueva división: tú {user_split.normalize():f}%, tu pareja {partner_split.normalize():f}%.",
            data=relationship,
        )

    # Receipt intents

    def _process_receipt(self, turn: _Turn, data: Optional[ReceiptData]) -> Reply:
        receipt = {
            "status": RECEIPT_PENDING_CONFIRMATION,
            "amount": None,
            "merchant": None,
            "category_name": None,
            "description": None,
            "date": None,
            "confidence": 0,
        }
        if data is not None:
            receipt.update(
                amount=data.amount if data.amount is not None and data.amount > 0 else None,
                merchant=data.merchant,
                category_name=data.category,
                description=data.description or data.merchant,
                date=data.date,
                confidence=data.confidence_score,
            )

        if receipt["amount"] is None:
            receipt["status"] = RECEIPT_PENDING_AMOUNT
            self.context.put(turn.phone, ContextSlot.PENDING_RECEIPT, receipt)
            return Reply("receipt", replies.ASK_RECEIPT_AMOUNT, data=receipt)

        if receipt["confidence"] < self.receipt_confidence_threshold:
            self.context.put(turn.phone, ContextSlot.PENDING_RECEIPT, receipt)
            return Reply("receipt", replies.receipt_prompt(receipt), data=receipt)

        return self._finalize_receipt(turn, "receipt", receipt)

    def _finalize_receipt(self, turn: _Turn, intent: str, receipt: dict) -> Reply:
        """Register a confirmed receipt, asking how to split it if there is a partner."""
        if self.relationships.get_active(turn.phone) is not None:
            receipt = {**receipt, "status": RECEIPT_PENDING_SPLIT}
            self.context.put(turn.phone, ContextSlot.PENDING_RECEIPT, receipt)
            return Reply(
                intent,
                f"Ticket por {replies.format_money(receipt['amount'])}. ¿Es un gasto individual o compartido?",
                data=receipt,
                buttons=list(RECEIPT_BUTTONS),
            )
        self.context.clear(turn.phone, ContextSlot.PENDING_RECEIPT)
        txn = self._receipt_transaction(turn.phone, receipt)
        return Reply(intent, replies.transaction_saved(txn), data=txn)

    def _receipt_category(self, receipt: dict) -> Category:
        return self._resolve_category(
            receipt.get("category_name"),
            receipt.get("description") or receipt.get("merchant"),
            "expense",
        )

    def _receipt_transaction(self, phone: str, receipt: dict) -> Transaction:
        category = self._receipt_category(receipt)
        txn = self.ledger.create_transaction(
            phone,
            category.id,
            "expense",
            receipt["amount"],
            receipt.get("description"),
            self._date(receipt.get("date")),
        )
        self._remember_last(phone, txn.id)
        return txn

    def _pending_receipt(self, phone: str) -> Optional[dict]:
        return self.context.get(phone, ContextSlot.PENDING_RECEIPT)

    def _confirm_receipt(self, turn: _Turn, result: IntentResult) -> Reply:
        intent = Intent.CONFIRM_RECEIPT.value
        receipt = self._pending_receipt(turn.phone)
        if receipt is None:
            return Reply(intent, replies.NO_PENDING_RECEIPT)
        if receipt["amount"] is None:
            return Reply(intent, replies.ASK_RECEIPT_AMOUNT)
        return self._finalize_receipt(turn, intent, receipt)

    def _correct_receipt(self, turn: _Turn, result: IntentResult) -> Reply:
        intent = Intent.CORRECT_RECEIPT.value
        receipt = self._pending_receipt(turn.phone)
        if receipt is None:
            return Reply(intent, replies.NO_PENDING_RECEIPT)

        field_name = FIELD_ALIASES.get(str(result.get("field", "")).strip().lower())
        value = result.get("value")
        if field_name is None or value is None:
            raise ValidationError("Tell me which receipt field to fix and its new value")

        receipt = dict(receipt)
        if field_name == "amount":
            receipt["amount"] = self._amount(value)
        elif field_name == "category":
            category = self.categories.find_by_name(str(value))
            if category is None:
                raise NotFoundError(category_name_not_found(str(value)))
            receipt["category_name"] = category.name
        elif field_name == "description":
            receipt["description"] = str(value)
        else:
            receipt["date"] = self._date(value)

        if receipt["amount"] is not None:
            receipt["status"] = RECEIPT_PENDING_CONFIRMATION
        self.context.put(turn.phone, ContextSlot.PENDING_RECEIPT, receipt)
        return Reply(intent, replies.receipt_prompt(receipt), data=receipt)

    def _provide_amount(self, turn: _Turn, result: IntentResult) -> Reply:
        intent = Intent.PROVIDE_AMOUNT.value
        receipt = self._pending_receipt(turn.phone)
        if receipt is None:
            return Reply(intent, replies.NO_PENDING_RECEIPT)
        receipt = {**receipt, "amount": self._amount(result.get("amount")), "status": RECEIPT_PENDING_CONFIRMATION}
        return self._finalize_receipt(turn, intent, receipt)

    def _receipt_choice(self, turn: _Turn, choice: str) -> Reply:
        intent = "receipt_choice"
        receipt = self.context.pop(turn.phone, ContextSlot.PENDING_RECEIPT)
        if receipt is None:
            return Reply(intent, replies.NO_PENDING_RECEIPT)
        if receipt["amount"] is None:
            self.context.put(turn.phone, ContextSlot.PENDING_RECEIPT, receipt)
            return Reply(intent, replies.ASK_RECEIPT_AMOUNT)

        if choice == "individual":
            txn = self._receipt_transaction(turn.phone, receipt)
            return Reply(intent, replies.transaction_saved(txn), data=txn)

        category = self._receipt_category(receipt)
        return self._save_shared(
            turn,
            intent,
            amount=receipt["amount"],
            category_id=category.id,
            txn_type="expense",
            description=receipt.get("description"),
            txn_date=self._date(receipt.get("date")),
            paid_by_user=choice == "user",
        )

    # Conversation intents

    def _general_conversation(self, turn: _Turn, result: IntentResult) -> Reply:
        kind = result.get("message_kind", "otro")
        return Reply(Intent.GENERAL_CONVERSATION.value, replies.GREETINGS.get(kind, replies.GREETINGS["otro"]))

    def _unknown(self, turn: _Turn, result: IntentResult) -> Reply:
        return Reply(Intent.UNKNOWN.value, replies.REPHRASE)

    # Buttons

    def _handle_button(self, turn: _Turn, button_id: str) -> Reply:
        if button_id == "confirm_pending":
            return self._dispatch(turn, IntentResult(Intent.CONFIRM_TRANSACTION))
        if button_id == "cancel_pending":
            return self._dispatch(turn, IntentResult(Intent.CANCEL_TRANSACTION))
        if button_id in RECEIPT_CHOICES:
            choice = RECEIPT_CHOICES[button_id]
            return self._guard("receipt_choice", lambda: self._receipt_choice(turn, choice))

        match = _TRANSACTION_BUTTON.match(button_id)
        if match is None:
            logger.warning("Unknown button id '{}' from {}", button_id, turn.phone)
            return Reply(Intent.UNKNOWN.value, replies.REPHRASE)
        action, transaction_id = match.group(1), int(match.group(2))
        return self._guard(f"{action}_transaction", lambda: self._transaction_button(turn, action, transaction_id))

    def _transaction_button(self, turn: _Turn, action: str, transaction_id: int) -> Reply:
        intent = f"{action}_transaction"
        phone = turn.phone

        if action == "cancel_delete":
            self.context.clear(phone, ContextSlot.DELETION_TRANSACTION)
            return Reply(intent, "Ok, no eliminé nada.")

        if action == "confirm_delete":
            pending = self.context.pop(phone, ContextSlot.DELETION_TRANSACTION)
            if pending is None or pending["transaction_id"] != transaction_id:
                if pending is not None:
                    self.context.put(phone, ContextSlot.DELETION_TRANSACTION, pending)
                return Reply(intent, "No hay ninguna eliminación pendiente para ese movimiento.")
            return self._delete_owned(turn, intent, transaction_id)

        txn = self.ledger.get_owned_transaction(transaction_id, phone)
        if action == "view":
            return Reply(
                intent,
                replies.transaction_detail(txn),
                data=txn,
                buttons=[
                    {"id": f"edit_{txn.id}", "title": "Editar"},
                    {"id": f"delete_{txn.id}", "title": "Eliminar"},
                ],
            )
        if action == "edit":
            if txn.is_shared:
                return Reply(intent, replies.SHARED_LEG_LOCKED)
            self.context.put(phone, ContextSlot.EDITING_TRANSACTION, {"transaction_id": txn.id})
            return Reply(intent, f"¿Cuál es el nuevo monto para el movimiento de {replies.format_money(txn.amount)}?", data=txn)

        self.context.put(phone, ContextSlot.DELETION_TRANSACTION, {"transaction_id": txn.id})
        return Reply(
            intent,
            f"¿Seguro que quieres eliminar el movimiento de {replies.format_money(txn.amount)} ({txn.category_name})?",
            data=txn,
            buttons=[
                {"id": f"confirm_delete_{txn.id}", "title": "Sí, eliminar"},
                {"id": f"cancel_delete_{txn.id}", "title": "Cancelar"},
            ],
        )
