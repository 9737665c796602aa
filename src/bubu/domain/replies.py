"""Spanish reply templates for the chat orchestrator."""

from decimal import Decimal
from typing import Optional

from bubu.domain.entities import BalanceReport, LedgerSummary, SharedTransaction, Transaction

TYPE_LABELS = {"expense": "gasto", "income": "ingreso"}

GREETINGS = {
    "saludo": "¡Hola! Soy BUBU 🐻 Cuéntame tus gastos o ingresos y yo los registro.",
    "despedida": "¡Hasta luego! Aquí estaré cuando quieras registrar algo.",
    "agradecimiento": "¡Con gusto! 😊",
    "otro": "Puedo registrar gastos e ingresos, mostrarte tus movimientos y llevar los gastos compartidos con tu pareja.",
}

REPHRASE = "No pude entender tu mensaje. ¿Podrías reformularlo?"
GENERIC_ERROR = "Ocurrió un problema procesando tu mensaje. Intenta de nuevo en un momento."
NOTHING_PENDING = "No tengo ninguna transacción pendiente de confirmar."
PENDING_CANCELLED = "Listo, cancelé la transacción pendiente."
NO_RECENT_TRANSACTION = "No encontré una transacción reciente para corregir (solo puedo corregir las de los últimos 10 minutos)."
LIST_EXPIRED = "Ese número no está en la última lista que te mostré. Pídeme la lista de nuevo."
NO_PARTNER = "Aún no tienes una pareja registrada. Escribe por ejemplo \"mi pareja es 5512345678\" para enviarle una solicitud."
NO_PENDING_RECEIPT = "No tengo ningún ticket pendiente."
ASK_RECEIPT_AMOUNT = "No pude leer el monto del ticket. ¿Cuánto fue el total?"
SHARED_LEG_LOCKED = "Ese movimiento es parte de un gasto compartido; solo puedo eliminar el gasto compartido completo."


def format_money(amount: Optional[Decimal]) -> str:
    """Format an amount as $1,234.50."""
    if amount is None:
        return "$0.00"
    return f"${amount:,.2f}"


def transaction_line(number: int, txn: Transaction) -> str:
    sign = "+" if txn.transaction_type == "income" else "-"
    shared = " 👥" if txn.is_shared else ""
    description = txn.description or txn.category_name or ""
    return (
        f"{number}. {txn.transaction_date:%d/%m} {sign}{format_money(txn.amount)} "
        f"{description} ({txn.category_name}){shared}"
    )


def transaction_list(transactions: list[Transaction]) -> str:
    if not transactions:
        return "No encontré movimientos con esos filtros."
    lines = ["Tus movimientos:"]
    lines.extend(transaction_line(i, txn) for i, txn in enumerate(transactions, start=1))
    lines.append("Puedes decir \"elimina el 2\" o \"cambia el 1 a 500\".")
    return "\n".join(lines)


def transaction_saved(txn: Transaction) -> str:
    label = TYPE_LABELS.get(txn.transaction_type, txn.transaction_type)
    return (
        f"✅ Registré tu {label} de {format_money(txn.amount)} en {txn.category_name}"
        f" ({txn.transaction_date:%d/%m/%Y})."
    )


def transaction_detail(txn: Transaction) -> str:
    label = TYPE_LABELS.get(txn.transaction_type, txn.transaction_type)
    lines = [
        f"#{txn.id} {label} de {format_money(txn.amount)}",
        f"Categoría: {txn.category_name}",
        f"Fecha: {txn.transaction_date:%d/%m/%Y}",
    ]
    if txn.description:
        lines.append(f"Descripción: {txn.description}")
    if txn.is_shared:
        lines.append("Gasto compartido 👥")
    return "\n".join(lines)


def pending_prompt(pending: dict) -> str:
    label = TYPE_LABELS.get(pending["type"], pending["type"])
    text = (
        f"¿Registro este {label} de {format_money(pending['amount'])} en "
        f"{pending['category_name']}"
    )
    if pending.get("description"):
        text += f" ({pending['description']})"
    if pending.get("shared"):
        payer = "tú pagaste" if pending.get("paid_by_user", True) else "pagó tu pareja"
        text += f", compartido {pending['user_split']}/{pending['partner_split']}, {payer}"
    return text + "? Responde sí o no."


def summary_text(summary: LedgerSummary) -> str:
    lines = [
        f"Ingresos: {format_money(summary.income_total)} ({summary.income_count})",
        f"Gastos: {format_money(summary.expense_total)} ({summary.expense_count})",
        f"Balance: {format_money(summary.balance)}",
    ]
    for row in summary.by_category:
        lines.append(f"• {row.category_name}: {format_money(row.total)} ({row.count})")
    return "\n".join(lines)


def balance_text(report: BalanceReport) -> str:
    lines = [
        f"Gastos compartidos: {format_money(report.total_shared_expenses)} ({report.expense_count})",
        f"Tú pagaste {format_money(report.user.paid_total)}, te corresponde {format_money(report.user.owes_total)}.",
        f"Tu pareja pagó {format_money(report.partner.paid_total)}, le corresponde {format_money(report.partner.owes_total)}.",
    ]
    if report.who_owes_whom == "partner_owes_user":
        lines.append(f"Tu pareja te debe {format_money(report.amount_owed)}.")
    elif report.who_owes_whom == "user_owes_partner":
        lines.append(f"Le debes {format_money(report.amount_owed)} a tu pareja.")
    else:
        lines.append("Están a mano. 🤝")
    return "\n".join(lines)


def shared_list(phone: str, expenses: list[SharedTransaction]) -> str:
    if not expenses:
        return "No hay gastos compartidos en ese periodo."
    lines = ["Gastos compartidos:"]
    for i, expense in enumerate(expenses, start=1):
        payer = "tú" if expense.payer_phone == phone else "tu pareja"
        lines.append(
            f"{i}. {expense.transaction_date:%d/%m} {format_money(expense.total_amount)} "
            f"{expense.description or ''} (pagó {payer}, "
            f"{expense.split_percentage_1.normalize():f}/{expense.split_percentage_2.normalize():f})"
        )
    return "\n".join(lines)


def shared_saved(phone: str, shared: SharedTransaction, own_amount: Decimal) -> str:
    payer = "Tú pagaste" if shared.payer_phone == phone else "Tu pareja pagó"
    return (
        f"✅ Gasto compartido de {format_money(shared.total_amount)} registrado. "
        f"{payer}; tu parte es {format_money(own_amount)} ({shared.percentage_for(phone).normalize():f}%)."
    )


def receipt_prompt(receipt: dict) -> str:
    text = f"Leí un ticket por {format_money(receipt.get('amount'))}"
    if receipt.get("merchant"):
        text += f" de {receipt['merchant']}"
    if receipt.get("category_name"):
        text += f" ({receipt['category_name']})"
    return text + ". ¿Es correcto? Puedes confirmarlo o decirme qué corregir."
