"""Amount parsing utilities."""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
import re

CENTS = Decimal("0.01")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "350"
    - "$350.50"
    - "1,234.56"
    - "$ 1,200 mxn"

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if amount_str is None or not str(amount_str).strip():
        raise ValueError("Empty amount string")

    amount_str = str(amount_str).strip().lower()

    # Remove currency symbols and codes
    amount_str = re.sub(r"[$€£¥]|\bmxn\b|\bpesos?\b", "", amount_str)

    # Remove thousands separators
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}'") from e
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return amount


def to_money(value) -> Decimal:
    """Round a number to cents using half-up rounding."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_percentage(value) -> Decimal:
    """Convert a percentage to a two-decimal Decimal."""
    return to_money(value)
