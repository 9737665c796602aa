"""Phone number normalization."""

import re

_STRIP_CHARS = re.compile(r"[\s\-()+.]")


def normalize_phone(phone: str) -> str:
    """Normalize a Mexican phone number to its 10-digit national form.

    Spaces, dashes, dots, parentheses and a leading "+" are removed, then the
    WhatsApp mobile prefix "521", the country code "52" or a leading "1" is
    stripped when the remainder is exactly 10 digits.

    Args:
        phone: Raw phone number

    Returns:
        10-digit phone number

    Raises:
        ValueError: If the number does not reduce to 10 digits
    """
    if phone is None:
        raise ValueError("Phone number is required")

    digits = _STRIP_CHARS.sub("", str(phone))
    if not digits.isdigit():
        raise ValueError(f"Invalid phone number '{phone}'")

    for prefix in ("521", "52", "1"):
        if digits.startswith(prefix) and len(digits) == len(prefix) + 10:
            digits = digits[len(prefix):]
            break

    if len(digits) != 10:
        raise ValueError(f"Invalid phone number '{phone}': expected 10 digits")
    return digits
