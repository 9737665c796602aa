"""Utility functions for bubu."""

from bubu.utils.date_parser import parse_date, get_date_range
from bubu.utils.amount_parser import parse_amount, to_money
from bubu.utils.phone import normalize_phone

__all__ = ["parse_date", "get_date_range", "parse_amount", "to_money", "normalize_phone"]
