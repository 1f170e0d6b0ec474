"""Utility functions for ledgerkit."""

from ledgerkit.utils.date_parser import parse_date, coerce_store_date, format_display_date
from ledgerkit.utils.amount_parser import parse_amount, coerce_amount

__all__ = ["parse_date", "coerce_store_date", "format_display_date", "parse_amount", "coerce_amount"]
