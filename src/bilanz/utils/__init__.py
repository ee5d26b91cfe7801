"""Utility functions for bilanz."""

from bilanz.utils.date_parser import parse_date
from bilanz.utils.amount_parser import parse_amount
from bilanz.utils.company_resolver import resolve_company

__all__ = ["parse_date", "parse_amount", "resolve_company"]
