"""Output formatting helpers shared by the CLI commands."""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any


def format_amount(amount) -> str:
    """Format an amount the German way: 1.234,56."""
    text = f"{Decimal(amount):,.2f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def _json_default(value: Any):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(data: Any) -> str:
    return json.dumps(data, default=_json_default, ensure_ascii=False, indent=2)
