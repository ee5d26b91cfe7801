"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re


def _normalize_separators(amount_str: str) -> str:
    """Rewrite German or English digit grouping to a plain decimal string."""
    if "," in amount_str and "." in amount_str:
        # The separator that comes last is the decimal separator.
        if amount_str.rfind(",") > amount_str.rfind("."):
            return amount_str.replace(".", "").replace(",", ".")
        return amount_str.replace(",", "")
    if "," in amount_str:
        if amount_str.count(",") > 1:
            return amount_str.replace(",", "")
        return amount_str.replace(",", ".")
    if amount_str.count(".") > 1:
        return amount_str.replace(".", "")
    return amount_str


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45" and "123,45"
    - "1.234,56 €" (German grouping)
    - "1,234.56"
    - "-123.45", "-€123.45"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols and codes
    amount_str = re.sub(r"[$€£¥]|EUR", "", amount_str)
    amount_str = amount_str.replace(" ", "").replace("\u00a0", "")
    amount_str = _normalize_separators(amount_str)

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}'") from e
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount
