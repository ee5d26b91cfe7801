"""Tax form field tables for UStVA and Körperschaftsteuer."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional

from bilanz.domain.errors import ValidationError


@dataclass(frozen=True)
class UstvaField:
    """One Kennzahl of the UStVA form."""

    key: str
    field_number: int
    name: str
    description: str
    section: str
    vat_account: Optional[str] = None


@dataclass(frozen=True)
class KstAdjustment:
    """An off-balance correction applied to the GuV result."""

    key: str
    name: str
    description: str
    sign: int


USTVA_SECTIONS = {
    "output_vat": "Umsatzsteuer",
    "input_vat": "Abziehbare Vorsteuer",
    "reverse_charge": "Reverse Charge (§ 13b UStG)",
    "summary": "Zusammenfassung",
}

# vat_account names a key of the chart's VAT_ACCOUNTS table.
USTVA_FIELDS = (
    UstvaField(
        "kz_81", 81, "Umsatzsteuer 19%",
        "Umsatzsteuer aus Lieferungen und Leistungen zum Steuersatz von 19%",
        "output_vat", "output_19",
    ),
    UstvaField(
        "kz_86", 86, "Umsatzsteuer 7%",
        "Umsatzsteuer aus Lieferungen und Leistungen zum Steuersatz von 7%",
        "output_vat", "output_7",
    ),
    UstvaField(
        "kz_66", 66, "Vorsteuer 19%",
        "Abziehbare Vorsteuer aus Rechnungen anderer Unternehmer (19%)",
        "input_vat", "input_19",
    ),
    UstvaField(
        "kz_61", 61, "Vorsteuer 7%",
        "Abziehbare Vorsteuer aus Rechnungen anderer Unternehmer (7%)",
        "input_vat", "input_7",
    ),
    UstvaField(
        "kz_46", 46, "Reverse Charge (Ausgangsumsatz)",
        "Steuerschuldner ist der Leistungsempfänger (§ 13b UStG)",
        "reverse_charge", "rc_output",
    ),
    UstvaField(
        "kz_47", 47, "Reverse Charge (Vorsteuer)",
        "Abziehbare Vorsteuer bei Reverse Charge (§ 13b UStG)",
        "reverse_charge", "rc_input",
    ),
    UstvaField(
        "kz_83", 83, "Verbleibende Umsatzsteuer",
        "Umsatzsteuer-Vorauszahlung (Zahllast) bzw. Überschuss (Erstattung)",
        "summary",
    ),
)

KST_RATE = Decimal("0.15")

KST_ADJUSTMENTS = (
    KstAdjustment(
        "non_deductible_expenses", "Nicht abzugsfähige Aufwendungen",
        "Betriebsausgaben, die steuerlich nicht abziehbar sind", 1,
    ),
    KstAdjustment(
        "tax_free_income", "Steuerfreie Erträge",
        "Betriebliche Erträge, die steuerfrei sind", -1,
    ),
    KstAdjustment(
        "loss_carryforward", "Verlustvortrag aus Vorjahren",
        "Verrechnung von Verlusten aus früheren Jahren", -1,
    ),
    KstAdjustment(
        "donations", "Spenden und Mitgliedsbeiträge",
        "Abzugsfähige Spenden und Mitgliedsbeiträge", -1,
    ),
    KstAdjustment(
        "special_deductions", "Sonstige Sonderabzüge",
        "Weitere steuerliche Abzüge", -1,
    ),
)


def ustva_fields_by_section() -> dict[str, list[UstvaField]]:
    grouped: dict[str, list[UstvaField]] = {key: [] for key in USTVA_SECTIONS}
    for field in USTVA_FIELDS:
        grouped[field.section].append(field)
    return grouped


def validate_adjustments(adjustments: Optional[Mapping[str, object]]) -> dict[str, Decimal]:
    """Check adjustment keys and coerce values to Decimal.

    Raises:
        ValidationError: For unknown keys or non-numeric values
    """
    known = {adjustment.key for adjustment in KST_ADJUSTMENTS}
    values = {}
    for key, value in (adjustments or {}).items():
        if key not in known:
            raise ValidationError(f"Unknown KSt adjustment '{key}'")
        try:
            values[key] = Decimal(str(value))
        except ArithmeticError as exc:
            raise ValidationError(f"Invalid amount for '{key}': {value}") from exc
    return values
