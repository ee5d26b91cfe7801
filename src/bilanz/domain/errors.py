"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class ImmutableEntryError(DomainError):
    """Attempted mutation of a posted journal entry or snapshot."""


class FiscalYearClosedError(DomainError):
    """Attempted mutation inside a closed fiscal year."""


class FiscalYearStateError(DomainError):
    """Illegal fiscal year state transition."""


class UnbalancedReportError(DomainError):
    """A workflow required a balanced balance sheet and got none."""


class ConfigurationError(Exception):
    """The static chart table is inconsistent.

    Not a DomainError: a broken table is a deployment bug and must surface
    loudly instead of being folded into a result.
    """


class UnknownCategory(ConfigurationError):
    """Unknown category or report section id."""


class InvalidSectionReference(ConfigurationError):
    """A rule references a node missing from the balance sheet tree."""


class UnknownPresentationRule(ConfigurationError):
    """A category or account names a presentation rule that does not exist."""


def company_not_found(company_id: int) -> str:
    """Return message for missing company."""
    return f"Company {company_id} not found"


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def account_code_not_found(code: str) -> str:
    """Return message for an account code without account or template."""
    return f"Account '{code}' not found and no template exists for it"


def fiscal_year_not_found(fiscal_year_id: int) -> str:
    """Return message for missing fiscal year."""
    return f"Fiscal year {fiscal_year_id} not found"


def journal_entry_not_found(entry_id: int) -> str:
    """Return message for missing journal entry."""
    return f"Journal entry {entry_id} not found"


def no_fiscal_year_for_date(booking_date) -> str:
    """Return message when no fiscal year covers a booking date."""
    return f"No fiscal year covers booking date {booking_date}"


def fiscal_year_closed(year: int) -> str:
    """Return message for a mutation in a closed fiscal year."""
    return f"Fiscal year {year} is closed"


def posted_entry_immutable(entry_id: int) -> str:
    """Return message for a mutation of a posted journal entry."""
    return f"Journal entry {entry_id} is posted and cannot be changed (GoBD)"


def account_delete_blocked(account_id: int, line_item_count: int) -> str:
    """Return message when an account is still referenced by line items."""
    return (
        f"Cannot delete account {account_id}: it is used by "
        f"{line_item_count} line item{'s' if line_item_count != 1 else ''}."
    )
