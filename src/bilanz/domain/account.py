"""Account domain service."""

import logging
from decimal import Decimal
from typing import Optional

from bilanz.chart.loader import Chart
from bilanz.database.base import Database
from bilanz.domain.entities import Account, AccountType
from bilanz.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    account_code_not_found,
    account_delete_blocked,
    account_not_found,
    company_not_found,
)

logger = logging.getLogger(__name__)


class AccountService:
    """Service for managing ledger accounts."""

    def __init__(self, db: Database, chart: Chart):
        """Initialize account service.

        Args:
            db: Database instance
            chart: Chart table used for type inference and templates
        """
        self.db = db
        self.chart = chart

    def create_account(
        self,
        company_id: int,
        code: str,
        name: Optional[str] = None,
        account_type: Optional[AccountType] = None,
        tax_rate: Optional[Decimal] = None,
        presentation_rule: Optional[str] = None,
    ) -> int:
        """Create a new account.

        Args:
            company_id: Owning company
            code: Account code, unique within the company
            name: Account name (defaults to the chart template name)
            account_type: Account type (inferred from the chart when omitted)
            tax_rate: Optional VAT rate in percent
            presentation_rule: Optional presentation rule override

        Returns:
            Account ID

        Raises:
            NotFoundError: If the company does not exist
            ConflictError: If the code already exists for the company
            ValidationError: If type or name cannot be determined, or the rule is unknown
        """
        code = code.strip()
        if not code:
            raise ValidationError("Account code must not be empty")
        if self.db.get_company(company_id) is None:
            raise NotFoundError(company_not_found(company_id))
        if self.db.get_account_by_code(company_id, code) is not None:
            raise ConflictError(f"Account '{code}' already exists")

        template = self.chart.account_template(code)
        if account_type is None:
            if template is None:
                raise ValidationError(
                    f"Cannot infer the account type of '{code}'; pass it explicitly"
                )
            account_type = template[1]
        if not name:
            name = template[0] if template else f"Konto {code}"
        if presentation_rule is not None:
            self._validate_rule(presentation_rule)

        account_id = self.db.create_account(
            company_id=company_id,
            code=code,
            name=name,
            account_type=account_type,
            tax_rate=tax_rate,
            presentation_rule=presentation_rule,
        )
        logger.info(
            "account_created",
            extra={"company_id": company_id, "code": code, "account_type": account_type.value},
        )
        return account_id

    def _validate_rule(self, rule: str) -> None:
        if not self.chart.rules.has_rule(rule):
            known = ", ".join(sorted(self.chart.rules.rules))
            raise ValidationError(f"Unknown presentation rule '{rule}'. Known rules: {known}")

    def get_account(self, account_id: int) -> Optional[Account]:
        return self.db.get_account(account_id)

    def get_account_by_code(self, company_id: int, code: str) -> Optional[Account]:
        return self.db.get_account_by_code(company_id, code)

    def list_accounts(self, company_id: int) -> list[Account]:
        return self.db.list_accounts(company_id)

    def find_or_create_account_by_code(self, company_id: int, code: str) -> Account:
        """Return the company's account for a code, creating it from the chart.

        Raises:
            NotFoundError: If the account does not exist and the chart has no template
        """
        account = self.db.get_account_by_code(company_id, code)
        if account is not None:
            return account
        template = self.chart.account_template(code)
        if template is None:
            raise NotFoundError(account_code_not_found(code))
        name, account_type = template
        account_id = self.db.create_account(
            company_id=company_id, code=code, name=name, account_type=account_type
        )
        logger.debug("account_created_from_template", extra={"company_id": company_id, "code": code})
        return self.db.get_account(account_id)

    def set_presentation_rule(self, account_id: int, rule: Optional[str]) -> None:
        """Set or clear (None) the presentation rule override of an account.

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the rule is unknown
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        if rule is not None:
            self._validate_rule(rule)
        self.db.update_account_presentation_rule(account_id, rule)

    def delete_account(self, account_id: int) -> None:
        """Delete an account that no line item references.

        Raises:
            NotFoundError: If the account does not exist
            DependencyError: If line items reference the account
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        line_item_count = self.db.get_account_line_item_count(account_id)
        if line_item_count > 0:
            raise DependencyError(account_delete_blocked(account_id, line_item_count))
        self.db.delete_account(account_id)
