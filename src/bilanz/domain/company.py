"""Company domain service."""

import logging
from typing import Optional

from bilanz.database.base import Database
from bilanz.domain.entities import Company
from bilanz.domain.errors import ConflictError, NotFoundError, ValidationError, company_not_found

logger = logging.getLogger(__name__)


class CompanyService:
    """Service for managing companies."""

    def __init__(self, db: Database):
        """Initialize company service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_company(self, name: str) -> int:
        """Create a new company.

        Args:
            name: Company name, e.g. "Muster GmbH"

        Returns:
            Company ID

        Raises:
            ValidationError: If the name is empty
            ConflictError: If a company with the same name exists
        """
        name = name.strip()
        if not name:
            raise ValidationError("Company name must not be empty")
        if self.db.get_company_by_name(name) is not None:
            raise ConflictError(f"Company with name '{name}' already exists")
        company_id = self.db.create_company(name)
        logger.info("company_created", extra={"company_id": company_id})
        return company_id

    def get_company(self, company_id: int) -> Optional[Company]:
        return self.db.get_company(company_id)

    def require_company(self, company_id: int) -> Company:
        """Get a company or raise NotFoundError."""
        company = self.db.get_company(company_id)
        if company is None:
            raise NotFoundError(company_not_found(company_id))
        return company

    def list_companies(self) -> list[Company]:
        return self.db.list_companies()

    def delete_company(self, company_id: int) -> None:
        """Delete a company with all accounts, fiscal years, entries and reports.

        Raises:
            NotFoundError: If the company does not exist
        """
        self.require_company(company_id)
        self.db.delete_company(company_id)
        logger.info("company_deleted", extra={"company_id": company_id})
