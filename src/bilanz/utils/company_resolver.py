"""Utility for resolving company names to IDs."""

from bilanz.domain.company import CompanyService
from bilanz.domain.errors import NotFoundError


def resolve_company(company_service: CompanyService, company: str | int) -> int:
    """Resolve company name or ID to company ID.

    Args:
        company_service: CompanyService instance
        company: Company name (str) or ID (int or string representation of int)

    Returns:
        Company ID

    Raises:
        NotFoundError: If company is not found
    """
    if isinstance(company, int):
        return company_service.require_company(company).id

    # Try to parse as integer (handles string IDs like "1")
    try:
        company_id = int(company)
    except (ValueError, TypeError):
        company_id = None
    if company_id is not None:
        return company_service.require_company(company_id).id

    for candidate in company_service.list_companies():
        if candidate.name == company:
            return candidate.id

    raise NotFoundError(f"Company '{company}' not found")
