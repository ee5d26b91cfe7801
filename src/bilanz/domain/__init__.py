"""Domain layer for bilanz application."""

# Services import the database layer, which imports domain.entities; load
# them lazily so importing bilanz.database first does not cycle.
_EXPORTS = {
    "AccountService": "bilanz.domain.account",
    "BalanceAggregator": "bilanz.domain.aggregation",
    "BalanceSheetBuilder": "bilanz.domain.balance_sheet",
    "BankService": "bilanz.domain.bank",
    "Bookkeeping": "bilanz.domain.bookkeeping",
    "CompanyService": "bilanz.domain.company",
    "FiscalYearService": "bilanz.domain.fiscal_year",
    "GuVBuilder": "bilanz.domain.guv",
    "KstService": "bilanz.domain.tax",
    "LedgerService": "bilanz.domain.ledger",
    "TaxReportService": "bilanz.domain.tax",
    "UstvaService": "bilanz.domain.tax",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name):
    if name in _EXPORTS:
        from importlib import import_module

        return getattr(import_module(_EXPORTS[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
