"""
Composition Root for Personal Finance

This module builds every component once and wires them together:

    settings -> document store, auth provider
             -> audit logger, validator, query executor
             -> repositories -> use cases -> actions

DESIGN DECISION: Nothing below this module reaches for a global store
or auth client. Every collaborator is passed in, which is what lets the
test-suite run the whole stack on an in-memory store.
"""

from typing import Optional

import structlog

from personal_finance.actions import ActionRunner, FinanceActions
from personal_finance.audit import AuditLogger, configure_logging
from personal_finance.config import get_settings
from personal_finance.queries import PaginatedQueryExecutor
from personal_finance.repositories import (
    BudgetRepository,
    IncomeRepository,
    PotRepository,
    TransactionRepository,
)
from personal_finance.services.auth import AuthProvider, JWTAuthProvider
from personal_finance.services.realtime import RealtimeListenerService
from personal_finance.services.storage import (
    DocumentStore,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
)
from personal_finance.use_cases import (
    AuthUseCases,
    BudgetUseCases,
    IncomeUseCases,
    PotUseCases,
    RealtimeUseCases,
    TransactionUseCases,
)
from personal_finance.validation import EntityValidator


logger = structlog.get_logger(__name__)


class AppComponents:
    """Everything create_app_components() builds, by name."""

    def __init__(
        self,
        store: DocumentStore,
        auth_provider: AuthProvider,
        audit_logger: AuditLogger,
        validator: EntityValidator,
        budget_repository: BudgetRepository,
        income_repository: IncomeRepository,
        pot_repository: PotRepository,
        transaction_repository: TransactionRepository,
        auth: AuthUseCases,
        budgets: BudgetUseCases,
        incomes: IncomeUseCases,
        pots: PotUseCases,
        transactions: TransactionUseCases,
        realtime: RealtimeUseCases,
        actions: FinanceActions,
    ):
        self.store = store
        self.auth_provider = auth_provider
        self.audit_logger = audit_logger
        self.validator = validator
        self.budget_repository = budget_repository
        self.income_repository = income_repository
        self.pot_repository = pot_repository
        self.transaction_repository = transaction_repository
        self.auth = auth
        self.budgets = budgets
        self.incomes = incomes
        self.pots = pots
        self.transactions = transactions
        self.realtime = realtime
        self.actions = actions

    def close(self) -> None:
        """Stop every live listener."""
        self.realtime.close_all()


def create_store() -> DocumentStore:
    """Build the document store selected by STORAGE_BACKEND."""
    settings = get_settings()
    backend = settings.storage.backend

    if backend == "google_sheets":
        sheets = settings.google_sheets
        return GoogleSheetsDocumentStore(
            GoogleSheetsClient(sheets),
            poll_interval_seconds=sheets.poll_interval_seconds,
        )
    return InMemoryDocumentStore()


def create_app_components(
    store: Optional[DocumentStore] = None,
    auth_provider: Optional[AuthProvider] = None,
    audit_logger: Optional[AuditLogger] = None,
    persist_audit: bool = False,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        store: Document store to use. Built from settings if None.
        auth_provider: Token verifier. JWTAuthProvider from settings if None.
        audit_logger: Audit logger. A new one is built if None.
        persist_audit: When building the audit logger, also write
                       audit events to the store.

    Returns:
        AppComponents with every layer wired together
    """
    app_settings = get_settings().app
    configure_logging("DEBUG" if app_settings.debug_mode else app_settings.log_level)

    store = store or create_store()
    auth_provider = auth_provider or JWTAuthProvider()
    audit_logger = audit_logger or AuditLogger(store if persist_audit else None)

    validator = EntityValidator(app_settings.future_date_tolerance_days)
    executor = PaginatedQueryExecutor(store, app_settings.max_limit_per_page)

    budget_repository = BudgetRepository(store, executor)
    income_repository = IncomeRepository(store, executor)
    pot_repository = PotRepository(store, executor)
    transaction_repository = TransactionRepository(store, executor)

    auth = AuthUseCases(auth_provider)
    budgets = BudgetUseCases(
        budget_repository,
        transaction_repository,
        validator,
        audit_logger,
        latest_transactions=app_settings.latest_transactions_count,
        summary_size=app_settings.summary_size,
    )
    incomes = IncomeUseCases(
        income_repository,
        transaction_repository,
        validator,
        audit_logger,
        latest_transactions=app_settings.latest_transactions_count,
        summary_size=app_settings.summary_size,
    )
    pots = PotUseCases(pot_repository, validator, audit_logger)
    transactions = TransactionUseCases(
        transaction_repository,
        budget_repository,
        income_repository,
        validator,
        audit_logger,
    )
    realtime = RealtimeUseCases(
        RealtimeListenerService(store),
        app_settings.max_limit_per_page,
    )

    actions = FinanceActions(
        ActionRunner(auth, audit_logger),
        budgets,
        incomes,
        pots,
        transactions,
    )

    logger.info(
        "app_components_created",
        environment=app_settings.app_environment,
        store=type(store).__name__,
    )

    return AppComponents(
        store=store,
        auth_provider=auth_provider,
        audit_logger=audit_logger,
        validator=validator,
        budget_repository=budget_repository,
        income_repository=income_repository,
        pot_repository=pot_repository,
        transaction_repository=transaction_repository,
        auth=auth,
        budgets=budgets,
        incomes=incomes,
        pots=pots,
        transactions=transactions,
        realtime=realtime,
        actions=actions,
    )
