"""
Action Boundary

The outermost layer callers talk to. Every action:
1. Verifies the caller's token
2. Runs one use case as that user
3. Returns an ActionResponse - never raises

Failures become {data: None, error: <message>, validation_errors: {...}}.
There is no partial success: an action either returns data or an error.
"""

from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog
from pydantic import BaseModel

from personal_finance.audit import AuditLogger
from personal_finance.errors import AuthError, FinanceError, ValidationError
from personal_finance.models.user import AuthUser
from personal_finance.services.storage.interface import StorageError
from personal_finance.use_cases import (
    AuthUseCases,
    BudgetUseCases,
    IncomeUseCases,
    PotUseCases,
    TransactionUseCases,
)


logger = structlog.get_logger(__name__)

T = TypeVar("T")

UNEXPECTED_ERROR = "An unexpected error occurred"


class ActionResponse(BaseModel):
    data: Any = None
    error: Optional[str] = None
    validation_errors: Optional[dict[str, str]] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ActionRunner:
    """Authenticates, runs a handler, and shapes the response."""

    def __init__(
        self,
        auth: AuthUseCases,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._auth = auth
        self._audit = audit_logger or AuditLogger()

    async def run(
        self,
        token: Optional[str],
        handler: Callable[[AuthUser], Awaitable[T]],
        action: str = "action",
    ) -> ActionResponse:
        user: Optional[AuthUser] = None
        try:
            user = await self._auth.verify_id_token(token or "")
            return ActionResponse(data=await handler(user))
        except ValidationError as e:
            logger.info("action_rejected", action=action, errors=e.errors)
            return ActionResponse(error=str(e), validation_errors=e.errors)
        except AuthError as e:
            logger.info("action_unauthenticated", action=action, error=str(e))
            return ActionResponse(error=str(e))
        except (FinanceError, StorageError) as e:
            await self._audit.log_action_failed(
                action, str(e), user.uid if user else None
            )
            return ActionResponse(error=str(e))
        except Exception as e:
            logger.exception("action_crashed", action=action)
            await self._audit.log_action_failed(
                action, str(e), user.uid if user else None,
                details={"exception": type(e).__name__},
            )
            return ActionResponse(error=UNEXPECTED_ERROR)


class FinanceActions:
    """One action per use-case operation. Every method takes the caller's token first."""

    def __init__(
        self,
        runner: ActionRunner,
        budgets: BudgetUseCases,
        incomes: IncomeUseCases,
        pots: PotUseCases,
        transactions: TransactionUseCases,
    ):
        self._run = runner.run
        self._budgets = budgets
        self._incomes = incomes
        self._pots = pots
        self._transactions = transactions

    # Budgets

    async def create_budget(self, token: str, payload: Any) -> ActionResponse:
        return await self._run(
            token, lambda user: self._budgets.create(user.uid, payload), "create_budget"
        )

    async def get_budget(self, token: str, budget_id: str) -> ActionResponse:
        return await self._run(
            token, lambda user: self._budgets.get(user.uid, budget_id), "get_budget"
        )

    async def list_budgets(self, token: str) -> ActionResponse:
        return await self._run(
            token, lambda user: self._budgets.list_all(user.uid), "list_budgets"
        )

    async def get_budgets_page(self, token: str, params: Any = None) -> ActionResponse:
        return await self._run(
            token, lambda user: self._budgets.get_paginated(user.uid, params), "get_budgets_page"
        )

    async def get_budgets_page_with_transactions(
        self, token: str, params: Any = None
    ) -> ActionResponse:
        return await self._run(
            token,
            lambda user: self._budgets.get_paginated_with_transactions(user.uid, params),
            "get_budgets_page_with_transactions",
        )

    async def get_budgets_summary(self, token: str) -> ActionResponse:
        return await self._run(
            token, lambda user: self._budgets.get_summary(user.uid), "get_budgets_summary"
        )

    async def update_budget(self, token: str, budget_id: str, payload: Any) -> ActionResponse:
        return await self._run(
            token,
            lambda user: self._budgets.update(user.uid, budget_id, payload),
            "update_budget",
        )

    async def delete_budget(self, token: str, budget_id: str) -> ActionResponse:
        return await self._run(
            token, lambda user: self._budgets.delete(user.uid, budget_id), "delete_budget"
        )

    # Incomes

    async def create_income(self, token: str, payload: Any) -> ActionResponse:
        return await self._run(
            token, lambda user: self._incomes.create(user.uid, payload), "create_income"
        )

    async def get_income(self, token: str, income_id: str) -> ActionResponse:
        return await self._run(
            token, lambda user: self._incomes.get(user.uid, income_id), "get_income"
        )

    async def get_incomes_page(self, token: str, params: Any = None) -> ActionResponse:
        return await self._run(
            token, lambda user: self._incomes.get_paginated(user.uid, params), "get_incomes_page"
        )

    async def get_incomes_page_with_transactions(
        self, token: str, params: Any = None
    ) -> ActionResponse:
        return await self._run(
            token,
            lambda user: self._incomes.get_paginated_with_transactions(user.uid, params),
            "get_incomes_page_with_transactions",
        )

    async def get_incomes_summary(self, token: str) -> ActionResponse:
        return await self._run(
            token, lambda user: self._incomes.get_summary(user.uid), "get_incomes_summary"
        )

    async def update_income(self, token: str, income_id: str, payload: Any) -> ActionResponse:
        return await self._run(
            token,
            lambda user: self._incomes.update(user.uid, income_id, payload),
            "update_income",
        )

    async def delete_income(self, token: str, income_id: str) -> ActionResponse:
        return await self._run(
            token, lambda user: self._incomes.delete(user.uid, income_id), "delete_income"
        )

    # Pots

    async def create_pot(self, token: str, payload: Any) -> ActionResponse:
        return await self._run(
            token, lambda user: self._pots.create(user.uid, payload), "create_pot"
        )

    async def get_pot(self, token: str, pot_id: str) -> ActionResponse:
        return await self._run(
            token, lambda user: self._pots.get(user.uid, pot_id), "get_pot"
        )

    async def list_pots(self, token: str) -> ActionResponse:
        return await self._run(
            token, lambda user: self._pots.list_all(user.uid), "list_pots"
        )

    async def get_pots_page(self, token: str, params: Any = None) -> ActionResponse:
        return await self._run(
            token, lambda user: self._pots.get_paginated(user.uid, params), "get_pots_page"
        )

    async def update_pot(self, token: str, pot_id: str, payload: Any) -> ActionResponse:
        return await self._run(
            token, lambda user: self._pots.update(user.uid, pot_id, payload), "update_pot"
        )

    async def delete_pot(self, token: str, pot_id: str) -> ActionResponse:
        return await self._run(
            token, lambda user: self._pots.delete(user.uid, pot_id), "delete_pot"
        )

    async def add_money_to_pot(self, token: str, pot_id: str, payload: Any) -> ActionResponse:
        return await self._run(
            token,
            lambda user: self._pots.add_money(user.uid, pot_id, payload),
            "add_money_to_pot",
        )

    async def withdraw_money_from_pot(
        self, token: str, pot_id: str, payload: Any
    ) -> ActionResponse:
        return await self._run(
            token,
            lambda user: self._pots.withdraw_money(user.uid, pot_id, payload),
            "withdraw_money_from_pot",
        )

    # Transactions

    async def create_transaction(self, token: str, payload: Any) -> ActionResponse:
        return await self._run(
            token,
            lambda user: self._transactions.create(user.uid, payload),
            "create_transaction",
        )

    async def get_transaction(self, token: str, transaction_id: str) -> ActionResponse:
        return await self._run(
            token,
            lambda user: self._transactions.get(user.uid, transaction_id),
            "get_transaction",
        )

    async def get_transactions_page(self, token: str, params: Any = None) -> ActionResponse:
        return await self._run(
            token,
            lambda user: self._transactions.get_paginated(user.uid, params),
            "get_transactions_page",
        )

    async def update_transaction(
        self, token: str, transaction_id: str, payload: Any
    ) -> ActionResponse:
        return await self._run(
            token,
            lambda user: self._transactions.update(user.uid, transaction_id, payload),
            "update_transaction",
        )

    async def delete_transaction(self, token: str, transaction_id: str) -> ActionResponse:
        return await self._run(
            token,
            lambda user: self._transactions.delete(user.uid, transaction_id),
            "delete_transaction",
        )

    async def backfill_signed_amounts(self, token: str) -> ActionResponse:
        return await self._run(
            token,
            lambda user: self._transactions.backfill_signed_amounts(user.uid),
            "backfill_signed_amounts",
        )
