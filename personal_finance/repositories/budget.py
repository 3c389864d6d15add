"""Budget persistence."""

from personal_finance.models.budget import BUDGET_QUERY_SPEC, BudgetDto
from personal_finance.repositories.base import BaseRepository


class BudgetRepository(BaseRepository[BudgetDto]):
    spec = BUDGET_QUERY_SPEC
