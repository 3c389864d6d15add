"""Income persistence."""

from personal_finance.models.income import INCOME_QUERY_SPEC, IncomeDto
from personal_finance.repositories.base import BaseRepository


class IncomeRepository(BaseRepository[IncomeDto]):
    spec = INCOME_QUERY_SPEC
