"""Use cases package."""

from personal_finance.use_cases.auth import AuthUseCases
from personal_finance.use_cases.budget import BudgetUseCases
from personal_finance.use_cases.income import IncomeUseCases
from personal_finance.use_cases.pot import PotUseCases
from personal_finance.use_cases.realtime import RealtimeUseCases
from personal_finance.use_cases.transaction import TransactionUseCases

__all__ = [
    "AuthUseCases",
    "BudgetUseCases",
    "IncomeUseCases",
    "PotUseCases",
    "RealtimeUseCases",
    "TransactionUseCases",
]
