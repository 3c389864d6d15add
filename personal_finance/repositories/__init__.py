"""Repositories package."""

from personal_finance.repositories.base import BaseRepository
from personal_finance.repositories.budget import BudgetRepository
from personal_finance.repositories.income import IncomeRepository
from personal_finance.repositories.pot import PotRepository
from personal_finance.repositories.transaction import TransactionRepository

__all__ = [
    "BaseRepository",
    "BudgetRepository",
    "IncomeRepository",
    "PotRepository",
    "TransactionRepository",
]
