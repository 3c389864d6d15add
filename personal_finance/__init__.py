"""
Personal Finance - Core Package

Budgets, incomes, savings pots and transactions for a single-user-scoped
personal finance application.

DESIGN PRINCIPLES:
1. Validate first, touch storage second
2. Fail early, fail visibly
3. Every document belongs to exactly one user
4. Storage and auth backends are injected, never global
5. Raw storage records never leave the repositories
"""

__version__ = "1.0.0"
__author__ = "Personal Finance Team"
