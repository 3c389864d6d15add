"""Validation package."""

from personal_finance.validation.validator import EntityValidator

__all__ = ["EntityValidator"]
