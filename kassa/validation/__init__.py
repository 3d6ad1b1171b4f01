"""Form validation package."""

from kassa.validation.validator import TransactionValidator

__all__ = ["TransactionValidator"]
