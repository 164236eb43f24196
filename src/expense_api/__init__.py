"""AWS Lambda function package for the expense API.

This package provides functionality for listing, reading, creating and
deleting expense records stored in DynamoDB via API Gateway.
"""

__version__ = "0.1.0"

from .errors import StoreError, ValidationError
from .expense import Expense
from .lambda_handler import (
    handle_add_expense,
    handle_get_expense,
    handle_get_expenses,
    handle_remove_expense,
    lambda_handler,
)
from .store import ExpenseStore

__all__ = [
    "Expense",
    "ExpenseStore",
    "StoreError",
    "ValidationError",
    "handle_add_expense",
    "handle_get_expense",
    "handle_get_expenses",
    "handle_remove_expense",
    "lambda_handler",
]
