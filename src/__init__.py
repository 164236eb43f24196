"""Expense API Lambda package.

This package provides AWS Lambda functions for tracking personal expenses
in DynamoDB behind API Gateway.
"""

__version__ = "0.1.0"

from src.expense_api import ExpenseStore, ValidationError, lambda_handler

__all__ = ["ExpenseStore", "ValidationError", "lambda_handler"]
