"""DynamoDB access for the expense table."""

import logging
import os
from datetime import datetime
from typing import Any, Dict, Iterator, Optional

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import BotoCoreError, ClientError

from .errors import StoreError
from .expense import Expense, format_datetime

logger = logging.getLogger(__name__)

TABLE_NAME_ENVIRONMENT_VARIABLE = "ExpenseTable"
DEFAULT_TABLE_NAME = "Expense"


class ExpenseStore:
    """Point reads, writes, deletes and filtered scans over one table.

    The table is keyed by the string attribute ``id``.
    """

    def __init__(self, table_name: str, dynamodb: Optional[Any] = None) -> None:
        """Initialize ExpenseStore.

        Args:
            table_name: Name of the DynamoDB table holding expenses
            dynamodb: boto3 DynamoDB service resource, created if not given
        """
        if not table_name:
            raise ValueError("Table name cannot be empty")

        if dynamodb is None:
            dynamodb = boto3.resource("dynamodb")

        self.table_name = table_name
        self.table = dynamodb.Table(table_name)

    @classmethod
    def from_environment(cls) -> "ExpenseStore":
        """Create a store for the table named by the ExpenseTable variable."""
        table_name = os.environ.get(TABLE_NAME_ENVIRONMENT_VARIABLE) or DEFAULT_TABLE_NAME
        return cls(table_name)

    def get(self, expense_id: str) -> Optional[Expense]:
        """Fetch one expense by id.

        Returns:
            The expense, or None if no item has that id

        Raises:
            StoreError: If the table cannot be read
        """
        try:
            response = self.table.get_item(Key={"id": expense_id})
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error reading expense '{expense_id}' from {self.table_name}: {e!s}")
            raise StoreError(f"Failed to read expense: {e!s}") from e

        item = response.get("Item")
        if item is None:
            return None
        return Expense.from_item(item)

    def put(self, expense: Expense) -> None:
        """Write an expense, replacing any item with the same id.

        Raises:
            StoreError: If the table cannot be written
        """
        try:
            self.table.put_item(Item=expense.to_item())
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error saving expense '{expense.id}' to {self.table_name}: {e!s}")
            raise StoreError(f"Failed to save expense: {e!s}") from e

    def delete(self, expense_id: str) -> None:
        """Delete an expense. Deleting a missing id is not an error.

        Raises:
            StoreError: If the table cannot be written
        """
        try:
            self.table.delete_item(Key={"id": expense_id})
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error deleting expense '{expense_id}' from {self.table_name}: {e!s}")
            raise StoreError(f"Failed to delete expense: {e!s}") from e

    def scan(
        self, date_from: Optional[datetime] = None, date_to: Optional[datetime] = None
    ) -> Iterator[Expense]:
        """Scan the table, optionally restricted to a purchase date range.

        Every page of the scan is read, so the caller sees the complete
        matching set. The filter is applied by DynamoDB after reading, so the
        cost is proportional to the table size.

        Args:
            date_from: Inclusive lower bound on purchaseDate
            date_to: Inclusive upper bound on purchaseDate

        Yields:
            Matching expenses

        Raises:
            StoreError: If the table cannot be read
        """
        condition = None
        if date_from is not None:
            condition = Attr("purchaseDate").gte(format_datetime(date_from))
        if date_to is not None:
            upper = Attr("purchaseDate").lte(format_datetime(date_to))
            condition = upper if condition is None else condition & upper

        scan_kwargs: Dict[str, Any] = {}
        if condition is not None:
            scan_kwargs["FilterExpression"] = condition

        while True:
            try:
                response = self.table.scan(**scan_kwargs)
            except (BotoCoreError, ClientError) as e:
                logger.error(f"Error scanning {self.table_name}: {e!s}")
                raise StoreError(f"Failed to scan expenses: {e!s}") from e

            for item in response.get("Items", []):
                yield Expense.from_item(item)

            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            scan_kwargs["ExclusiveStartKey"] = last_key
