"""Expense record model.

An expense is a single purchase: a name, a cost, the date it happened and
the time it was recorded. This module maps records between client JSON
payloads, API responses and DynamoDB items.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from dateutil import parser

from .errors import ValidationError

# Fixed width (four digit year, microseconds) so that string order in DynamoDB
# matches chronological order
DATETIME_TIMESPEC = "microseconds"


def parse_datetime(value: str) -> datetime:
    """Parse a date-time string.

    Timezone-aware values are converted to UTC and stored without tzinfo.

    Args:
        value: Date or date-time string in any format dateutil understands

    Returns:
        Naive datetime

    Raises:
        ValueError: If the value cannot be parsed
        OverflowError: If the parsed value is out of range
    """
    parsed = parser.parse(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def format_datetime(value: datetime) -> str:
    """Render a datetime in the stored representation."""
    return value.replace(tzinfo=None).isoformat(timespec=DATETIME_TIMESPEC)


def _require_datetime(body: Dict[str, Any], field: str) -> datetime:
    value = body.get(field)
    if not isinstance(value, str) or not value:
        raise ValidationError(f"Field '{field}' must be a date-time string")
    try:
        return parse_datetime(value)
    except (ValueError, OverflowError) as e:
        raise ValidationError(f"Invalid {field} format: {value}") from e


@dataclass
class Expense:
    """One purchase."""

    name: str
    cost: float
    purchase_date: datetime
    id: Optional[str] = None
    created_timestamp: Optional[datetime] = None

    @classmethod
    def from_request(cls, body: Any) -> "Expense":
        """Build an expense from a client payload.

        ``id`` and ``createdTimestamp`` are assigned by the system, so any
        values supplied by the client are ignored.

        Args:
            body: Decoded JSON request body

        Returns:
            Expense without id or created timestamp

        Raises:
            ValidationError: If the payload is not a valid expense
        """
        if not isinstance(body, dict):
            raise ValidationError(
                f"Request body must be a JSON object, got {type(body).__name__}"
            )

        name = body.get("name")
        if not isinstance(name, str):
            raise ValidationError("Field 'name' must be a string")

        cost = body.get("cost")
        if isinstance(cost, bool) or not isinstance(cost, (int, float)):
            raise ValidationError("Field 'cost' must be a number")
        try:
            cost = float(cost)
        except OverflowError as e:
            raise ValidationError("Field 'cost' is out of range") from e
        if not math.isfinite(cost):
            raise ValidationError("Field 'cost' must be a finite number")

        purchase_date = _require_datetime(body, "purchaseDate")

        return cls(name=name, cost=cost, purchase_date=purchase_date)

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "Expense":
        """Build an expense from a DynamoDB item."""
        created = item.get("createdTimestamp")
        return cls(
            id=item["id"],
            name=item.get("name", ""),
            cost=float(item.get("cost", 0)),
            purchase_date=parser.isoparse(item["purchaseDate"]),
            created_timestamp=parser.isoparse(created) if created else None,
        )

    def to_item(self) -> Dict[str, Any]:
        """Convert to a DynamoDB item.

        The boto3 resource layer rejects floats, so cost is sent as a Decimal.
        """
        item = {
            "id": self.id,
            "name": self.name,
            "cost": Decimal(str(self.cost)),
            "purchaseDate": format_datetime(self.purchase_date),
        }
        if self.created_timestamp is not None:
            item["createdTimestamp"] = format_datetime(self.created_timestamp)
        return item

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON representation returned by the API."""
        return {
            "id": self.id,
            "name": self.name,
            "cost": self.cost,
            "purchaseDate": format_datetime(self.purchase_date),
            "createdTimestamp": (
                format_datetime(self.created_timestamp)
                if self.created_timestamp is not None
                else None
            ),
        }
