"""AWS Lambda function for the expense API.

This module provides the Lambda handlers behind API Gateway for listing,
reading, creating and deleting expense records stored in DynamoDB.

Routes:
    GET    /expenses          list expenses, optionally filtered by DateFrom/DateTo
    GET    /expenses/{Id}     get one expense
    POST   /expenses          create an expense
    DELETE /expenses/{Id}     delete an expense
"""

import base64
import functools
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Sequence

from .errors import ValidationError
from .expense import Expense, parse_datetime
from .store import ExpenseStore

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Constants
ID_QUERY_STRING_NAME = "Id"
DATE_FROM_QUERY_STRING_NAME = "DateFrom"
DATE_TO_QUERY_STRING_NAME = "DateTo"
PARAMETER_SOURCES = ("pathParameters", "queryStringParameters")
SUPPORTED_METHODS = ("GET", "POST", "DELETE")

Response = Dict[str, Any]


def resolve_parameter(
    event: Dict[str, Any], name: str, sources: Sequence[str] = PARAMETER_SOURCES
) -> Optional[str]:
    """Look up a request parameter across parameter sources.

    Sources are checked in order and the first one containing the name wins,
    even if its value is empty.

    Args:
        event: The Lambda event
        name: Parameter name
        sources: Event keys holding parameter maps, in priority order

    Returns:
        The parameter value, or None if no source has it
    """
    for source in sources:
        params = event.get(source) or {}
        if name in params:
            return params[name]
    return None


def json_response(status_code: int, payload: Any) -> Response:
    """Build a response with a JSON body."""
    return {
        "statusCode": status_code,
        "body": json.dumps(payload),
        "headers": {"Content-Type": "application/json"},
    }


def text_response(status_code: int, text: str = "") -> Response:
    """Build a response with a plain-text body. An empty body gets no headers."""
    return {
        "statusCode": status_code,
        "body": text,
        "headers": {"Content-Type": "text/plain"} if text else {},
    }


def _validation_errors_as_responses(
    handler: Callable[[Dict[str, Any], ExpenseStore], Response]
) -> Callable[[Dict[str, Any], ExpenseStore], Response]:
    """Turn ValidationError raised by a handler into a plain-text error response."""

    @functools.wraps(handler)
    def wrapper(event: Dict[str, Any], store: ExpenseStore) -> Response:
        try:
            return handler(event, store)
        except ValidationError as e:
            logger.warning(f"Rejected request: {e.message}")
            return text_response(e.status_code, e.message)

    return wrapper


def require_id(event: Dict[str, Any]) -> str:
    """Extract the expense id from path or query parameters.

    Raises:
        ValidationError: If the id is missing or empty
    """
    expense_id = resolve_parameter(event, ID_QUERY_STRING_NAME)
    if not expense_id:
        raise ValidationError(f"Missing required parameter {ID_QUERY_STRING_NAME}")
    return expense_id


def get_date_param(event: Dict[str, Any], name: str) -> Optional[datetime]:
    """Parse an optional date-time parameter.

    Raises:
        ValidationError: If the parameter is present but not a valid date
    """
    value = resolve_parameter(event, name)
    if value is None:
        return None
    try:
        return parse_datetime(value)
    except (ValueError, OverflowError) as e:
        raise ValidationError(
            f"Invalid {name} format. Expected a date or ISO 8601 date-time."
        ) from e


def parse_body(event: Dict[str, Any]) -> Any:
    """Decode the JSON request body.

    Raises:
        ValidationError: If the body is absent or not valid JSON
    """
    body = event.get("body")
    if body is None or body == "":
        raise ValidationError("Request body cannot be empty")

    if not isinstance(body, str):
        return body

    if event.get("isBase64Encoded"):
        try:
            body = base64.b64decode(body).decode("utf-8")
        except (ValueError, UnicodeDecodeError) as e:
            raise ValidationError("Invalid base64 request body") from e

    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise ValidationError("Invalid JSON in request body") from e


@_validation_errors_as_responses
def handle_get_expenses(event: Dict[str, Any], store: ExpenseStore) -> Response:
    """List expenses.

    Args:
        event: The Lambda event, optionally carrying DateFrom and DateTo
        store: Expense store

    Returns:
        Response with a JSON array of expenses
    """
    logger.info("Getting expenses")

    date_from = get_date_param(event, DATE_FROM_QUERY_STRING_NAME)
    date_to = get_date_param(event, DATE_TO_QUERY_STRING_NAME)

    expenses = [expense.to_dict() for expense in store.scan(date_from, date_to)]
    logger.info(f"Found {len(expenses)} expenses")

    return json_response(200, expenses)


@_validation_errors_as_responses
def handle_get_expense(event: Dict[str, Any], store: ExpenseStore) -> Response:
    """Return the expense identified by Id.

    Args:
        event: The Lambda event
        store: Expense store

    Returns:
        Response with the expense as JSON, or 404 if it does not exist
    """
    expense_id = require_id(event)

    logger.info(f"Getting expense {expense_id}")
    expense = store.get(expense_id)
    logger.info(f"Found expense: {expense is not None}")

    if expense is None:
        return text_response(404)

    return json_response(200, expense.to_dict())


@_validation_errors_as_responses
def handle_add_expense(event: Dict[str, Any], store: ExpenseStore) -> Response:
    """Create an expense from the request body.

    Args:
        event: The Lambda event
        store: Expense store

    Returns:
        Response whose plain-text body is the new expense id
    """
    expense = Expense.from_request(parse_body(event))
    expense.id = str(uuid.uuid4())
    expense.created_timestamp = datetime.now(timezone.utc).replace(tzinfo=None)

    logger.info(f"Saving expense with id {expense.id}")
    store.put(expense)

    return text_response(200, expense.id)


@_validation_errors_as_responses
def handle_remove_expense(event: Dict[str, Any], store: ExpenseStore) -> Response:
    """Delete the expense identified by Id. Missing expenses are not an error."""
    expense_id = require_id(event)

    logger.info(f"Deleting expense with id {expense_id}")
    store.delete(expense_id)

    return text_response(200)


def _get_method(event: Dict[str, Any]) -> str:
    # REST APIs send httpMethod, HTTP APIs (payload v2) nest it in requestContext
    if "httpMethod" in event:
        return str(event["httpMethod"]).upper()
    http = (event.get("requestContext") or {}).get("http") or {}
    return str(http.get("method", "")).upper()


def lambda_handler(
    event: Dict[str, Any], context: object, store: Optional[ExpenseStore] = None
) -> Response:
    """AWS Lambda handler function.

    Args:
        event: The Lambda event
        context: The Lambda context
        store: Expense store, created from the environment if not given

    Returns:
        Response object
    """
    logger.info(f"Event: {json.dumps(event, default=str)}")

    try:
        method = _get_method(event)

        if method not in SUPPORTED_METHODS:
            return json_response(
                405, {"message": f"Method not allowed: {method}", "success": False}
            )

        if store is None:
            store = ExpenseStore.from_environment()

        if method == "GET":
            if resolve_parameter(event, ID_QUERY_STRING_NAME) is not None:
                return handle_get_expense(event, store)
            return handle_get_expenses(event, store)
        elif method == "POST":
            return handle_add_expense(event, store)
        else:
            return handle_remove_expense(event, store)

    except Exception as e:
        logger.error(f"Unhandled exception: {e!s}")
        return json_response(500, {"message": "Internal server error", "success": False})
