import logging
from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from expense_api.core.config import settings
from expense_api.core.errors import StorageError
from expense_api.models.expense import utc_now_iso

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_dynamodb():
    return boto3.resource(
        "dynamodb",
        region_name=settings.DYNAMO_REGION,
        endpoint_url=settings.DYNAMO_ENDPOINT_URL,
    )


@lru_cache(maxsize=1)
def get_expenses_table():
    """Table handle, created on first use and shared for the life of the process."""
    return get_dynamodb().Table(settings.DYNAMO_EXPENSES_TABLE)


def reset_table_cache() -> None:
    get_expenses_table.cache_clear()
    get_dynamodb.cache_clear()


def _client_error_message(e: ClientError) -> str:
    return e.response.get("Error", {}).get("Message", str(e))


def _client_error_code(e: ClientError) -> str:
    return e.response.get("Error", {}).get("Code", "")


def ensure_expenses_table() -> bool:
    """
    Create the expenses table if it does not exist yet.
    Partition key is the owner (user_id), sort key the record id (expense_id).
    Returns True when the table was created.
    """
    dynamodb = get_dynamodb()
    try:
        dynamodb.meta.client.describe_table(TableName=settings.DYNAMO_EXPENSES_TABLE)
        return False
    except ClientError as e:
        if _client_error_code(e) != "ResourceNotFoundException":
            logger.error(f"describe_table failed: {_client_error_message(e)}")
            raise StorageError("describe_table failed") from e

    try:
        table = dynamodb.create_table(
            TableName=settings.DYNAMO_EXPENSES_TABLE,
            KeySchema=[
                {"AttributeName": "user_id", "KeyType": "HASH"},
                {"AttributeName": "expense_id", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "user_id", "AttributeType": "S"},
                {"AttributeName": "expense_id", "AttributeType": "S"},
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        table.wait_until_exists()
        logger.info(f"Created table {settings.DYNAMO_EXPENSES_TABLE}")
        return True
    except ClientError as e:
        logger.error(f"create_table failed: {_client_error_message(e)}")
        raise StorageError("create_table failed") from e


def ping() -> bool:
    """Cheap reachability check used by the status endpoint."""
    try:
        get_expenses_table().scan(Limit=1)
        return True
    except ClientError as e:
        logger.error(f"ping failed: {_client_error_message(e)}")
        return False


def put_expense(expense_item: dict) -> None:
    """Insert a new expense for a user."""
    try:
        get_expenses_table().put_item(Item=_convert_for_dynamo(expense_item))
    except ClientError as e:
        logger.error(f"put_expense failed: {_client_error_message(e)}")
        raise StorageError("put_expense failed") from e


def get_expense(user_id: str, expense_id: str) -> Optional[dict]:
    """Fetch a single expense item owned by user_id."""
    try:
        response = get_expenses_table().get_item(Key={"user_id": user_id, "expense_id": expense_id})
    except ClientError as e:
        logger.error(f"get_expense failed: {_client_error_message(e)}")
        raise StorageError("get_expense failed") from e
    item = response.get("Item")
    return _from_dynamo(item) if item else None


def query_expenses(
    user_id: str,
    category: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> List[dict]:
    """
    Query every expense of a user matching the optional filters.
    Dates are stored as YYYY-MM-DD strings so the inclusive range compares lexically.
    Follows LastEvaluatedKey until the partition is exhausted.
    """
    query_kwargs: Dict[str, Any] = {"KeyConditionExpression": Key("user_id").eq(user_id)}

    filter_expression = None
    conditions = []
    if category is not None:
        conditions.append(Attr("category").eq(category))
    if start_date is not None:
        conditions.append(Attr("date").gte(start_date))
    if end_date is not None:
        conditions.append(Attr("date").lte(end_date))
    for condition in conditions:
        filter_expression = condition if filter_expression is None else filter_expression & condition
    if filter_expression is not None:
        query_kwargs["FilterExpression"] = filter_expression

    items: List[dict] = []
    try:
        table = get_expenses_table()
        while True:
            response = table.query(**query_kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            query_kwargs["ExclusiveStartKey"] = last_key
    except ClientError as e:
        logger.error(f"query_expenses failed: {_client_error_message(e)}")
        raise StorageError("query_expenses failed") from e
    return [_from_dynamo(item) for item in items]


def update_expense(user_id: str, expense_id: str, updates: dict) -> Optional[dict]:
    """
    Apply partial updates to an expense owned by user_id.
    Returns the updated item, or None when no such (user_id, expense_id) exists.
    """
    if not updates:
        return get_expense(user_id, expense_id)

    updates = dict(updates, updated_at=utc_now_iso())

    update_expression_parts = []
    expression_attribute_values = {}
    expression_attribute_names = {"#pk": "user_id", "#sk": "expense_id"}

    for idx, (key, value) in enumerate(updates.items()):
        placeholder = f"#f{idx}"
        value_placeholder = f":v{idx}"
        update_expression_parts.append(f"{placeholder} = {value_placeholder}")
        expression_attribute_names[placeholder] = key
        expression_attribute_values[value_placeholder] = value

    update_expression = "SET " + ", ".join(update_expression_parts)

    try:
        response = get_expenses_table().update_item(
            Key={"user_id": user_id, "expense_id": expense_id},
            UpdateExpression=update_expression,
            # without the condition update_item would upsert a new record
            ConditionExpression="attribute_exists(#pk) AND attribute_exists(#sk)",
            ExpressionAttributeNames=expression_attribute_names,
            ExpressionAttributeValues=_convert_for_dynamo(expression_attribute_values),
            ReturnValues="ALL_NEW",
        )
    except ClientError as e:
        if _client_error_code(e) == "ConditionalCheckFailedException":
            return None
        logger.error(f"update_expense failed: {_client_error_message(e)}")
        raise StorageError("update_expense failed") from e
    attributes = response.get("Attributes")
    return _from_dynamo(attributes) if attributes else None


def delete_expense(user_id: str, expense_id: str) -> bool:
    """Delete a specific expense item. Returns False when nothing was deleted."""
    try:
        response = get_expenses_table().delete_item(
            Key={"user_id": user_id, "expense_id": expense_id},
            ReturnValues="ALL_OLD",
        )
    except ClientError as e:
        logger.error(f"delete_expense failed: {_client_error_message(e)}")
        raise StorageError("delete_expense failed") from e
    return "Attributes" in response


def _convert_for_dynamo(obj: Any):
    """
    Recursively convert floats to Decimal for DynamoDB compatibility.
    """
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, dict):
        return {k: _convert_for_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_convert_for_dynamo(v) for v in obj]
    return obj


def _from_dynamo(obj: Any):
    """
    Recursively convert Decimal instances back to native Python numeric types.
    """
    if isinstance(obj, list):
        return [_from_dynamo(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _from_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    return obj
