"""DynamoDB service wrapper for environment-aware table operations."""

import os
from typing import Any

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

# Module-level singleton for connection reuse
_dynamodb_service_instance: "DynamoDBService | None" = None


def get_dynamodb_service(environment: str | None = None) -> "DynamoDBService":
    """Get or create the singleton DynamoDB service instance.

    This avoids creating new boto3 clients on every request.

    Args:
        environment: Environment name. Only used on first call.

    Returns:
        Shared DynamoDBService instance
    """
    global _dynamodb_service_instance
    if _dynamodb_service_instance is None:
        _dynamodb_service_instance = DynamoDBService(environment)
    return _dynamodb_service_instance


def reset_dynamodb_service() -> None:
    """Reset the singleton instance (for testing only).

    This allows tests to create a fresh DynamoDBService inside
    a mock_aws context.
    """
    global _dynamodb_service_instance
    _dynamodb_service_instance = None


class DynamoDBService:
    """Table access for campreserv; names are `{prefix}-{table}`."""

    def __init__(self, environment: str | None = None) -> None:
        self.environment = environment or os.getenv("ENVIRONMENT", "dev")
        # DYNAMODB_TABLE_PREFIX wins over the environment-derived prefix
        self.name_prefix = os.getenv(
            "DYNAMODB_TABLE_PREFIX", f"campreserv-{self.environment}"
        )
        self._dynamodb = boto3.resource("dynamodb")

    def table_name(self, table: str) -> str:
        return f"{self.name_prefix}-{table}"

    def _get_table(self, table: str) -> Any:
        return self._dynamodb.Table(self.table_name(table))

    # Single-item operations

    def get_item(self, table: str, key: dict[str, Any]) -> dict[str, Any] | None:
        """Return the item stored under `key`, or None."""
        item: dict[str, Any] | None = self._get_table(table).get_item(Key=key).get("Item")
        return item

    def put_item(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
    ) -> bool:
        """Write an item.

        Returns:
            False when `condition_expression` rejected the write
        """
        kwargs: dict[str, Any] = {"Item": item}
        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression
        try:
            self._get_table(table).put_item(**kwargs)
        except ClientError as e:
            if _condition_failed(e):
                return False
            raise
        return True

    def update_item(
        self,
        table: str,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_values: dict[str, Any],
        expression_attribute_names: dict[str, str] | None = None,
        condition_expression: str | None = None,
    ) -> dict[str, Any] | None:
        """Apply an update expression and return the item as stored afterwards.

        Returns:
            None when `condition_expression` rejected the update
        """
        kwargs: dict[str, Any] = {
            "Key": key,
            "UpdateExpression": update_expression,
            "ExpressionAttributeValues": expression_attribute_values,
            "ReturnValues": "ALL_NEW",
        }
        if expression_attribute_names:
            kwargs["ExpressionAttributeNames"] = expression_attribute_names
        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression
        try:
            response = self._get_table(table).update_item(**kwargs)
        except ClientError as e:
            if _condition_failed(e):
                return None
            raise
        attrs: dict[str, Any] | None = response.get("Attributes")
        return attrs

    def delete_item(self, table: str, key: dict[str, Any]) -> None:
        """Delete an item; deleting a missing key is not an error."""
        self._get_table(table).delete_item(Key=key)

    def query(
        self,
        table: str,
        key_condition: Any,
        index_name: str | None = None,
        filter_expression: Any | None = None,
        limit: int | None = None,
        scan_index_forward: bool = True,
    ) -> list[dict[str, Any]]:
        """Query table or GSI, following pagination.

        Args:
            table: Table name without prefix
            key_condition: Boto3 Key condition
            index_name: GSI name (optional)
            filter_expression: Additional filter (optional)
            limit: Max items to return
            scan_index_forward: Sort order (True=ascending)

        Returns:
            List of items
        """
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": key_condition,
            "ScanIndexForward": scan_index_forward,
        }
        if index_name:
            kwargs["IndexName"] = index_name
        if filter_expression is not None:
            kwargs["FilterExpression"] = filter_expression

        items: list[dict[str, Any]] = []
        table_resource = self._get_table(table)
        while True:
            response = table_resource.query(**kwargs)
            items.extend(response.get("Items", []))
            if limit and len(items) >= limit:
                return items[:limit]
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def scan(
        self,
        table: str,
        filter_expression: Any | None = None,
    ) -> list[dict[str, Any]]:
        """Scan a whole table, following pagination.

        Only used for small reference tables (campgrounds, guests, portfolios).
        """
        kwargs: dict[str, Any] = {}
        if filter_expression is not None:
            kwargs["FilterExpression"] = filter_expression

        items: list[dict[str, Any]] = []
        table_resource = self._get_table(table)
        while True:
            response = table_resource.scan(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def batch_get(
        self,
        table: str,
        keys: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Batch get items by keys.

        Args:
            table: Table name without prefix
            keys: List of primary key dicts

        Returns:
            List of found items
        """
        if not keys:
            return []

        table_name = self.table_name(table)
        items: list[dict[str, Any]] = []
        # BatchGetItem accepts at most 100 keys per request
        for start in range(0, len(keys), 100):
            response = self._dynamodb.batch_get_item(
                RequestItems={table_name: {"Keys": keys[start : start + 100]}}
            )
            items.extend(response.get("Responses", {}).get(table_name, []))
        return items

    # Convenience methods for common patterns

    def query_by_gsi(
        self,
        table: str,
        index_name: str,
        partition_key_name: str,
        partition_key_value: str,
        sort_key_condition: Any | None = None,
        filter_expression: Any | None = None,
    ) -> list[dict[str, Any]]:
        """Query a GSI by partition key.

        Args:
            table: Table name without prefix
            index_name: GSI name
            partition_key_name: Name of partition key attribute
            partition_key_value: Value to query
            sort_key_condition: Optional sort key condition
            filter_expression: Optional non-key filter

        Returns:
            List of items
        """
        key_condition = Key(partition_key_name).eq(partition_key_value)
        if sort_key_condition is not None:
            key_condition = key_condition & sort_key_condition

        return self.query(
            table,
            key_condition,
            index_name=index_name,
            filter_expression=filter_expression,
        )

    def query_by_campground(
        self,
        table: str,
        campground_id: str,
        filter_expression: Any | None = None,
    ) -> list[dict[str, Any]]:
        """Query a campground-scoped table through its campground_id-index."""
        return self.query_by_gsi(
            table,
            "campground_id-index",
            "campground_id",
            campground_id,
            filter_expression=filter_expression,
        )


def _condition_failed(error: ClientError) -> bool:
    return error.response["Error"]["Code"] == "ConditionalCheckFailedException"
