"""DynamoDB backend (boto3 low-level client)."""

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

import boto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import StorageError
from .base import ConditionFailed, KeyValueBackend

logger = logging.getLogger(__name__)

_SER = TypeSerializer()
_DESER = TypeDeserializer()


def _normalize(value: Any) -> Any:
    """Turn Decimals back into int/float, recursing into maps and lists."""
    if isinstance(value, Decimal):
        return int(value) if value == int(value) else float(value)
    if isinstance(value, dict):
        return {k: _normalize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_normalize(v) for v in value]
    if isinstance(value, set):
        return {_normalize(v) for v in value}
    return value


def _to_dynamo(value: Any) -> Any:
    """Floats are not accepted by TypeSerializer; nested ones included."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: _to_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_dynamo(v) for v in value]
    return value


def _serialize(value: Any) -> Any:
    """Serialize a Python value for DynamoDB."""
    return _SER.serialize(_to_dynamo(value))


def _deserialize(item: Dict[str, Any]) -> Dict[str, Any]:
    """Deserialize a DynamoDB item to a plain Python dict."""
    return {k: _normalize(_DESER.deserialize(v)) for k, v in item.items()}


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


class DynamoDBBackend(KeyValueBackend):
    """Tables keyed by a string partition key named ``id``."""

    def __init__(self, client):
        self._client = client

    @classmethod
    def from_settings(cls, region: str, endpoint_url: Optional[str] = None) -> "DynamoDBBackend":
        client = boto3.client(
            "dynamodb",
            region_name=region,
            endpoint_url=endpoint_url or None,
            config=Config(retries={"max_attempts": 5, "mode": "standard"}),
        )
        return cls(client)

    def get_item(self, table_name: str, key: str) -> Optional[Dict[str, Any]]:
        try:
            resp = self._client.get_item(
                TableName=table_name,
                Key={"id": {"S": key}},
                ConsistentRead=True,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to read {table_name}/{key}", e) from e
        item = resp.get("Item")
        return _deserialize(item) if item else None

    def put_item(
        self,
        table_name: str,
        item: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> None:
        kwargs: Dict[str, Any] = {
            "TableName": table_name,
            "Item": {k: _serialize(v) for k, v in item.items()},
        }
        if expected_version is not None:
            kwargs["ConditionExpression"] = "attribute_exists(#id) AND #version = :expected"
            kwargs["ExpressionAttributeNames"] = {"#id": "id", "#version": "version"}
            kwargs["ExpressionAttributeValues"] = {":expected": {"N": str(expected_version)}}
        try:
            self._client.put_item(**kwargs)
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                raise ConditionFailed(table_name, item["id"]) from e
            raise StorageError(f"Failed to write {table_name}/{item['id']}", e) from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to write {table_name}/{item['id']}", e) from e

    def delete_item(self, table_name: str, key: str) -> None:
        try:
            self._client.delete_item(TableName=table_name, Key={"id": {"S": key}})
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to delete {table_name}/{key}", e) from e

    def scan(
        self,
        table_name: str,
        filters: Optional[Dict[str, Any]] = None,
        require_attributes: Iterable[str] = (),
    ) -> List[Dict[str, Any]]:
        names: Dict[str, str] = {}
        values: Dict[str, Any] = {}
        clauses: List[str] = []
        for i, (attr, value) in enumerate((filters or {}).items()):
            names[f"#f{i}"] = attr
            values[f":v{i}"] = _serialize(value)
            clauses.append(f"#f{i} = :v{i}")
        for i, attr in enumerate(require_attributes):
            names[f"#r{i}"] = attr
            clauses.append(f"attribute_exists(#r{i})")

        kwargs: Dict[str, Any] = {"TableName": table_name}
        if clauses:
            kwargs["FilterExpression"] = " AND ".join(clauses)
            kwargs["ExpressionAttributeNames"] = names
        if values:
            kwargs["ExpressionAttributeValues"] = values

        items: List[Dict[str, Any]] = []
        try:
            resp = self._client.scan(**kwargs)
            items.extend(resp.get("Items", []))
            while resp.get("LastEvaluatedKey"):
                resp = self._client.scan(**kwargs, ExclusiveStartKey=resp["LastEvaluatedKey"])
                items.extend(resp.get("Items", []))
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to scan {table_name}", e) from e
        return [_deserialize(raw) for raw in items]

    def update_fields(self, table_name: str, key: str, fields: Dict[str, Any]) -> None:
        names = {f"#u{i}": attr for i, attr in enumerate(fields)}
        values = {f":u{i}": _serialize(v) for i, v in enumerate(fields.values())}
        names["#id"] = "id"
        try:
            self._client.update_item(
                TableName=table_name,
                Key={"id": {"S": key}},
                UpdateExpression="SET " + ", ".join(f"#u{i} = :u{i}" for i in range(len(fields))),
                # Without the condition a touch on a deleted key would recreate a stub item.
                ConditionExpression="attribute_exists(#id)",
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
            )
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                raise ConditionFailed(table_name, key) from e
            raise StorageError(f"Failed to update {table_name}/{key}", e) from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to update {table_name}/{key}", e) from e

    def ping(self, table_name: str) -> bool:
        try:
            self._client.describe_table(TableName=table_name)
            return True
        except (ClientError, BotoCoreError) as e:
            logger.warning("DynamoDB ping failed for %s: %s", table_name, e)
            return False
