"""DynamoDB repository implementations for production."""

from __future__ import annotations

import json
import os
from decimal import Decimal

import boto3
from botocore.exceptions import ClientError

from rikken.game.models import Night, Variant


# Initialize DynamoDB resource at module level for warm starts
_dynamodb = None
_prefix = os.environ.get("DYNAMODB_TABLE_PREFIX", "Rikken")


def _get_dynamodb():
    global _dynamodb
    if _dynamodb is None:
        _dynamodb = boto3.resource("dynamodb")
    return _dynamodb


def _to_item(data: dict) -> dict:
    # DynamoDB rejects float, so numbers go in as Decimal.
    return json.loads(json.dumps(data), parse_float=Decimal)


class DynamoDBNightRepository:
    def __init__(self, table_name: str | None = None) -> None:
        self._table_name = table_name or f"{_prefix}_Nights"
        self._table = _get_dynamodb().Table(self._table_name)

    def get_night(self, night_id: str) -> Night | None:
        response = self._table.get_item(
            Key={"nightId": night_id},
            ConsistentRead=True,
        )
        item = response.get("Item")
        if not item:
            return None
        return Night.from_dict(item)

    def save_night(self, night: Night) -> None:
        item = night.to_dict()
        item["version"] = night.version + 1
        try:
            self._table.put_item(
                Item=_to_item(item),
                ConditionExpression=(
                    "attribute_not_exists(nightId) OR version = :v"
                ),
                ExpressionAttributeValues={":v": night.version},
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise ValueError("Version conflict") from e
            raise

    def delete_night(self, night_id: str) -> None:
        self._table.delete_item(Key={"nightId": night_id})


class DynamoDBSettingsRepository:
    def __init__(self, table_name: str | None = None) -> None:
        self._table_name = table_name or f"{_prefix}_Variants"
        self._table = _get_dynamodb().Table(self._table_name)

    def get_variant(self, variant_id: str) -> Variant | None:
        response = self._table.get_item(Key={"id": variant_id})
        item = response.get("Item")
        if not item:
            return None
        return Variant.from_dict(item)

    def list_variants(self) -> list[Variant]:
        # Scan is fine: the catalog is a few dozen rows
        response = self._table.scan()
        variants = [Variant.from_dict(item) for item in response.get("Items", [])]
        return sorted(variants, key=lambda v: v.name)

    def save_variant(self, variant: Variant) -> None:
        self._table.put_item(Item=_to_item(variant.to_dict()))
