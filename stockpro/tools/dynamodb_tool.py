# PURPOSE: DynamoDB-backed key/value storage for the valuation history.
# CONTEXT: One item per storage key; the value attribute holds the JSON text
#          written by HistoryStore, so a write always replaces the whole list.
# CREDITS: Original work — no external code reuse.

from __future__ import annotations
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError


class DynamoDBStorage:
    """
    Table layout: partition key "storage_key" (string), attribute "value" (string).

    The boto3 table is resolved lazily so constructing the storage never
    needs AWS credentials.
    """

    def __init__(self, table_name: str, region: str, table: Any = None):
        self.table_name = table_name
        self.region = region
        self._table = table

    @property
    def table(self):
        if self._table is None:
            self._table = boto3.resource("dynamodb", region_name=self.region).Table(self.table_name)
        return self._table

    def get(self, key: str) -> Optional[str]:
        """
        Return the stored string, or None if the key has no item.

        raises:
        - RuntimeError – if the DynamoDB request fails (wraps ClientError).
        """
        try:
            res = self.table.get_item(Key={"storage_key": key})
        except ClientError as e:
            raise RuntimeError(f"DDB get_item failed: {e.response['Error']['Message']}")
        item = res.get("Item")
        return None if item is None else item.get("value")

    def put(self, key: str, value: str) -> None:
        try:
            self.table.put_item(Item={"storage_key": key, "value": value})
        except ClientError as e:
            raise RuntimeError(f"DDB put_item failed: {e.response['Error']['Message']}")

    def delete(self, key: str) -> None:
        try:
            self.table.delete_item(Key={"storage_key": key})
        except ClientError as e:
            raise RuntimeError(f"DDB delete_item failed: {e.response['Error']['Message']}")
