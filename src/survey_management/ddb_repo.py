"""
DynamoDB repository for survey index rows.

Every published survey gets one lightweight item in this table, keyed by the
deployment partition (``pk``) and the survey slug (``sk``).  A local secondary
index on ``createdOn`` serves the "latest surveys" query without scanning the
whole partition.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from .models import SurveyInformationRow

logger = logging.getLogger(__name__)

CREATED_ON_INDEX = "createdOn-index"
_KEY_FIELDS = ("pk", "sk")


def table_definition(table_name: str) -> Dict[str, Any]:
    """Return the ``create_table`` arguments for the survey index table."""
    return {
        "TableName": table_name,
        "KeySchema": [
            {"AttributeName": "pk", "KeyType": "HASH"},
            {"AttributeName": "sk", "KeyType": "RANGE"},
        ],
        "AttributeDefinitions": [
            {"AttributeName": "pk", "AttributeType": "S"},
            {"AttributeName": "sk", "AttributeType": "S"},
            {"AttributeName": "createdOn", "AttributeType": "S"},
        ],
        "LocalSecondaryIndexes": [
            {
                "IndexName": CREATED_ON_INDEX,
                "KeySchema": [
                    {"AttributeName": "pk", "KeyType": "HASH"},
                    {"AttributeName": "createdOn", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            }
        ],
        "BillingMode": "PAY_PER_REQUEST",
    }


def _error_code(e: ClientError) -> str:
    return e.response.get("Error", {}).get("Code", "")


class SurveyInformationTable:
    """Repository for survey index rows stored in DynamoDB."""

    def __init__(self, table_name: str, dynamodb: Optional[Any] = None) -> None:
        self.table_name = table_name
        self.dynamodb = dynamodb if dynamodb is not None else boto3.resource("dynamodb")
        self.table = self.dynamodb.Table(table_name)
        self._known_to_exist = False

    def ensure_exists(self) -> None:
        """
        Create the table if it is missing and wait until it is active.

        Safe to call on every request: once the table has been seen, later calls
        return without touching DynamoDB.

        Raises:
            ClientError: For DynamoDB errors other than a missing or already-creating table.
        """
        if self._known_to_exist:
            return
        try:
            self.table.load()
        except ClientError as e:
            if _error_code(e) != "ResourceNotFoundException":
                raise
            try:
                self.dynamodb.create_table(**table_definition(self.table_name))
                logger.info("Creating survey index table %s", self.table_name)
            except ClientError as create_error:
                # Another instance got there first
                if _error_code(create_error) != "ResourceInUseException":
                    raise
            self.table.wait_until_exists()
        self._known_to_exist = True

    def insert(self, row: SurveyInformationRow) -> None:
        """Put an index row into the table."""
        self.table.put_item(Item=row.to_item())

    def query_by_fields(self, field_equals: Iterable[Tuple[str, str]]) -> List[SurveyInformationRow]:
        """
        Return rows whose attributes equal all of the given values.

        Args:
            field_equals: ``(attribute, value)`` pairs.  ``pk`` is required; ``pk``
                and ``sk`` become the key condition, anything else a filter.
        Raises:
            ValueError: If no ``pk`` equality is given.
        """
        pairs = list(field_equals)
        if not any(name == "pk" for name, _ in pairs):
            raise ValueError("query_by_fields requires an equality on pk")

        key_condition = None
        filter_expression = None
        for name, value in pairs:
            if name in _KEY_FIELDS:
                cond = Key(name).eq(value)
                key_condition = cond if key_condition is None else key_condition & cond
            else:
                cond = Attr(name).eq(value)
                filter_expression = cond if filter_expression is None else filter_expression & cond

        query_kwargs: Dict[str, Any] = {"KeyConditionExpression": key_condition}
        if filter_expression is not None:
            query_kwargs["FilterExpression"] = filter_expression
        return self._query_all(**query_kwargs)

    def query_by_partition(self, partition: str) -> List[SurveyInformationRow]:
        """Return every row in the partition, in sort key (slug) order."""
        return self._query_all(KeyConditionExpression=Key("pk").eq(partition))

    def query_latest(self, partition: str, count: int) -> List[SurveyInformationRow]:
        """Return at most ``count`` rows of the partition, newest ``createdOn`` first."""
        if count < 1:
            raise ValueError("count must be at least 1")
        resp = self.table.query(
            IndexName=CREATED_ON_INDEX,
            KeyConditionExpression=Key("pk").eq(partition),
            ScanIndexForward=False,  # newest -> oldest
            Limit=count,
        )
        items: List[Dict[str, Any]] = resp.get("Items", [])
        return [SurveyInformationRow.from_item(item) for item in items[:count]]

    def _query_all(self, **query_kwargs: Any) -> List[SurveyInformationRow]:
        rows: List[SurveyInformationRow] = []
        while True:
            resp = self.table.query(**query_kwargs)
            rows.extend(SurveyInformationRow.from_item(item) for item in resp.get("Items", []))
            lek = resp.get("LastEvaluatedKey")
            if not lek:
                return rows
            query_kwargs["ExclusiveStartKey"] = lek
