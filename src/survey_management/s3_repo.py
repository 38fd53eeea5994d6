"""
S3 repository for survey documents.

The full body of each survey (title, timestamps, questions) is stored as one JSON
object per slug under ``<partition>/<slug>.json`` in the configured bucket, so
surveys of different partitions sharing a bucket never overwrite each other.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = ("404", "NoSuchKey", "NoSuchBucket", "NotFound")


def _error_code(e: ClientError) -> str:
    return str(e.response.get("Error", {}).get("Code", ""))


class SurveyDocumentContainer:
    """Repository for survey documents stored in S3."""

    def __init__(
        self,
        bucket: str,
        client: Optional[Any] = None,
        region: str = "us-east-1",
        prefix: str = "",
    ) -> None:
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        self.region = region
        self.client = client if client is not None else boto3.client("s3", region_name=region)
        self._known_to_exist = False

    def object_key(self, key: str) -> str:
        """Map a slug to its S3 key, under the partition prefix when one is set."""
        if self.prefix:
            return f"{self.prefix}/{key}.json"
        return f"{key}.json"

    def ensure_exists(self) -> None:
        """Create the bucket if it is missing."""
        if self._known_to_exist:
            return
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except ClientError as e:
            if _error_code(e) not in _NOT_FOUND_CODES:
                raise
            create_kwargs: Dict[str, Any] = {"Bucket": self.bucket}
            # us-east-1 rejects an explicit location constraint
            if self.region != "us-east-1":
                create_kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
            try:
                self.client.create_bucket(**create_kwargs)
                logger.info("Created survey document bucket %s", self.bucket)
            except ClientError as create_error:
                if _error_code(create_error) != "BucketAlreadyOwnedByYou":
                    raise
        self._known_to_exist = True

    def exists(self, key: str) -> bool:
        """Check whether a document is stored under ``key``."""
        try:
            self.client.head_object(Bucket=self.bucket, Key=self.object_key(key))
            return True
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return False
            raise

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Fetch the document stored under ``key``.

        Returns:
            The decoded JSON document, or None if nothing is stored under the key.
        Raises:
            ClientError: For S3 errors other than a missing object.
        """
        try:
            resp = self.client.get_object(Bucket=self.bucket, Key=self.object_key(key))
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return None
            raise
        return json.loads(resp["Body"].read().decode("utf-8"))

    def put(self, key: str, document: Dict[str, Any]) -> None:
        """Store ``document`` under ``key``, replacing any existing object."""
        self.client.put_object(
            Bucket=self.bucket,
            Key=self.object_key(key),
            Body=json.dumps(document).encode("utf-8"),
            ContentType="application/json",
        )
