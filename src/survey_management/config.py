"""
Environment configuration for the survey management service.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass(frozen=True)
class Settings:
    """
    Settings read from the environment.

    Attributes:
        region: AWS region for both DynamoDB and S3.
        table_name: DynamoDB table holding survey index rows.
        bucket_name: S3 bucket holding survey documents.
        partition: Partition key every survey in this deployment is indexed under.
        dynamodb_endpoint_url: Optional endpoint override (LocalStack, DynamoDB Local).
        s3_endpoint_url: Optional endpoint override (LocalStack, MinIO).
        slug_max_length: Maximum length of a generated slug.
        latest_surveys_limit: Upper bound on the "latest surveys" listing.
        allow_origin: Value of the Access-Control-Allow-Origin header.
    """

    region: str = "us-east-1"
    table_name: str = "survey_information"
    bucket_name: str = "surveys"
    partition: str = "surveys"
    dynamodb_endpoint_url: Optional[str] = None
    s3_endpoint_url: Optional[str] = None
    slug_max_length: int = 100
    latest_surveys_limit: int = 10
    allow_origin: str = "*"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            region=env.get("AWS_REGION", "us-east-1"),
            table_name=env.get("SURVEY_TABLE", "survey_information"),
            bucket_name=env.get("SURVEY_BUCKET", "surveys"),
            partition=env.get("SURVEY_PARTITION", "surveys"),
            dynamodb_endpoint_url=env.get("DYNAMODB_ENDPOINT_URL") or None,
            s3_endpoint_url=env.get("S3_ENDPOINT_URL") or None,
            slug_max_length=int(env.get("SLUG_MAX_LENGTH", "100")),
            latest_surveys_limit=int(env.get("LATEST_SURVEYS_LIMIT", "10")),
            allow_origin=env.get("ALLOW_ORIGIN", "*"),
        )
