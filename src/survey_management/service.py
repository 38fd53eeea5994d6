"""
Survey management workflows: publish, list, latest and retrieve.

The service holds long-lived handles to the index table and the document
container and never touches any other shared state, so a single instance can
serve every request of a Lambda container.

Publishing checks the index for the slug, writes the document, then writes the
index row.  The check and the writes are not atomic: two concurrent publishes of
the same slug can both succeed, the later one overwriting the earlier.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional

import boto3

from .config import Settings
from .ddb_repo import SurveyInformationTable
from .errors import AlreadyPublished, InvalidInput, ServiceFault, SurveyServiceError
from .models import Survey, SurveyInformation, now_iso
from .s3_repo import SurveyDocumentContainer
from .slug import generate_slug

logger = logging.getLogger(__name__)

DEFAULT_LATEST_COUNT = 10


def _check_slug(slug_name: Any) -> None:
    """Reject slugs that could be stored but never fetched back."""
    if not isinstance(slug_name, str) or not slug_name.strip():
        raise InvalidInput("Required slug_name parameter is empty.")
    if "/" in slug_name:
        raise InvalidInput("slug_name must not contain '/'")


@contextmanager
def _service_boundary(operation: str, **context: Any) -> Iterator[None]:
    """Log unexpected failures in full and replace them with an opaque ServiceFault."""
    try:
        yield
    except SurveyServiceError:
        raise
    except Exception:
        logger.exception("%s failed %s", operation, context)
        raise ServiceFault() from None


class SurveyManagementService:
    """Publishes surveys and serves survey listings and documents."""

    def __init__(
        self,
        index: SurveyInformationTable,
        documents: SurveyDocumentContainer,
        partition: str,
        slug_max_length: int = 100,
        latest_limit: int = DEFAULT_LATEST_COUNT,
        clock: Callable[[], str] = now_iso,
    ) -> None:
        self.index = index
        self.documents = documents
        self.partition = partition
        self.slug_max_length = slug_max_length
        self.latest_limit = latest_limit
        self._clock = clock

    def publish_survey(self, survey: Optional[Survey]) -> SurveyInformation:
        """
        Assign a slug to ``survey``, store it, and index it.

        The survey is stamped in place with its slug and creation time.

        Raises:
            InvalidInput: No survey, neither a title nor a slug to identify it by,
                a non-string title, or a slug that could not be fetched back.
            AlreadyPublished: A survey with the resolved slug is already indexed.
            ServiceFault: Any storage or mapping failure.
        """
        if survey is None:
            raise InvalidInput("survey is required")
        if not survey.slug_name and not survey.title:
            raise InvalidInput("survey must have a slug or title")
        if survey.title is not None and not isinstance(survey.title, str):
            raise InvalidInput("survey title must be a string")

        if survey.slug_name:
            _check_slug(survey.slug_name)
            slug_name = survey.slug_name
        else:
            slug_name = generate_slug(survey.title, self.slug_max_length)
            if not slug_name:
                raise InvalidInput("survey title does not contain any characters usable in a slug")

        with _service_boundary("publish_survey", slug=slug_name):
            survey.slug_name = slug_name
            survey.created_on = self._clock()

            self.index.ensure_exists()
            self.documents.ensure_exists()
            row = survey.to_row(self.partition)
            document = survey.to_document()

            existing_rows = self.index.query_by_fields(
                [("pk", row.partition_key), ("sk", row.slug_name)]
            )
            if existing_rows:
                logger.warning("Survey %s is already published in partition %s", slug_name, self.partition)
                raise AlreadyPublished(slug_name)

            # Document first: a failure below leaves an unindexed document, never a dangling row.
            self.documents.put(slug_name, document)
            try:
                self.index.insert(row)
            except Exception:
                logger.error("Index write failed; document %s is stored but not indexed", slug_name)
                raise

            logger.info("Published survey %s", slug_name)
            return row.to_survey_information()

    publish = publish_survey

    def list_surveys(self) -> List[SurveyInformation]:
        """Return every survey in the partition, in index order."""
        with _service_boundary("list_surveys"):
            self.index.ensure_exists()
            rows = self.index.query_by_partition(self.partition)
            return [r.to_survey_information() for r in rows]

    def get_latest(self, n: int = DEFAULT_LATEST_COUNT) -> List[SurveyInformation]:
        """Return at most ``n`` surveys, newest first."""
        if n < 1:
            raise InvalidInput("n must be at least 1")
        with _service_boundary("get_latest", n=n):
            self.index.ensure_exists()
            rows = self.index.query_latest(self.partition, n)
            return [r.to_survey_information() for r in rows[:n]]

    def get_latest_surveys(self) -> List[SurveyInformation]:
        return self.get_latest(self.latest_limit)

    def get_survey(self, slug_name: str) -> Optional[Survey]:
        """
        Fetch a published survey by slug.

        Returns:
            The survey, or None if no document is stored under the slug.
        Raises:
            InvalidInput: The slug is empty, whitespace, or contains '/'.
            ServiceFault: Any storage or mapping failure.
        """
        _check_slug(slug_name)

        with _service_boundary("get_survey", slug=slug_name):
            document = self.documents.get(slug_name)
            if document is None:
                return None
            return Survey.from_document(document)


def build_service(settings: Settings) -> SurveyManagementService:
    """Construct the store handles once and inject them into a service."""
    dynamodb = boto3.resource(
        "dynamodb",
        region_name=settings.region,
        endpoint_url=settings.dynamodb_endpoint_url,
    )
    s3 = boto3.client(
        "s3",
        region_name=settings.region,
        endpoint_url=settings.s3_endpoint_url,
    )
    return SurveyManagementService(
        index=SurveyInformationTable(settings.table_name, dynamodb=dynamodb),
        documents=SurveyDocumentContainer(
            settings.bucket_name,
            client=s3,
            region=settings.region,
            prefix=settings.partition,
        ),
        partition=settings.partition,
        slug_max_length=settings.slug_max_length,
        latest_limit=settings.latest_surveys_limit,
    )
