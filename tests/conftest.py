from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from survey_management import SurveyManagementService
from survey_management.models import SurveyInformationRow


class FakeIndexTable:
    """In-memory stand-in for SurveyInformationTable."""

    def __init__(self):
        self.items = []
        self.ensure_calls = 0
        self.fail_insert = False
        self.queried_fields = []

    def ensure_exists(self):
        self.ensure_calls += 1

    def insert(self, row):
        if self.fail_insert:
            raise RuntimeError("dynamodb is down")
        self.items.append(row.to_item())

    def query_by_fields(self, field_equals):
        pairs = list(field_equals)
        self.queried_fields.append(pairs)
        return [
            SurveyInformationRow.from_item(item)
            for item in self.items
            if all(item.get(name) == value for name, value in pairs)
        ]

    def query_by_partition(self, partition):
        rows = [i for i in self.items if i["pk"] == partition]
        return [SurveyInformationRow.from_item(i) for i in sorted(rows, key=lambda i: i["sk"])]

    def query_latest(self, partition, n):
        rows = [i for i in self.items if i["pk"] == partition]
        rows.sort(key=lambda i: i["createdOn"], reverse=True)
        return [SurveyInformationRow.from_item(i) for i in rows[:n]]


class FakeDocumentContainer:
    """In-memory stand-in for SurveyDocumentContainer."""

    def __init__(self):
        self.documents = {}
        self.ensure_calls = 0

    def ensure_exists(self):
        self.ensure_calls += 1

    def exists(self, key):
        return key in self.documents

    def get(self, key):
        return self.documents.get(key)

    def put(self, key, document):
        self.documents[key] = document


def _ticking_clock():
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    ticks = count()
    return lambda: (start + timedelta(seconds=next(ticks))).isoformat()


@pytest.fixture
def index():
    return FakeIndexTable()


@pytest.fixture
def documents():
    return FakeDocumentContainer()


@pytest.fixture
def service(index, documents):
    return SurveyManagementService(
        index=index,
        documents=documents,
        partition="surveys",
        clock=_ticking_clock(),
    )
