import io
import logging
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from survey_management import (
    AlreadyPublished,
    ErrorKind,
    InvalidInput,
    Question,
    ServiceFault,
    Settings,
    Survey,
    SurveyManagementService,
    generate_slug,
)
from survey_management import service as service_module
from survey_management.s3_repo import SurveyDocumentContainer


def test_publish_generates_slug_from_title(service, index, documents):
    info = service.publish_survey(Survey(title="Café Survey!", questions=[Question("Why?")]))

    assert info.slug_name == generate_slug("Café Survey!", 100) == "cafe-survey"
    assert info.title == "Café Survey!"
    assert info.created_on == "2026-01-01T00:00:00+00:00"
    assert documents.documents["cafe-survey"]["questions"][0]["text"] == "Why?"
    assert index.items[0]["pk"] == "surveys"
    assert index.ensure_calls == 1
    assert documents.ensure_calls == 1


def test_publish_stamps_survey_in_place(service):
    survey = Survey(title="Stamped")
    service.publish_survey(survey)
    assert survey.slug_name == "stamped"
    assert survey.created_on is not None


def test_publish_uses_explicit_slug(service, documents):
    info = service.publish_survey(Survey(title="Whatever", slug_name="my-own-slug"))
    assert info.slug_name == "my-own-slug"
    assert "my-own-slug" in documents.documents


def test_publish_with_slug_and_no_title(service):
    info = service.publish_survey(Survey(slug_name="untitled"))
    assert info.slug_name == "untitled"
    assert info.title == ""


def test_publish_none_is_invalid(service, index):
    with pytest.raises(InvalidInput):
        service.publish_survey(None)
    assert index.ensure_calls == 0


def test_publish_without_title_or_slug_is_invalid(service, index, documents):
    with pytest.raises(InvalidInput) as exc:
        service.publish_survey(Survey(title="", slug_name=""))
    assert exc.value.kind is ErrorKind.INVALID_INPUT
    assert index.ensure_calls == 0
    assert documents.documents == {}


def test_publish_title_without_slug_characters_is_invalid(service):
    with pytest.raises(InvalidInput):
        service.publish_survey(Survey(title="???"))


def test_publish_same_slug_twice(service, index, documents):
    service.publish_survey(Survey(title="Team Survey"))

    with pytest.raises(AlreadyPublished) as exc:
        service.publish_survey(Survey(title="team survey", questions=[Question("Other")]))

    assert exc.value.kind is ErrorKind.ALREADY_PUBLISHED
    assert exc.value.slug_name == "team-survey"
    assert len(index.items) == 1
    assert documents.documents["team-survey"]["questions"] == []


class _InMemoryS3:
    """Just enough of an S3 client for SurveyDocumentContainer.put/get."""

    def __init__(self):
        self.objects = {}

    def put_object(self, Bucket, Key, Body, **kwargs):
        self.objects[(Bucket, Key)] = Body

    def get_object(self, Bucket, Key):
        if (Bucket, Key) not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": Key}}, "GetObject")
        return {"Body": io.BytesIO(self.objects[(Bucket, Key)])}

    def head_bucket(self, Bucket):
        return {}


def test_same_slug_in_two_partitions_keeps_both_documents(index):
    s3 = _InMemoryS3()
    a = SurveyManagementService(
        index, SurveyDocumentContainer("surveys", client=s3, prefix="tenant-a"), partition="tenant-a"
    )
    b = SurveyManagementService(
        index, SurveyDocumentContainer("surveys", client=s3, prefix="tenant-b"), partition="tenant-b"
    )

    a.publish_survey(Survey(title="Shared"))
    assert b.publish_survey(Survey(title="Shared", questions=[Question("B only")])).slug_name == "shared"

    assert a.get_survey("shared").questions == []
    assert [q.text for q in b.get_survey("shared").questions] == ["B only"]
    assert set(s3.objects) == {("surveys", "tenant-a/shared.json"), ("surveys", "tenant-b/shared.json")}


def test_build_service_scopes_documents_to_partition(monkeypatch):
    monkeypatch.setattr(service_module.boto3, "resource", lambda *a, **kw: MagicMock())
    monkeypatch.setattr(service_module.boto3, "client", lambda *a, **kw: MagicMock())

    svc = service_module.build_service(Settings(partition="tenant-a", bucket_name="shared-bucket"))

    assert svc.partition == "tenant-a"
    assert svc.documents.object_key("team") == "tenant-a/team.json"


def test_publish_checks_existing_slug_by_key(service, index):
    service.publish_survey(Survey(title="Keyed"))
    assert index.queried_fields == [[("pk", "surveys"), ("sk", "keyed")]]


def test_publish_non_string_title_is_invalid(service, index):
    with pytest.raises(InvalidInput):
        service.publish_survey(Survey(title=5))
    assert index.ensure_calls == 0


@pytest.mark.parametrize("slug", ["   ", "a/b", 42])
def test_publish_unfetchable_slug_is_invalid(service, documents, slug):
    with pytest.raises(InvalidInput):
        service.publish_survey(Survey(title="Fine title", slug_name=slug))
    assert documents.documents == {}


def test_get_survey_slug_with_slash_is_invalid(service):
    with pytest.raises(InvalidInput):
        service.get_survey("tenant-b/shared")


def test_publish_store_failure_becomes_service_fault(service, index, documents, caplog):
    index.fail_insert = True

    with caplog.at_level(logging.ERROR):
        with pytest.raises(ServiceFault) as exc:
            service.publish_survey(Survey(title="Doomed"))

    assert exc.value.kind is ErrorKind.SERVICE_FAULT
    assert "dynamodb is down" not in str(exc.value)
    assert exc.value.__cause__ is None
    assert exc.value.__suppress_context__
    # the document write happened first and is left in place
    assert "doomed" in documents.documents
    assert index.items == []
    assert "doomed" in caplog.text
    assert "dynamodb is down" in caplog.text


def test_list_surveys(service, index):
    service.publish_survey(Survey(title="Beta"))
    service.publish_survey(Survey(title="Alpha"))

    surveys = service.list_surveys()

    assert [s.slug_name for s in surveys] == ["alpha", "beta"]
    assert index.ensure_calls == 3


def test_list_surveys_empty(service):
    assert service.list_surveys() == []


def test_list_surveys_failure(service, index):
    def boom(partition):
        raise RuntimeError("throttled")

    index.query_by_partition = boom
    with pytest.raises(ServiceFault):
        service.list_surveys()


def test_get_latest_surveys_caps_at_ten(service):
    for i in range(15):
        service.publish_survey(Survey(title=f"Survey {i}"))

    latest = service.get_latest_surveys()

    assert len(latest) == 10
    assert latest[0].slug_name == "survey-14"
    assert latest[-1].slug_name == "survey-5"


def test_get_latest_parameterized(service):
    for i in range(4):
        service.publish_survey(Survey(title=f"Survey {i}"))
    assert [s.slug_name for s in service.get_latest(2)] == ["survey-3", "survey-2"]


def test_get_latest_rejects_non_positive(service):
    with pytest.raises(InvalidInput):
        service.get_latest(0)


def test_get_survey_round_trip(service):
    service.publish_survey(Survey(title="Full Body", questions=[Question("Q1")]))

    survey = service.get_survey("full-body")

    assert survey.title == "Full Body"
    assert survey.questions[0].text == "Q1"


def test_get_survey_missing_returns_none(service):
    assert service.get_survey("never-published") is None


@pytest.mark.parametrize("slug", ["", "   ", None])
def test_get_survey_blank_slug_is_invalid(service, slug):
    with pytest.raises(InvalidInput):
        service.get_survey(slug)


def test_get_survey_corrupt_document(service, documents):
    documents.documents["broken"] = {"title": "x", "questions": [{"text": "q", "type": "Nope"}]}
    with pytest.raises(ServiceFault):
        service.get_survey("broken")
