"""
Data models for the survey management service.

This module defines the survey shapes exchanged with callers (Survey, Question,
SurveyInformation) and the two persisted shapes derived from them: the index row
kept in DynamoDB and the JSON document kept in S3.  Each class provides helper
methods for converting to and from those representations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, List, Optional
import re

_ANSWER_SEPARATOR_RE = re.compile(r"[\r\n,]+")


def now_iso() -> str:
    """Return the current UTC time as an ISO 8601 formatted string."""
    return datetime.now(timezone.utc).isoformat()


class QuestionType(str, Enum):
    SIMPLE_TEXT = "SimpleText"
    MULTIPLE_CHOICE = "MultipleChoice"
    FIVE_STARS = "FiveStars"


@dataclass
class Question:
    """
    A single survey question.

    Attributes:
        text: The prompt shown to the respondent.
        type: How the question is answered.
        possible_answers: Delimited string of answer options, kept verbatim.
    """

    text: str
    type: QuestionType = QuestionType.SIMPLE_TEXT
    possible_answers: Optional[str] = None

    def answer_choices(self) -> List[str]:
        """Split ``possible_answers`` on newlines and commas, dropping blanks."""
        if not self.possible_answers:
            return []
        parts = _ANSWER_SEPARATOR_RE.split(self.possible_answers)
        return [p.strip() for p in parts if p.strip()]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "type": self.type.value,
            "possibleAnswers": self.possible_answers,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Question":
        """
        Build a question from its camelCase JSON form.

        Raises:
            ValueError: If ``data`` is not an object or names an unknown type.
        """
        if not isinstance(data, dict):
            raise ValueError("question must be an object")
        raw_type = data.get("type") or QuestionType.SIMPLE_TEXT.value
        try:
            question_type = QuestionType(raw_type)
        except ValueError:
            raise ValueError(f"unknown question type: {raw_type!r}") from None
        return cls(
            text=data.get("text") or "",
            type=question_type,
            possible_answers=data.get("possibleAnswers"),
        )


@dataclass
class SurveyInformation:
    """Summary of a published survey, without its questions."""

    slug_name: str
    title: str
    created_on: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slugName": self.slug_name,
            "title": self.title,
            "createdOn": self.created_on,
        }


@dataclass
class SurveyInformationRow:
    """
    Index row stored in DynamoDB for each published survey.

    Attributes:
        partition_key: Fixed grouping key shared by every survey of a deployment.
        slug_name: The survey slug; also the sort key.
        title: Survey title.
        created_on: ISO timestamp the survey was published at.
    """

    partition_key: str
    slug_name: str
    title: str
    created_on: str

    def to_item(self) -> Dict[str, Any]:
        """Convert the row into a DynamoDB item (dictionary)."""
        return {
            "pk": self.partition_key,
            "sk": self.slug_name,
            "slugName": self.slug_name,
            "title": self.title,
            "createdOn": self.created_on,
        }

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "SurveyInformationRow":
        return cls(
            partition_key=item["pk"],
            slug_name=item.get("slugName") or item["sk"],
            title=item.get("title", ""),
            created_on=item.get("createdOn", ""),
        )

    def to_survey_information(self) -> SurveyInformation:
        return SurveyInformation(
            slug_name=self.slug_name,
            title=self.title,
            created_on=self.created_on,
        )


@dataclass
class Survey:
    """
    A survey definition as submitted by a caller and stored as a document.

    Attributes:
        title: Survey title.
        slug_name: Unique identifier; generated from the title when omitted.
        created_on: ISO timestamp stamped at publish time.
        questions: Ordered questions.
    """

    title: str = ""
    slug_name: Optional[str] = None
    created_on: Optional[str] = None
    questions: List[Question] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slugName": self.slug_name,
            "title": self.title,
            "createdOn": self.created_on,
            "questions": [q.to_dict() for q in self.questions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Survey":
        """
        Build a survey from its camelCase JSON form.

        Raises:
            ValueError: If the payload is not an object, a text field is not a
                string, or a question is malformed.
        """
        if not isinstance(data, dict):
            raise ValueError("survey must be an object")
        for name in ("title", "slugName", "createdOn"):
            if data.get(name) is not None and not isinstance(data[name], str):
                raise ValueError(f"{name} must be a string")
        questions = data.get("questions") or []
        if not isinstance(questions, list):
            raise ValueError("questions must be a list")
        return cls(
            title=data.get("title") or "",
            slug_name=data.get("slugName"),
            created_on=data.get("createdOn"),
            questions=[Question.from_dict(q) for q in questions],
        )

    def to_row(self, partition_key: str) -> SurveyInformationRow:
        """Project the survey onto its index row; the slug must already be set."""
        if not self.slug_name:
            raise ValueError("survey has no slug")
        return SurveyInformationRow(
            partition_key=partition_key,
            slug_name=self.slug_name,
            title=self.title,
            created_on=self.created_on or "",
        )

    def to_document(self) -> Dict[str, Any]:
        """Convert the survey into the JSON document stored in S3."""
        return self.to_dict()

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Survey":
        return cls.from_dict(document)
