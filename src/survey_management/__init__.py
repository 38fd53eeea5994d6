"""
Survey management service: publish surveys under unique slugs and serve them back.
"""

from .config import Settings
from .errors import AlreadyPublished, ErrorKind, InvalidInput, ServiceFault, SurveyServiceError
from .models import Question, QuestionType, Survey, SurveyInformation, SurveyInformationRow
from .service import SurveyManagementService, build_service
from .slug import generate_slug

__all__ = [
    "AlreadyPublished",
    "ErrorKind",
    "InvalidInput",
    "Question",
    "QuestionType",
    "ServiceFault",
    "Settings",
    "Survey",
    "SurveyInformation",
    "SurveyInformationRow",
    "SurveyManagementService",
    "SurveyServiceError",
    "build_service",
    "generate_slug",
]
