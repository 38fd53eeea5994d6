import base64
import json
import logging
import re
from typing import Optional
from urllib.parse import unquote

from survey_management import (
    ErrorKind,
    InvalidInput,
    Settings,
    Survey,
    SurveyManagementService,
    SurveyServiceError,
    build_service,
)

# ============================================================
# Survey management HTTP API (API Gateway HTTP API v2)
#   POST /surveys                -> publish a survey
#   GET  /surveys                -> list every survey
#   GET  /surveys/latest?count=N -> newest surveys (N <= LATEST_SURVEYS_LIMIT)
#   GET  /surveys/{slug}         -> full survey document
# ============================================================

logger = logging.getLogger()
logger.setLevel(logging.INFO)

SETTINGS = Settings.from_env()

SURVEY_PATH_RE = re.compile(r"^/surveys/(?P<slug>[^/]+)/?$")

_STATUS_BY_KIND = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.ALREADY_PUBLISHED: 409,
    ErrorKind.SERVICE_FAULT: 500,
}

_service: Optional[SurveyManagementService] = None


def _get_service() -> SurveyManagementService:
    """Build the service once and reuse it across warm invocations."""
    global _service
    if _service is None:
        _service = build_service(SETTINGS)
    return _service


def _cors_headers():
    return {
        "Access-Control-Allow-Origin": SETTINGS.allow_origin,
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
    }


def _resp(status: int, body: dict):
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json", **_cors_headers()},
        "body": json.dumps(body),
    }


def _error(status: int, message: str):
    return _resp(status, {"ok": False, "error": message})


def _method(event) -> str:
    return (
        event.get("requestContext", {}).get("http", {}).get("method")
        or event.get("httpMethod")
        or ""
    ).upper()


def _path(event) -> str:
    path = event.get("rawPath") or event.get("path") or "/"
    return path.rstrip("/") or "/"


def _latest_count(event) -> int:
    qs = event.get("queryStringParameters") or {}
    limit = SETTINGS.latest_surveys_limit
    try:
        count = int(qs.get("count", limit))
    except (TypeError, ValueError):
        raise InvalidInput("count must be an integer")
    return max(1, min(count, limit))


def _parse_survey(event) -> Survey:
    raw = event.get("body") or ""
    if event.get("isBase64Encoded"):
        raw = base64.b64decode(raw).decode("utf-8")
    if not raw.strip():
        raise InvalidInput("survey is required")
    try:
        body = json.loads(raw)
    except ValueError:
        raise InvalidInput("Invalid JSON")
    try:
        return Survey.from_dict(body)
    except ValueError as e:
        raise InvalidInput(str(e))


def _route(event):
    method = _method(event)
    path = _path(event)
    service = _get_service()

    if path == "/surveys":
        if method == "POST":
            info = service.publish_survey(_parse_survey(event))
            return _resp(201, {"ok": True, "survey": info.to_dict()})
        if method == "GET":
            surveys = service.list_surveys()
            return _resp(200, {"ok": True, "surveys": [s.to_dict() for s in surveys]})
        return _error(405, "Method not allowed")

    if path == "/surveys/latest" and method == "GET":
        surveys = service.get_latest(_latest_count(event))
        return _resp(200, {"ok": True, "surveys": [s.to_dict() for s in surveys]})

    m = SURVEY_PATH_RE.match(path)
    if m and method == "GET":
        survey = service.get_survey(unquote(m.group("slug")))
        if survey is None:
            return _error(404, "Survey not found")
        return _resp(200, {"ok": True, "survey": survey.to_dict()})

    return _error(404, "Not found")


def lambda_handler(event, context):
    # CORS preflight
    if _method(event) == "OPTIONS":
        return {"statusCode": 200, "headers": _cors_headers(), "body": ""}

    try:
        return _route(event)
    except SurveyServiceError as e:
        # ServiceFault messages are generic; the cause was logged by the service
        status = _STATUS_BY_KIND.get(e.kind, 500)
        return _error(status, str(e))
    except Exception:
        logger.exception("Unhandled error for %s %s", _method(event), _path(event))
        return _error(500, "Internal error")
