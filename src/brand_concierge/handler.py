import base64
import json

from .concierge import handle
from .config import config
from .errors import ConciergeError, InvalidRequest
from .utils.logger import logger

# CORS headers for API Gateway responses
CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
}

# Seconds kept back from the Lambda deadline so we can still answer with JSON
TIMEOUT_MARGIN_SECONDS = 1.0
MIN_TIMEOUT_SECONDS = 1.0


def _response(status_code, body):
    return {
        "statusCode": status_code,
        "headers": CORS_HEADERS,
        "body": json.dumps(body),
    }


def _get_method(event):
    """REST API events carry httpMethod, HTTP API / Function URL events nest it."""
    method = event.get("httpMethod") or (event.get("requestContext") or {}).get("http", {}).get("method")
    return (method or "").upper()


def _parse_body(event):
    raw = event.get("body")
    if not raw:
        raise InvalidRequest('Missing "query" in request body.')

    try:
        if event.get("isBase64Encoded"):
            raw = base64.b64decode(raw, validate=True).decode("utf-8")
        body = json.loads(raw)
    except ValueError:
        raise InvalidRequest("Request body must be valid JSON.")

    if not isinstance(body, dict):
        raise InvalidRequest("Request body must be a JSON object.")

    query = body.get("query")
    if not isinstance(query, str) or not query.strip():
        raise InvalidRequest('Missing "query" in request body.')

    knowledge = body.get("knowledgeBaseContent")
    if knowledge is not None and not isinstance(knowledge, str):
        raise InvalidRequest('"knowledgeBaseContent" must be a string.')

    return query, knowledge


def _invocation_timeout(context):
    """Configured timeout, capped by the time this invocation has left."""
    timeout = config.request_timeout_seconds
    get_remaining = getattr(context, "get_remaining_time_in_millis", None)
    if callable(get_remaining):
        remaining = get_remaining() / 1000.0 - TIMEOUT_MARGIN_SECONDS
        timeout = max(MIN_TIMEOUT_SECONDS, min(timeout, remaining))
    return timeout


def lambda_handler(event, context):
    method = _get_method(event)
    logger.info(f"Concierge request: method={method}")

    if method != "POST":
        return _response(405, {"error": "Method Not Allowed"})

    try:
        query, knowledge = _parse_body(event)
        result = handle(query, knowledge, timeout=_invocation_timeout(context))
        return _response(200, result.to_dict())

    except ConciergeError as e:
        if e.status_code >= 500:
            logger.error(f"{type(e).__name__}: {e.details}")
        else:
            logger.warning(f"Rejected request: {e.details}")
        return _response(e.status_code, e.to_body())

    except Exception as e:
        logger.exception(f"Error processing request: {e}")
        return _response(500, {
            "error": "A server error occurred while communicating with the Brand Concierge service.",
            "details": str(e),
        })
