"""
Brand Concierge Pipeline
========================

Validates a question, composes the persona prompt around the knowledge
document, makes one structured-output call to the generation service and
normalizes the reply into a ConciergeResponse:

    question -> prompt envelope -> generate() -> extract -> parse -> normalize
"""

import json
import re
from typing import Any, Dict, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from .config import config
from .errors import InvalidRequest, UpstreamMalformed
from .llm.gemini_client import get_generation_client
from .models import LINK_SENTINEL, RESPONSE_SCHEMA, ConciergeResponse, ResponseStatus
from .rag.knowledge import load_default_knowledge_document
from .rag.prompt import build_prompt, strip_invisible_prefix
from .utils.logger import logger

# Search-engine redirect endpoints: (host pattern, path) -> query parameters holding the target
SEARCH_REDIRECTS = (
    (re.compile(r"^(www\.)?google(\.[a-z]{2,3}){1,2}$"), "/url", ("q", "url")),
    (re.compile(r"^((html|lite)\.)?duckduckgo\.com$"), "/l/", ("uddg",)),
)

# Older persona revisions answered SUCCESS for a hit
STATUS_ALIASES = {
    "FOUND": ResponseStatus.FOUND,
    "SUCCESS": ResponseStatus.FOUND,
    "NOT_FOUND": ResponseStatus.NOT_FOUND,
}


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```[a-zA-Z0-9_-]*\s*", "", text)
        text = re.sub(r"\s*```$", "", text)
    return text.strip()


def _redirect_params(parsed) -> Tuple[str, ...]:
    host = (parsed.hostname or "").lower()
    for host_pattern, path, params in SEARCH_REDIRECTS:
        if host_pattern.match(host) and parsed.path == path:
            return params
    return ()


def normalize_link(link: Any) -> str:
    """
    Unwrap search-engine redirect URLs and coerce non-URLs to the sentinel.

    ``https://www.google.com/url?q=https://example.com/doc`` becomes
    ``https://example.com/doc``; every other http(s) URL passes through
    unchanged, even when it carries a URL-valued query parameter;
    empty values, ``None``/``N/A`` and relative paths become ``"none"``.
    """
    if not isinstance(link, str):
        return LINK_SENTINEL
    link = link.strip()
    if not _is_http_url(link):
        return LINK_SENTINEL

    parsed = urlparse(link)
    params = parse_qs(parsed.query)
    for name in _redirect_params(parsed):
        for target in params.get(name, []):
            if _is_http_url(target):
                return target
    return link


def normalize_status(status: Any) -> ResponseStatus:
    if isinstance(status, str):
        return STATUS_ALIASES.get(status.strip().upper(), ResponseStatus.NOT_FOUND)
    return ResponseStatus.NOT_FOUND


def extract_payload_text(api_response: Dict[str, Any]) -> str:
    """Return the JSON text carried by the first candidate."""
    candidates = api_response.get("candidates") or []
    if not candidates:
        block_reason = (api_response.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            raise UpstreamMalformed(f"Gemini blocked the prompt: {block_reason}")
        raise UpstreamMalformed(f"API returned an empty or malformed response: {json.dumps(api_response)[:500]}")

    parts = (candidates[0].get("content") or {}).get("parts") or []
    text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
    if not text.strip():
        finish_reason = candidates[0].get("finishReason", "unknown")
        raise UpstreamMalformed(f"Gemini candidate has no content (finishReason={finish_reason}).")
    return text


def parse_payload(text: str) -> ConciergeResponse:
    try:
        payload = json.loads(_strip_code_fences(text))
    except ValueError as e:
        raise UpstreamMalformed(f"Gemini returned invalid JSON: {e}")

    if not isinstance(payload, dict):
        raise UpstreamMalformed(f"Gemini returned JSON {type(payload).__name__}, expected an object.")

    reply = payload.get("conversationalReply")
    if not isinstance(reply, str) or not reply.strip():
        raise UpstreamMalformed("Gemini response is missing conversationalReply.")

    return ConciergeResponse(
        conversational_reply=reply.strip(),
        status=normalize_status(payload.get("status")),
        recommended_link=normalize_link(payload.get("recommendedLink")),
    )


def handle(
    question: str,
    knowledge_document: Optional[str] = None,
    client=None,
    timeout: Optional[float] = None,
) -> ConciergeResponse:
    """
    Answer a question from the knowledge document.

    Args:
        question: The user's question (required, non-empty)
        knowledge_document: Inline knowledge text; the configured default is used when None
        client: Generation service client; the shared Gemini client when None
        timeout: Seconds to wait for the upstream call

    Returns:
        Normalized ConciergeResponse

    Raises:
        InvalidRequest, ConfigurationMissing, UpstreamTransportFailure,
        UpstreamMalformed, ConciergeTimeout
    """
    if not isinstance(question, str) or not question.strip():
        raise InvalidRequest('Missing "query" in request body.')

    if knowledge_document is None:
        knowledge_document = load_default_knowledge_document()
    knowledge_document = strip_invisible_prefix(knowledge_document)

    client = client or get_generation_client()

    envelope = build_prompt(
        question,
        knowledge_document,
        fallback_phrase=config.fallback_phrase,
        web_search=config.enable_web_search,
    )

    api_response = client.generate(
        envelope.system_instruction,
        envelope.user_prompt,
        RESPONSE_SCHEMA,
        timeout=timeout,
    )

    result = parse_payload(extract_payload_text(api_response))
    logger.info(f"Concierge answered with status={result.status.value}")
    return result
