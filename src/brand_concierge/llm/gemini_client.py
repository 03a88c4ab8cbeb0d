"""
Gemini Client
-------------
Structured-output calls to the Gemini generateContent REST API.
"""

import http.client
import json
import socket
import threading
import urllib.error
import urllib.request
from typing import Optional

from ..config import config, ConciergeConfig
from ..errors import (
    ConciergeTimeout,
    ConfigurationMissing,
    UpstreamMalformed,
    UpstreamTransportFailure,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _upstream_error_message(status: int, body: str) -> str:
    """Pull ``error.message`` out of a Gemini error body, falling back to the raw text."""
    try:
        message = json.loads(body).get("error", {}).get("message")
    except (ValueError, AttributeError):
        message = None
    return message or body or f"Gemini API failed with HTTP {status}."


class GeminiClient:
    """
    Gemini generateContent wrapper.

    Any object exposing ``generate(system_instruction, prompt, schema, timeout)``
    and returning the raw response dict can stand in for this client.
    """

    def __init__(self, settings: Optional[ConciergeConfig] = None):
        settings = settings or config
        if not settings.gemini_api_key:
            raise ConfigurationMissing("GEMINI_API_KEY environment variable not set.")

        self.api_key = settings.gemini_api_key
        self.url = settings.generate_content_url
        self.model = settings.gemini_model
        self.temperature = settings.temperature
        self.default_timeout = settings.request_timeout_seconds
        self.web_search = settings.enable_web_search

    def build_request_body(self, system_instruction: str, prompt: str, schema: dict) -> dict:
        generation_config = {
            "responseMimeType": "application/json",
            "responseSchema": schema,
        }
        if self.temperature is not None:
            generation_config["temperature"] = self.temperature

        body = {
            "systemInstruction": {"parts": [{"text": system_instruction}]},
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }
        if self.web_search:
            body["tools"] = [{"google_search": {}}]
        return body

    def generate(
        self,
        system_instruction: str,
        prompt: str,
        schema: dict,
        timeout: Optional[float] = None,
    ) -> dict:
        """
        Send one generateContent request. No retries.

        Args:
            system_instruction: Persona and rules text
            prompt: User content (knowledge document plus question)
            schema: Structured output schema for the JSON reply
            timeout: Socket timeout in seconds, applied to each blocking
                operation rather than the whole call (defaults to config)

        Returns:
            Parsed Gemini response body
        """
        if timeout is None:
            timeout = self.default_timeout
        payload = json.dumps(self.build_request_body(system_instruction, prompt, schema)).encode("utf-8")

        request = urllib.request.Request(
            self.url,
            data=payload,
            headers={
                "x-goog-api-key": self.api_key,
                "Content-Type": "application/json",
            },
            method="POST",
        )

        logger.info(f"Calling Gemini model: {self.model} (timeout={timeout}s)")

        try:
            with urllib.request.urlopen(request, timeout=timeout) as response:
                raw = response.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            error_body = e.read().decode("utf-8", errors="replace")
            logger.error(f"Gemini API error: {e.code} - {error_body}")
            raise UpstreamTransportFailure(_upstream_error_message(e.code, error_body), upstream_status=e.code)
        except urllib.error.URLError as e:
            if isinstance(e.reason, (socket.timeout, TimeoutError)):
                logger.error(f"Gemini API timed out after {timeout}s")
                raise ConciergeTimeout(f"No response from Gemini within {timeout} seconds.")
            logger.error(f"Gemini API network error: {e.reason}")
            raise UpstreamTransportFailure(f"Could not reach Gemini API: {e.reason}")
        except (socket.timeout, TimeoutError):
            logger.error(f"Gemini API timed out after {timeout}s")
            raise ConciergeTimeout(f"No response from Gemini within {timeout} seconds.")
        except (http.client.HTTPException, ConnectionError) as e:
            logger.error(f"Gemini API connection error: {e!r}")
            raise UpstreamTransportFailure(f"Could not reach Gemini API: {e!r}")

        try:
            return json.loads(raw)
        except ValueError:
            raise UpstreamMalformed(f"Gemini returned a non-JSON body: {raw[:500]}")


_client: Optional[GeminiClient] = None
_client_lock = threading.Lock()


def get_generation_client() -> GeminiClient:
    """Lazily construct the shared Gemini client (once per process)."""
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                key = config.gemini_api_key
                logger.info("GEMINI_API_KEY check: " + (f"key found (length: {len(key)})" if key else "key NOT found"))
                _client = GeminiClient(config)
    return _client


def reset_generation_client() -> None:
    """Forget the shared client so the next call rebuilds it from config."""
    global _client
    with _client_lock:
        _client = None
