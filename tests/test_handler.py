"""
Integration tests for the Lambda handler
"""

import base64
import json

import pytest
from unittest.mock import patch, MagicMock

from brand_concierge.config import config
from brand_concierge.errors import (
    ConciergeTimeout,
    ConfigurationMissing,
    UpstreamMalformed,
    UpstreamTransportFailure,
)
from brand_concierge.handler import lambda_handler
from brand_concierge.llm.gemini_client import reset_generation_client
from brand_concierge.models import ConciergeResponse, ResponseStatus
from brand_concierge.rag.knowledge import clear_knowledge_cache


def post_event(body, encode=True):
    return {"httpMethod": "POST", "body": json.dumps(body) if encode else body}


class TestHandlerHttpContract:
    """Test cases for the inbound HTTP contract."""

    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "OPTIONS"])
    @patch('brand_concierge.handler.handle')
    def test_non_post_rejected(self, mock_handle, method):
        """Test every method except POST returns 405."""
        result = lambda_handler({"httpMethod": method}, {})

        assert result["statusCode"] == 405
        assert json.loads(result["body"]) == {"error": "Method Not Allowed"}
        mock_handle.assert_not_called()

    @pytest.mark.parametrize("event", [
        {"httpMethod": "POST"},
        post_event({}),
        post_event({"query": ""}),
        post_event({"query": "   "}),
        post_event({"query": 5}),
        post_event({"query": "Logo?", "knowledgeBaseContent": ["not", "text"]}),
        post_event("{not json", encode=False),
        post_event(["query"]),
        {"httpMethod": "POST", "isBase64Encoded": True, "body": "@@@not-base64@@@"},
        {"httpMethod": "POST", "isBase64Encoded": True, "body": base64.b64encode(b"\xff\xfe{}").decode()},
    ])
    @patch('brand_concierge.handler.handle')
    def test_bad_body_rejected(self, mock_handle, event):
        """Test client errors return 400 without calling the pipeline."""
        result = lambda_handler(event, {})

        assert result["statusCode"] == 400
        body = json.loads(result["body"])
        assert set(body) == {"error"}
        mock_handle.assert_not_called()

    @patch('brand_concierge.handler.handle')
    def test_success(self, mock_handle):
        mock_handle.return_value = ConciergeResponse(
            conversational_reply="Our primary color is #4A90E2.",
            status=ResponseStatus.FOUND,
            recommended_link="none",
        )

        result = lambda_handler(post_event({"query": "Primary color?", "knowledgeBaseContent": "KB"}), {})

        assert result["statusCode"] == 200
        assert result["headers"]["Content-Type"] == "application/json"
        assert json.loads(result["body"]) == {
            "conversationalReply": "Our primary color is #4A90E2.",
            "status": "FOUND",
            "recommendedLink": "none",
        }
        assert mock_handle.call_args[0] == ("Primary color?", "KB")

    @patch('brand_concierge.handler.handle')
    def test_function_url_event_with_base64_body(self, mock_handle):
        """Test HTTP API / Function URL events are supported."""
        mock_handle.return_value = ConciergeResponse("Hi.", ResponseStatus.NOT_FOUND, "none")
        event = {
            "requestContext": {"http": {"method": "POST"}},
            "isBase64Encoded": True,
            "body": base64.b64encode(json.dumps({"query": "Logo?"}).encode()).decode(),
        }

        result = lambda_handler(event, {})

        assert result["statusCode"] == 200
        assert mock_handle.call_args[0] == ("Logo?", None)

    @pytest.mark.parametrize("error,status", [
        (ConfigurationMissing("GEMINI_API_KEY environment variable not set."), 500),
        (UpstreamTransportFailure("API key not valid.", upstream_status=403), 500),
        (UpstreamMalformed("Gemini returned invalid JSON"), 500),
        (ConciergeTimeout("No response from Gemini within 25 seconds."), 504),
    ])
    @patch('brand_concierge.handler.handle')
    @patch('brand_concierge.handler.logger')
    def test_server_errors_are_json(self, mock_logger, mock_handle, error, status):
        """Test server-side failures keep the error/details shape."""
        mock_handle.side_effect = error

        result = lambda_handler(post_event({"query": "Logo?"}), {})

        assert result["statusCode"] == status
        body = json.loads(result["body"])
        assert body == {"error": error.summary, "details": error.details}

    @patch('brand_concierge.handler.handle')
    @patch('brand_concierge.handler.logger')
    def test_unexpected_error(self, mock_logger, mock_handle):
        mock_handle.side_effect = RuntimeError("boom")

        result = lambda_handler(post_event({"query": "Logo?"}), {})

        assert result["statusCode"] == 500
        body = json.loads(result["body"])
        assert body["details"] == "boom"
        assert body["error"]


class TestHandlerTimeout:
    """Test cases for the outbound time budget."""

    @patch('brand_concierge.handler.handle')
    @patch.object(config, "request_timeout_seconds", 25.0)
    def test_configured_timeout_without_context(self, mock_handle):
        mock_handle.return_value = ConciergeResponse("Hi.", ResponseStatus.FOUND, "none")

        lambda_handler(post_event({"query": "Logo?"}), {})

        assert mock_handle.call_args[1]["timeout"] == 25.0

    @patch('brand_concierge.handler.handle')
    @patch.object(config, "request_timeout_seconds", 25.0)
    def test_timeout_capped_by_remaining_time(self, mock_handle):
        """Test the outbound call ends before the Lambda deadline."""
        mock_handle.return_value = ConciergeResponse("Hi.", ResponseStatus.FOUND, "none")
        context = MagicMock()
        context.get_remaining_time_in_millis.return_value = 10000

        lambda_handler(post_event({"query": "Logo?"}), context)

        assert mock_handle.call_args[1]["timeout"] == 9.0


class TestHandlerEndToEnd:
    """End-to-end tests through the real pipeline with a mocked Gemini call."""

    def setup_method(self):
        clear_knowledge_cache()
        reset_generation_client()

    def teardown_method(self):
        clear_knowledge_cache()
        reset_generation_client()

    @patch('brand_concierge.concierge.get_generation_client')
    def test_brand_color_found(self, mock_get_client):
        client = MagicMock()
        client.generate.return_value = {"candidates": [{"content": {"parts": [{"text": json.dumps({
            "conversationalReply": "Our primary brand color is #4A90E2 (Indigo).",
            "status": "FOUND",
            "recommendedLink": "https://www.google.com/url?q=https://example.com/brand/colors",
        })}]}}]}
        mock_get_client.return_value = client

        result = lambda_handler(post_event({
            "query": "What is our primary brand color?",
            "knowledgeBaseContent": "Brand Colors: #4A90E2 (Indigo). Details: https://example.com/brand/colors",
        }), {})

        assert result["statusCode"] == 200
        body = json.loads(result["body"])
        assert "#4A90E2" in body["conversationalReply"]
        assert body["status"] == "FOUND"
        assert body["recommendedLink"] == "https://example.com/brand/colors"
        client.generate.assert_called_once()

    @patch('brand_concierge.handler.logger')
    @patch('brand_concierge.llm.gemini_client.urllib.request.urlopen')
    @patch.object(config, "gemini_api_key", "")
    def test_missing_credential(self, mock_urlopen, mock_logger):
        """Test a missing key is a 500 configuration error and no call is made."""
        result = lambda_handler(post_event({"query": "Logo?", "knowledgeBaseContent": "KB"}), {})

        assert result["statusCode"] == 500
        body = json.loads(result["body"])
        assert body["error"] == "Configuration or Initialization Error"
        assert "GEMINI_API_KEY" in body["details"]
        mock_urlopen.assert_not_called()
