"""
Concierge Configuration
-----------------------
Central configuration for the Brand Concierge Lambda, read from the
process environment. The Gemini credential is never hardcoded.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

DEFAULT_FALLBACK_PHRASE = (
    "I cannot find specific guidance on that in the current knowledge document."
)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str) -> Optional[float]:
    value = os.environ.get(name, "").strip()
    return float(value) if value else None


@dataclass
class ConciergeConfig:
    """Concierge configuration settings."""

    # Gemini Settings
    gemini_api_key: str = field(default_factory=lambda: os.environ.get("GEMINI_API_KEY", "").strip())
    gemini_model: str = field(default_factory=lambda: os.environ.get("GEMINI_MODEL", "gemini-2.5-flash"))
    gemini_api_base: str = field(
        default_factory=lambda: os.environ.get(
            "GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta"
        ).rstrip("/")
    )
    temperature: Optional[float] = field(default_factory=lambda: _env_float("GEMINI_TEMPERATURE"))

    # Outbound call budget (seconds)
    request_timeout_seconds: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT_SECONDS", "25"))
    )

    # Knowledge document: local path or s3://bucket/key
    knowledge_base_path: str = field(default_factory=lambda: os.environ.get("KNOWLEDGE_BASE_PATH", "").strip())

    # Google Search grounding for general design questions
    enable_web_search: bool = field(default_factory=lambda: _env_flag("ENABLE_WEB_SEARCH"))

    fallback_phrase: str = field(
        default_factory=lambda: os.environ.get("FALLBACK_PHRASE", DEFAULT_FALLBACK_PHRASE)
    )

    # AWS Settings
    aws_region: str = field(default_factory=lambda: os.environ.get("AWS_REGION", "ap-south-1"))

    @property
    def generate_content_url(self) -> str:
        return f"{self.gemini_api_base}/models/{self.gemini_model}:generateContent"


# Global config instance
config = ConciergeConfig()
