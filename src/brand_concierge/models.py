from dataclasses import dataclass
from enum import Enum
from typing import Optional

LINK_SENTINEL = "none"


class ResponseStatus(Enum):
    """Whether the knowledge document answered the question."""
    FOUND = "FOUND"
    NOT_FOUND = "NOT_FOUND"


# Structured output schema declared to Gemini (OpenAPI subset)
RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "conversationalReply": {
            "type": "STRING",
            "description": "Friendly, conversational summary (2-3 sentences) of the answer from the knowledge document.",
        },
        "status": {
            "type": "STRING",
            "enum": [s.value for s in ResponseStatus],
            "description": "'FOUND' if the knowledge document answers the question, 'NOT_FOUND' otherwise.",
        },
        "recommendedLink": {
            "type": "STRING",
            "description": "Full URL of the most relevant resource from the knowledge document, or 'none'.",
        },
    },
    "required": ["conversationalReply", "status", "recommendedLink"],
}


@dataclass(frozen=True)
class ConciergeRequest:
    question: str
    knowledge_document: Optional[str] = None


@dataclass(frozen=True)
class ConciergeResponse:
    conversational_reply: str
    status: ResponseStatus
    recommended_link: str = LINK_SENTINEL

    def to_dict(self) -> dict:
        return {
            "conversationalReply": self.conversational_reply,
            "status": self.status.value,
            "recommendedLink": self.recommended_link,
        }
