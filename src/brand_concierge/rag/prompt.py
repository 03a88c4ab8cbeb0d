from dataclasses import dataclass

from ..config import config

KNOWLEDGE_BEGIN = "---BEGIN KNOWLEDGE DOCUMENT---"
KNOWLEDGE_END = "---END KNOWLEDGE DOCUMENT---"

# BOM, zero-width space/non-joiner/joiner, word joiner, reversed BOM
INVISIBLE_PREFIX_CHARS = "\ufeff\u200b\u200c\u200d\u2060\ufffe"


@dataclass(frozen=True)
class PromptEnvelope:
    system_instruction: str
    user_prompt: str


def strip_invisible_prefix(text):
    """Remove a leading byte-order mark and other invisible prefix characters."""
    return text.lstrip(INVISIBLE_PREFIX_CHARS)


def build_persona(fallback_phrase=None, web_search=False):
    fallback_phrase = fallback_phrase or config.fallback_phrase

    rules = [
        "You MUST answer strictly from the KNOWLEDGE DOCUMENT. Do not invent brand facts, links, or values.",
        "Your conversationalReply MUST be a friendly, conversational summary (2-3 sentences) that "
        "directly references the information found in the document, including exact values such as hex codes.",
        "Set status to FOUND when the document answers the question, otherwise NOT_FOUND.",
        "Set recommendedLink to the full URL from the document that best supports the answer, or 'none'.",
    ]
    if web_search:
        rules.append(
            "If the user asks a general design question that is not brand-specific, you may use the "
            "Google Search tool to give an accurate, helpful answer. Never use search for brand facts."
        )
    rules += [
        "If the question is out of scope or the document does not contain the answer, your "
        f'conversationalReply must politely state, "{fallback_phrase}" and status must be NOT_FOUND.',
        "You MUST always return a valid JSON object matching the required schema.",
    ]
    numbered = "\n".join(f"{i}. {rule}" for i, rule in enumerate(rules, start=1))

    return f"""You are the "Brand Concierge," a warm, professional and hyper-efficient assistant for the design team.
Your core task is to answer user questions based STRICTLY on the KNOWLEDGE DOCUMENT provided by the design head.

RULES:
{numbered}
"""


def build_prompt(query, knowledge_document, fallback_phrase=None, web_search=False):
    knowledge_text = strip_invisible_prefix(knowledge_document).strip()

    user_prompt = f"""{KNOWLEDGE_BEGIN}
{knowledge_text}
{KNOWLEDGE_END}

USER QUESTION: {query}

Based on the document, provide the best conversationalReply, status, and recommendedLink.
"""
    return PromptEnvelope(
        system_instruction=build_persona(fallback_phrase, web_search),
        user_prompt=user_prompt,
    )
