from .prompt import PromptEnvelope, build_prompt, strip_invisible_prefix
from .knowledge import load_default_knowledge_document, clear_knowledge_cache

__all__ = [
    "PromptEnvelope",
    "build_prompt",
    "strip_invisible_prefix",
    "load_default_knowledge_document",
    "clear_knowledge_cache",
]
