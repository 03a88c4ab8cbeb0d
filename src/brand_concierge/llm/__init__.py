from .gemini_client import GeminiClient, get_generation_client, reset_generation_client

__all__ = ["GeminiClient", "get_generation_client", "reset_generation_client"]
