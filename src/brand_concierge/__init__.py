"""
Brand Concierge
===============

Serverless handler that answers design-team questions strictly from a
brand knowledge document using Gemini structured output.
"""

__version__ = "1.0.0"
