"""Gemini request adapter.

Gemini sessions go through Google's OpenAI-compatible endpoint, so requests
and streamed chunks have the OpenAI chat shape.
"""

from .openai import OpenAIRequestAdapter

GeminiRequestAdapter = OpenAIRequestAdapter
