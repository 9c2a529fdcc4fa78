"""Inference providers (e.g. OpenAI-compatible chat completions)."""
from .base import InferenceClient
from .openai_provider import OpenAIProvider

__all__ = ["InferenceClient", "OpenAIProvider"]
