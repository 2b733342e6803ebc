"""
LLM client module for OpenAI-compatible APIs.
"""

from .client import LLMClient, SupportsCompletion, create_client, is_demo_mode, resolve_api_key

__all__ = ["LLMClient", "SupportsCompletion", "create_client", "is_demo_mode", "resolve_api_key"]
