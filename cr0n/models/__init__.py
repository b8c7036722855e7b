"""Provider bindings for the four supported vendors."""
from typing import Dict, Type

from cr0n.models.base import HttpProviderAdapter, ProviderResult, parse_json
from cr0n.models.claude import ClaudeAdapter
from cr0n.models.gemini import GeminiAdapter
from cr0n.models.grok import GrokAdapter
from cr0n.models.openai import OpenAIAdapter

# Registration order; ties in provider weight keep this order.
ADAPTERS: Dict[str, Type[HttpProviderAdapter]] = {
    "claude": ClaudeAdapter,
    "openai": OpenAIAdapter,
    "gemini": GeminiAdapter,
    "grok": GrokAdapter,
}

__all__ = [
    "ADAPTERS",
    "ClaudeAdapter",
    "GeminiAdapter",
    "GrokAdapter",
    "HttpProviderAdapter",
    "OpenAIAdapter",
    "ProviderResult",
    "parse_json",
]
