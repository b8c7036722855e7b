"""xAI Grok binding over its OpenAI-compatible endpoint."""
from __future__ import annotations

from cr0n.models.openai import OpenAIAdapter


class GrokAdapter(OpenAIAdapter):
    id = "grok"
    provider = "xai"
    default_model = "grok-3"
    default_base_url = "https://api.x.ai/v1"
