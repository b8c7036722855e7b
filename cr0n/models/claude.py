"""Anthropic Messages API binding."""
from __future__ import annotations

from typing import Any, Dict

from cr0n.models.base import HttpProviderAdapter, ProviderResult

ANTHROPIC_VERSION = "2023-06-01"


class ClaudeAdapter(HttpProviderAdapter):
    id = "claude"
    provider = "anthropic"
    default_model = "claude-sonnet-4-20250514"
    default_base_url = "https://api.anthropic.com/v1"

    max_tokens = 4096

    async def _complete(self, prompt: str, system: str | None, json_mode: bool) -> ProviderResult:
        body: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            body["system"] = system
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

        result, data = await self._post(f"{self.base_url}/messages", body, headers)
        if not result.ok:
            return result

        blocks = [block for block in data.get("content", []) if block.get("type") == "text"]
        if not blocks:
            return ProviderResult(ok=False, error="No text content in response", duration_ms=result.duration_ms)

        usage = data.get("usage", {})
        prompt_tokens = usage.get("input_tokens", 0)
        completion_tokens = usage.get("output_tokens", 0)
        return ProviderResult(
            text="".join(block.get("text", "") for block in blocks),
            ok=True,
            duration_ms=result.duration_ms,
            usage={
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            },
        )
