"""OpenAI Chat Completions binding (also the base for OpenAI-compatible APIs)."""
from __future__ import annotations

from typing import Any, Dict, List

from cr0n.models.base import HttpProviderAdapter, ProviderResult


class OpenAIAdapter(HttpProviderAdapter):
    id = "openai"
    provider = "openai"
    default_model = "gpt-4o"
    default_base_url = "https://api.openai.com/v1"

    async def _complete(self, prompt: str, system: str | None, json_mode: bool) -> ProviderResult:
        messages: List[Dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        body: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
        }
        if json_mode:
            body["response_format"] = {"type": "json_object"}
        headers = {"Authorization": f"Bearer {self.api_key}"}

        result, data = await self._post(f"{self.base_url}/chat/completions", body, headers)
        if not result.ok:
            return result

        choices = data.get("choices", [])
        if not choices:
            return ProviderResult(ok=False, error="No choices in response", duration_ms=result.duration_ms)

        usage = data.get("usage", {})
        return ProviderResult(
            text=choices[0].get("message", {}).get("content") or "",
            ok=True,
            duration_ms=result.duration_ms,
            usage={
                "prompt_tokens": usage.get("prompt_tokens", 0),
                "completion_tokens": usage.get("completion_tokens", 0),
                "total_tokens": usage.get("total_tokens", 0),
            },
        )
