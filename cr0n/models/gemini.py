"""Native Gemini API binding."""
from __future__ import annotations

from typing import Any, Dict

from cr0n.models.base import HttpProviderAdapter, ProviderResult


class GeminiAdapter(HttpProviderAdapter):
    """Google Gemini via the generateContent REST endpoint."""

    id = "gemini"
    provider = "google"
    default_model = "gemini-2.0-flash"
    default_base_url = "https://generativelanguage.googleapis.com/v1beta"

    MODEL_MAP = {
        "2.5-flash": "gemini-2.5-flash",
        "2.5-pro": "gemini-2.5-pro",
        "2.0-flash": "gemini-2.0-flash",
        "1.5-flash": "gemini-1.5-flash",
        "1.5-pro": "gemini-1.5-pro",
    }

    async def _complete(self, prompt: str, system: str | None, json_mode: bool) -> ProviderResult:
        model_id = self.MODEL_MAP.get(self.model, self.model)
        url = f"{self.base_url}/models/{model_id}:generateContent?key={self.api_key}"

        generation: Dict[str, Any] = {"temperature": self.temperature}
        if json_mode:
            generation["responseMimeType"] = "application/json"
        body: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation,
        }
        if system:
            body["systemInstruction"] = {"parts": [{"text": system}]}

        result, data = await self._post(url, body, {})
        if not result.ok:
            return result

        candidates = data.get("candidates", [])
        if not candidates:
            return ProviderResult(ok=False, error="No candidates in response", duration_ms=result.duration_ms)

        parts = candidates[0].get("content", {}).get("parts", [])
        usage_meta = data.get("usageMetadata", {})
        return ProviderResult(
            text="".join(p.get("text", "") for p in parts),
            ok=True,
            duration_ms=result.duration_ms,
            usage={
                "prompt_tokens": usage_meta.get("promptTokenCount", 0),
                "completion_tokens": usage_meta.get("candidatesTokenCount", 0),
                "total_tokens": usage_meta.get("totalTokenCount", 0),
            },
        )
