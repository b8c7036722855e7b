"""Shared httpx plumbing for provider bindings."""
from __future__ import annotations

import abc
import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from cr0n.constants import CONTENT_RULES
from cr0n.errors import ProviderError
from cr0n.federation.types import (
    BusinessContext,
    ContentScore,
    GeneratedContent,
    ModelAnalysis,
    ProviderAdapter,
)
from cr0n.models.prompts import (
    SYSTEM_PROMPT,
    build_analysis_prompt,
    build_brief_prompt,
    build_content_prompt,
    build_score_prompt,
)
from cr0n.types import ContentBrief, PageData

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


@dataclass
class ProviderResult:
    """Result from one provider API call."""
    text: str = ""
    ok: bool = True
    error: str | None = None
    duration_ms: float = 0.0
    usage: Dict[str, Any] | None = None


def parse_json(text: str) -> Dict[str, Any]:
    """Parse a JSON object from model output, tolerating fenced blocks and preamble."""
    candidate = text.strip()
    fenced = _FENCE.search(candidate)
    if fenced:
        candidate = fenced.group(1).strip()
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        start, end = candidate.find("{"), candidate.rfind("}")
        if start == -1 or end <= start:
            raise ValueError("no JSON object in response")
        data = json.loads(candidate[start : end + 1])
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return data


def _field(data: Dict[str, Any], key: str) -> Any:
    if key in data:
        return data[key]
    head, *rest = key.split("_")
    camel = head + "".join(part.title() for part in rest)
    return data.get(camel)


def _strings(data: Dict[str, Any], key: str, required: bool = True) -> List[str]:
    value = _field(data, key)
    if value is None and not required:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{key} must be a list")
    return [str(item) for item in value]


def _text(data: Dict[str, Any], key: str) -> str:
    value = _field(data, key)
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def _number(data: Dict[str, Any], key: str, low: float, high: float) -> float:
    value = _field(data, key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return max(low, min(high, float(value)))


class HttpProviderAdapter(ProviderAdapter):
    """Implements the four provider operations over a single ``_complete`` call.

    Subclasses only translate a prompt into the vendor's request body and the
    vendor's response back into text.
    """

    id = ""
    provider = ""
    default_model = ""
    default_base_url = ""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float = 120.0,
        temperature: float = 0.2,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or ""
        self.model = model or self.default_model
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.timeout = timeout
        self.temperature = temperature
        self.transport = transport
        self.name = f"{self.provider} {self.model}"

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    @abc.abstractmethod
    async def _complete(self, prompt: str, system: str | None, json_mode: bool) -> ProviderResult:
        ...

    async def _post(self, url: str, body: Dict[str, Any], headers: Dict[str, str]) -> tuple[ProviderResult, Dict[str, Any]]:
        """POST ``body`` and return the decoded payload, or a failed result."""
        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, json=body, headers=headers)
            duration_ms = (time.perf_counter() - start) * 1000
            if response.status_code != 200:
                return ProviderResult(
                    ok=False,
                    error=f"HTTP {response.status_code}: {response.text[:500]}",
                    duration_ms=duration_ms,
                ), {}
            return ProviderResult(duration_ms=duration_ms), response.json()
        except httpx.TimeoutException:
            duration_ms = (time.perf_counter() - start) * 1000
            return ProviderResult(
                ok=False,
                error=f"{self.id} API timeout after {self.timeout}s",
                duration_ms=duration_ms,
            ), {}
        except (httpx.HTTPError, ValueError) as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            return ProviderResult(ok=False, error=str(exc), duration_ms=duration_ms), {}

    async def _call(self, prompt: str, json_mode: bool = True) -> str:
        if not self.available:
            raise ProviderError(self.id, "API key not set")
        result = await self._complete(prompt, SYSTEM_PROMPT if json_mode else None, json_mode)
        if not result.ok:
            raise ProviderError(self.id, result.error or "unknown error")
        logger.debug("%s responded in %.0fms usage=%s", self.id, result.duration_ms, result.usage)
        return result.text

    async def _call_json(self, prompt: str) -> Dict[str, Any]:
        text = await self._call(prompt, json_mode=True)
        try:
            return parse_json(text)
        except ValueError as exc:
            raise ProviderError(self.id, f"invalid JSON response: {exc}") from exc

    async def analyze_opportunity(self, page: PageData, bucket: str) -> ModelAnalysis:
        data = await self._call_json(build_analysis_prompt(page, bucket))
        try:
            return ModelAnalysis(
                provider_id=self.id,
                bucket=bucket,
                confidence=_number(data, "confidence", 0.0, 1.0),
                priority_score=_number(data, "priority_score", 0.0, 1.0),
                recommendations=_strings(data, "recommendations"),
                key_insights=_strings(data, "key_insights"),
                suggested_actions=_strings(data, "suggested_actions"),
            )
        except ValueError as exc:
            raise ProviderError(self.id, f"schema validation failed: {exc}") from exc

    async def generate_brief(
        self,
        page: PageData,
        bucket: str,
        context: Optional[BusinessContext] = None,
    ) -> ContentBrief:
        data = await self._call_json(build_brief_prompt(page, bucket, context))
        try:
            titles = _strings(data, "title_recommendations")
            if not titles:
                raise ValueError("title_recommendations must not be empty")
            return ContentBrief(
                url=page.url,
                target_keyword=page.primary_keyword,
                bucket=bucket,
                title_recommendations=titles[:3],
                h1_recommendation=_text(data, "h1_recommendation"),
                meta_description=_text(data, "meta_description"),
                target_word_count=int(_number(data, "target_word_count", 0, float("inf"))),
                h2_additions=_strings(data, "h2_additions"),
                priority_tasks=_strings(data, "priority_tasks"),
                schema_stack=_strings(data, "schema_stack"),
                keyword_density_target=CONTENT_RULES["keyword_density"]["target"],
                mandatory_placements=list(CONTENT_RULES["mandatory_placements"]),
                metrics_snapshot=page.metrics_snapshot(),
                status="draft",
                generated_by=self.id,
            )
        except ValueError as exc:
            raise ProviderError(self.id, f"schema validation failed: {exc}") from exc

    async def score_content(self, content: str, brief: ContentBrief) -> ContentScore:
        data = await self._call_json(build_score_prompt(content, brief))
        try:
            return ContentScore(
                provider_id=self.id,
                overall=_number(data, "overall", 0, 100),
                relevance=_number(data, "relevance", 0, 100),
                readability=_number(data, "readability", 0, 100),
                seo_alignment=_number(data, "seo_alignment", 0, 100),
                suggestions=_strings(data, "suggestions", required=False),
            )
        except ValueError as exc:
            raise ProviderError(self.id, f"schema validation failed: {exc}") from exc

    async def generate_content(self, brief: ContentBrief) -> GeneratedContent:
        text = await self._call(build_content_prompt(brief), json_mode=False)
        return GeneratedContent(
            provider_id=self.id,
            content=text,
            word_count=len(text.split()),
            title=brief.title_recommendations[0] if brief.title_recommendations else brief.target_keyword,
            meta_description=brief.meta_description,
            h2_sections=list(brief.h2_additions),
        )
