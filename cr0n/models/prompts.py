"""Prompt builders shared by every provider binding."""
from __future__ import annotations

from typing import Optional

from cr0n.buckets import get_bucket_instructions
from cr0n.federation.types import BusinessContext
from cr0n.types import ContentBrief, PageData

SYSTEM_PROMPT = (
    "You are an SEO strategist. Reply with a single JSON object only, "
    "no prose and no markdown fences."
)

ANALYSIS_SCHEMA = """Reply as JSON:
{"confidence": 0-1, "priority_score": 0-1, "recommendations": [str], "key_insights": [str], "suggested_actions": [str]}"""

BRIEF_SCHEMA = """Reply as JSON:
{"title_recommendations": [1-3 str], "h1_recommendation": str, "meta_description": str,
 "target_word_count": int, "h2_additions": [str], "priority_tasks": [str], "schema_stack": [str]}"""

SCORE_SCHEMA = """Reply as JSON:
{"overall": 0-100, "relevance": 0-100, "readability": 0-100, "seo_alignment": 0-100, "suggestions": [str]}"""


def _metrics_line(page: PageData) -> str:
    return (
        f"Position: {page.position} | Impressions: {page.impressions} | "
        f"CTR: {page.ctr * 100:.2f}%"
    )


def build_analysis_prompt(page: PageData, bucket: str) -> str:
    instructions = get_bucket_instructions(bucket)
    return (
        "Analyze this SEO opportunity and provide recommendations.\n\n"
        f"URL: {page.url}\n"
        f'Primary Keyword: "{page.primary_keyword}"\n'
        f"{_metrics_line(page)}\n"
        f"Clicks: {page.clicks} | Conversions: {page.conversions} | Intent: {page.intent}\n"
        f"Freshness Score: {page.freshness_score}\n\n"
        f"Bucket: {bucket}\n"
        f"Strategy: {instructions.instruction}\n\n"
        "Provide confidence (0-1), priority (0-1), specific recommendations, "
        "key insights, and suggested actions.\n\n"
        f"{ANALYSIS_SCHEMA}"
    )


def build_brief_prompt(page: PageData, bucket: str, context: Optional[BusinessContext] = None) -> str:
    instructions = get_bucket_instructions(bucket)
    prompt = (
        "Generate an SEO content brief.\n\n"
        f"URL: {page.url}\n"
        f'Keyword: "{page.primary_keyword}"\n'
        f"{_metrics_line(page)}\n"
        f"Intent: {page.intent}\n\n"
        f"Bucket: {bucket}\n"
        f"Strategy: {instructions.instruction}\n"
        f"Priority action: {instructions.priority_action}\n"
    )
    if context:
        extra = context.to_prompt()
        if extra:
            prompt += f"\n{extra}\n"
    prompt += (
        "\nGenerate title recommendations, H2 sections, meta description, "
        "and priority tasks.\n\n"
        f"{BRIEF_SCHEMA}"
    )
    return prompt


def build_score_prompt(content: str, brief: ContentBrief) -> str:
    return (
        "Score this content against the SEO brief.\n\n"
        f'Brief target keyword: "{brief.target_keyword}"\n'
        f"Bucket: {brief.bucket}\n"
        f"Target word count: {brief.target_word_count}\n\n"
        f"Content:\n{content[:3000]}\n\n"
        f"{SCORE_SCHEMA}"
    )


def build_content_prompt(brief: ContentBrief) -> str:
    return (
        f'Write SEO-optimized content for the keyword "{brief.target_keyword}".\n\n'
        f"Action type: {brief.bucket}\n"
        f"Target word count: {brief.target_word_count}\n"
        f"H1: {brief.h1_recommendation}\n"
        f"H2 sections: {', '.join(brief.h2_additions)}\n\n"
        "Write the full article in markdown format."
    )
