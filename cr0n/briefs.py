"""Deterministic local content briefs, used when federation is unavailable."""
from __future__ import annotations

import re
from datetime import date
from typing import List, Optional

from cr0n.buckets import get_bucket_instructions
from cr0n.constants import (
    CONTENT_RULES,
    CTR_FIX,
    LOCAL_BOOST,
    MONITOR,
    RELEVANCE_REBUILD,
    SCHEMA_STACKS,
    STRIKING_DISTANCE,
    round_half_up,
)
from cr0n.types import ContentBrief, InternalLink, PageData

PILLAR_PATTERNS = (
    re.compile(r"/guide/", re.IGNORECASE),
    re.compile(r"/ultimate-", re.IGNORECASE),
    re.compile(r"/complete-", re.IGNORECASE),
    re.compile(r"/pillar/", re.IGNORECASE),
    re.compile(r"/hub/", re.IGNORECASE),
)


def capitalize_words(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:].lower() for word in text.split(" "))


class BriefGenerator:
    """Builds a ContentBrief from page metrics and the bucket's guidance."""

    def __init__(self, year: Optional[int] = None) -> None:
        self.year = year or date.today().year

    def generate(self, page: PageData, bucket: str) -> ContentBrief:
        instructions = get_bucket_instructions(bucket)
        return ContentBrief(
            url=page.url,
            target_keyword=page.primary_keyword,
            bucket=bucket,
            title_recommendations=self.title_recommendations(page, bucket),
            h1_recommendation=capitalize_words(page.primary_keyword),
            meta_description=self.meta_description(page, bucket),
            target_word_count=self.target_word_count(page),
            h2_additions=self.h2_additions(page, bucket),
            internal_links=self.internal_links(page),
            priority_tasks=list(instructions.tasks),
            schema_stack=self.schema_stack(page),
            keyword_density_target=CONTENT_RULES["keyword_density"]["target"],
            mandatory_placements=list(CONTENT_RULES["mandatory_placements"]),
            metrics_snapshot=page.metrics_snapshot(),
            status="draft",
        )

    @staticmethod
    def is_pillar(page: PageData) -> bool:
        if page.impressions > 5000:
            return True
        return any(pattern.search(page.url) for pattern in PILLAR_PATTERNS)

    def target_word_count(self, page: PageData) -> int:
        rules = CONTENT_RULES["word_count"]["pillar" if self.is_pillar(page) else "cluster"]
        return round_half_up((rules["min"] + rules["max"]) / 2)

    def title_recommendations(self, page: PageData, bucket: str) -> List[str]:
        kw = capitalize_words(page.primary_keyword)
        titles = [f"{kw}: Complete Guide"]
        if bucket in (CTR_FIX, STRIKING_DISTANCE):
            titles.append(f"{kw} [{self.year} Guide]")
            titles.append(f"{kw}: What You Need to Know [Updated]")
        titles.append(f"What is {kw}? Everything Explained")
        if page.intent == "local" or page.is_local_page:
            titles.append(f"Best {kw} in {_location(page, 'Your Area')}")
        return titles[:3]

    def meta_description(self, page: PageData, bucket: str) -> str:
        kw = page.primary_keyword
        if bucket == CTR_FIX:
            return (
                f"Discover the complete guide to {kw}. Learn proven strategies, expert tips, "
                f"and actionable steps for {self.year}. Click to start today!"
            )
        if bucket == STRIKING_DISTANCE:
            return (
                f"Everything you need to know about {kw}. In-depth coverage with examples, "
                f"comparisons, and expert insights. Updated for {self.year}."
            )
        if bucket == RELEVANCE_REBUILD:
            return (
                f"{capitalize_words(kw)} explained with the latest {self.year} updates. "
                "Fresh insights, current statistics, and modern best practices."
            )
        if bucket == LOCAL_BOOST:
            return (
                f"Find the best {kw} in {_location(page, 'your area')}. Local expertise, "
                "real reviews, and trusted recommendations. Contact us today!"
            )
        return (
            f"Comprehensive guide to {kw}. Expert strategies, tips, and insights "
            "to help you succeed. Learn more now."
        )

    def h2_additions(self, page: PageData, bucket: str) -> List[str]:
        kw = capitalize_words(page.primary_keyword)
        if bucket == CTR_FIX:
            return [f"What is {kw}?", f"Why {kw} Matters", f"Key Benefits of {kw}"]
        if bucket == STRIKING_DISTANCE:
            return [
                f"How {kw} Works",
                f"{kw} Benefits and Results",
                f"Case Study: {kw} in Action",
                f"Step-by-Step {kw} Guide",
                f"Common {kw} Mistakes to Avoid",
            ]
        if bucket == RELEVANCE_REBUILD:
            return [
                f"{kw} in {self.year}: What's Changed",
                f"Latest {kw} Trends and Statistics",
                f"Updated Best Practices for {kw}",
                f"Future of {kw}",
            ]
        if bucket == LOCAL_BOOST:
            location = _location(page, "Your Area")
            return [
                f"Top {kw} Services in {location}",
                f"Why Choose Local {kw}",
                f"{kw} Pricing in {location}",
                "Customer Reviews and Testimonials",
            ]
        if bucket == MONITOR:
            return [f"Frequently Asked Questions About {kw}", f"Expert Tips for {kw}"]
        return []

    @staticmethod
    def internal_links(page: PageData) -> List[InternalLink]:
        return [
            InternalLink(url="/related-topic-1", anchor=f"Learn more about {page.primary_keyword}"),
            InternalLink(url="/services", anchor="Our services"),
            InternalLink(url="/contact", anchor="Contact us"),
        ]

    @staticmethod
    def schema_stack(page: PageData) -> List[str]:
        intent_stack = list(SCHEMA_STACKS.get(page.intent, SCHEMA_STACKS["mixed"]))
        if page.is_local_page and "LocalBusiness" not in intent_stack:
            intent_stack.extend(["LocalBusiness", "AreaServed"])
        return list(SCHEMA_STACKS["base"]) + intent_stack


def _location(page: PageData, fallback: str) -> str:
    return page.local_keywords[0] if page.local_keywords else fallback


def generate_brief(page: PageData, bucket: str) -> ContentBrief:
    return BriefGenerator().generate(page, bucket)
