#!/usr/bin/env python3
"""
cr0n Demo -- one optimization cycle over a handful of sample pages.

Run:
    python examples/demo.py

Without API keys the plan uses local briefs. Set ANTHROPIC_API_KEY,
OPENAI_API_KEY, GEMINI_API_KEY or XAI_API_KEY to federate briefs.
"""
from __future__ import annotations

import asyncio
from datetime import date, timedelta

from cr0n.config import get_config
from cr0n.pipeline import Cr0nEngine
from cr0n.types import ActionRecord, PageData


DEMO_PAGES = [
    PageData(
        url="https://example.com/emergency-plumber",
        primary_keyword="emergency plumber near me",
        clicks=40,
        impressions=4200,
        ctr=0.0095,
        position=5.2,
        conversions=6,
        freshness_score=0.4,
    ),
    PageData(
        url="https://example.com/water-heater-repair",
        primary_keyword="water heater repair",
        clicks=35,
        impressions=900,
        ctr=0.039,
        position=8.1,
        conversions=3,
        freshness_score=0.2,
    ),
    PageData(
        url="https://example.com/guide/drain-cleaning",
        primary_keyword="drain cleaning guide",
        clicks=12,
        impressions=1500,
        ctr=0.008,
        position=24.0,
        freshness_score=0.7,
    ),
    PageData(
        url="https://example.com/",
        primary_keyword="plumbing Pittsburgh, PA",
        clicks=900,
        impressions=6000,
        ctr=0.15,
        position=1.4,
        conversions=40,
    ),
]


def demo_actions(today: date) -> list[ActionRecord]:
    """Actions applied three weeks ago, ready for evaluation."""
    applied_on = (today - timedelta(days=21)).isoformat()
    return [
        ActionRecord(
            id="demo-1",
            url="https://example.com/emergency-plumber",
            action_type="CTR_FIX",
            action_date=applied_on,
            original_clicks=25,
            original_impressions=4000,
            original_ctr=0.006,
            original_position=5.5,
            model_used="claude",
        ),
        ActionRecord(
            id="demo-2",
            url="https://example.com/water-heater-repair",
            action_type="STRIKING_DISTANCE",
            action_date=applied_on,
            original_clicks=30,
            original_impressions=850,
            original_ctr=0.035,
            original_position=8.6,
        ),
    ]


def run_demo() -> None:
    today = date.today()
    engine = Cr0nEngine.from_config(get_config())
    result = asyncio.run(engine.run_cycle(DEMO_PAGES, demo_actions(today), today=today))

    print(f"\n{'=' * 72}")
    print(f"  Plan for {result.plan.date} ({engine.model_count()} providers)")
    print(f"{'=' * 72}\n")
    for task in result.plan.tasks:
        brief = task.brief
        print(f"  [{task.bucket}] {task.url}  score={task.score:.3f}")
        print(f"    Title: {brief.title_recommendations[0] if brief.title_recommendations else '-'}")
        print(f"    Words: {brief.target_word_count}  By: {brief.generated_by or 'local'}")
    print("\n  Learning log:")
    for entry in result.learning_log:
        print(f"    {entry.action}: {entry.result} ({entry.weight_adj})")
    print("\n  Content weights:")
    for key, value in result.weights.items():
        print(f"    {key:<12} {value:.4f}")
    print()


if __name__ == "__main__":
    run_demo()
