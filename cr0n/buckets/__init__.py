"""Per-bucket action hints used by local briefs and provider prompts."""
from __future__ import annotations

from dataclasses import dataclass, field

from cr0n.constants import CTR_FIX, LOCAL_BOOST, MONITOR, RELEVANCE_REBUILD, STRIKING_DISTANCE


@dataclass
class BucketInstructions:
    """Text-only guidance for one action bucket."""
    priority_action: str = ""
    instruction: str = ""
    tasks: list[str] = field(default_factory=list)


BUCKET_INSTRUCTIONS: dict[str, BucketInstructions] = {
    CTR_FIX: BucketInstructions(
        priority_action="REWRITE_META_AND_INTRO",
        instruction=(
            "The content ranks but doesn't get clicks. Rewrite the Title Tag and the first "
            'paragraph to be a "Hook" or "Direct Answer". Create 3 title variations with '
            "brackets for CTR improvement."
        ),
        tasks=[
            "Create 3 compelling title variations with brackets [2024 Guide], [Updated], etc.",
            "Rewrite meta description with clear value proposition and CTA",
            "Add a hook or direct answer in first paragraph",
            "Review featured snippet opportunity",
            "Add FAQ schema for SERP real estate",
        ],
    ),
    STRIKING_DISTANCE: BucketInstructions(
        priority_action="EXPAND_DEPTH",
        instruction=(
            "Content ranks position 4-10. Add depth to push into top 3. "
            "Focus on comprehensive coverage and internal linking."
        ),
        tasks=[
            "Add 2-3 new H2 sections covering related subtopics",
            "Expand existing sections with more detail",
            "Add internal links to 3-5 related pages",
            "Include a case study or example section",
            "Add comparison table if applicable",
            "Optimize for featured snippet with direct answers",
        ],
    ),
    RELEVANCE_REBUILD: BucketInstructions(
        priority_action="COMPLETE_OVERHAUL",
        instruction=(
            "Content has dropped in rankings or is stale. Complete refresh needed "
            "with updated information and improved structure."
        ),
        tasks=[
            "Update all statistics and data to current year",
            "Refresh introduction with current trends",
            "Add new sections covering recent developments",
            "Update internal and external links",
            "Improve page load speed and Core Web Vitals",
            "Add/update lastmod date in sitemap",
            "Consider content consolidation if competing pages exist",
        ],
    ),
    LOCAL_BOOST: BucketInstructions(
        priority_action="LOCAL_OPTIMIZATION",
        instruction=(
            "Page has local intent. Optimize for local search with "
            "location-specific content and schema."
        ),
        tasks=[
            "Add LocalBusiness schema markup",
            "Include city/region in title and H1",
            "Add location-specific content section",
            "Include local testimonials/reviews",
            "Add Google Maps embed if applicable",
            "Optimize Google Business Profile linkage",
            "Add AreaServed schema",
        ],
    ),
    MONITOR: BucketInstructions(
        priority_action="PROTECT_RANKINGS",
        instruction=(
            "Page ranks in top 3. Focus on maintaining position and "
            "protecting against competitors."
        ),
        tasks=[
            "Monitor for ranking fluctuations weekly",
            "Update content freshness signals monthly",
            "Respond to competitor content improvements",
            "Build high-quality backlinks",
            "Optimize for Core Web Vitals",
            "Add new FAQ questions as search trends evolve",
        ],
    ),
}


def get_bucket_instructions(bucket: str | None) -> BucketInstructions:
    """Look up bucket guidance. Unknown buckets fall back to MONITOR."""
    if not bucket:
        return BUCKET_INSTRUCTIONS[MONITOR]
    return BUCKET_INSTRUCTIONS.get(bucket, BUCKET_INSTRUCTIONS[MONITOR])
