"""Multi-provider brief generation with agreement scoring and weighted merge."""
from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import re
from dataclasses import replace
from itertools import combinations
from typing import Dict, Iterable, List, Optional, Sequence

from cr0n.constants import DEFAULT_CONSENSUS_THRESHOLD, round_half_up
from cr0n.errors import ConsensusError
from cr0n.federation.types import BusinessContext, ConsensusResult, ProviderAdapter, ProviderContribution
from cr0n.types import ContentBrief, PageData

logger = logging.getLogger(__name__)

TASK_PREFIX_CHARS = 30
WORD_COUNT_AGREEMENT = 0.8


def _task_key(task: str) -> str:
    return re.sub(r"\s+", " ", task.strip().lower())[:TASK_PREFIX_CHARS]


def _jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    left, right = set(a), set(b)
    union = left | right
    if not union:
        return 1.0
    return len(left & right) / len(union)


def _unique(items: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(items))


def hash_brief(brief: ContentBrief) -> str:
    """Stable fingerprint over the fields the agreement metric compares."""
    payload = {
        "keyword": brief.target_keyword,
        "word_count": brief.target_word_count,
        "h2": sorted({h.lower() for h in brief.h2_additions}),
        "schema": sorted(set(brief.schema_stack)),
        "tasks": sorted({_task_key(t) for t in brief.priority_tasks}),
    }
    encoded = json.dumps(payload, sort_keys=True).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()[:16]


def pair_agreement(a: ContentBrief, b: ContentBrief) -> float:
    """Average of word count, heading, schema and task agreement for two briefs."""
    high = max(a.target_word_count, b.target_word_count)
    if high <= 0:
        word_count = 1.0
    else:
        ratio = min(a.target_word_count, b.target_word_count) / high
        word_count = 1.0 if ratio > WORD_COUNT_AGREEMENT else ratio
    headings = _jaccard((h.lower() for h in a.h2_additions), (h.lower() for h in b.h2_additions))
    schema = _jaccard(a.schema_stack, b.schema_stack)
    tasks = _jaccard((_task_key(t) for t in a.priority_tasks), (_task_key(t) for t in b.priority_tasks))
    return (word_count + headings + schema + tasks) / 4.0


def calculate_confidence(briefs: Sequence[ContentBrief]) -> float:
    if len(briefs) <= 1:
        return 1.0
    scores = [pair_agreement(a, b) for a, b in combinations(briefs, 2)]
    return sum(scores) / len(scores)


def merge_briefs(
    contributions: Sequence[ProviderContribution],
    page: PageData,
    bucket: str,
) -> ContentBrief:
    """Merge successful contributions, ordered by weight with ties in dispatch order."""
    ordered = sorted(
        (c for c in contributions if c.brief is not None),
        key=lambda c: c.weight,
        reverse=True,
    )
    if not ordered:
        raise ConsensusError("No successful contributions to merge")
    briefs = [c.brief for c in ordered]
    primary = briefs[0]

    titles = _unique(t for brief in briefs for t in brief.title_recommendations)[:3]

    counts: Dict[str, int] = {}
    casing: Dict[str, str] = {}
    for brief in briefs:
        for heading in brief.h2_additions:
            key = heading.lower()
            counts[key] = counts.get(key, 0) + 1
            casing.setdefault(key, heading)
    # dict order is first-seen, and sorted() keeps it for equal counts
    headings = [casing[key] for key in sorted(counts, key=lambda k: counts[k], reverse=True)]

    total_weight = sum(c.weight for c in ordered)
    if total_weight > 0:
        word_count = round_half_up(sum(c.brief.target_word_count * c.weight for c in ordered) / total_weight)
    else:
        word_count = primary.target_word_count

    return ContentBrief(
        url=page.url,
        target_keyword=page.primary_keyword,
        bucket=bucket,
        title_recommendations=titles,
        h1_recommendation=primary.h1_recommendation,
        meta_description=primary.meta_description,
        target_word_count=word_count,
        h2_additions=headings,
        internal_links=list(primary.internal_links),
        priority_tasks=_unique(t for brief in briefs for t in brief.priority_tasks),
        schema_stack=_unique(s for brief in briefs for s in brief.schema_stack),
        keyword_density_target=primary.keyword_density_target,
        mandatory_placements=list(primary.mandatory_placements),
        metrics_snapshot=dict(primary.metrics_snapshot),
        status="draft",
    )


class ConsensusEngine:
    """Fans brief generation out to providers and reconciles what comes back.

    One adapter is authoritative. With several, calls run concurrently and any
    subset may fail. Two or more successes are scored for agreement: at or
    above the threshold the briefs are merged, below it the primary's brief
    is returned as is.
    """

    def __init__(self, consensus_threshold: float = DEFAULT_CONSENSUS_THRESHOLD) -> None:
        self.consensus_threshold = consensus_threshold

    async def generate_consensus(
        self,
        adapters: Sequence[ProviderAdapter],
        page: PageData,
        bucket: str,
        model_weights: Dict[str, Dict[str, float]],
        context: Optional[BusinessContext] = None,
    ) -> ConsensusResult:
        if not adapters:
            raise ConsensusError(f"No adapters supplied for {page.url}")
        # Weight changes after dispatch must not affect this round.
        row = dict(model_weights.get(bucket) or {})

        if len(adapters) == 1:
            adapter = adapters[0]
            try:
                brief = await adapter.generate_brief(page, bucket, context)
            except Exception as exc:
                logger.warning("Provider %s failed for %s: %s", adapter.id, page.url, exc)
                raise ConsensusError(f"{adapter.id} failed for {page.url}", {adapter.id: str(exc)}) from exc
            contribution = ProviderContribution(
                provider_id=adapter.id,
                weight=row.get(adapter.id, 0.0),
                brief_hash=hash_brief(brief),
                brief=brief,
            )
            return self._result(brief, 1.0, [contribution], adapter.id, "single", {})

        results = await asyncio.gather(
            *(adapter.generate_brief(page, bucket, context) for adapter in adapters),
            return_exceptions=True,
        )

        contributions: List[ProviderContribution] = []
        failures: Dict[str, str] = {}
        for adapter, result in zip(adapters, results):
            weight = row.get(adapter.id, 0.0)
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("Provider %s failed for %s: %s", adapter.id, page.url, result)
                failures[adapter.id] = str(result)
                contributions.append(ProviderContribution(provider_id=adapter.id, weight=weight, error=str(result)))
                continue
            contributions.append(
                ProviderContribution(
                    provider_id=adapter.id,
                    weight=weight,
                    brief_hash=hash_brief(result),
                    brief=result,
                )
            )

        succeeded = [c for c in contributions if c.brief is not None]
        if not succeeded:
            raise ConsensusError(f"All {len(adapters)} providers failed for {page.url}", failures)

        if len(succeeded) == 1:
            only = succeeded[0]
            return self._result(only.brief, 1.0, contributions, only.provider_id, "single", failures)

        confidence = calculate_confidence([c.brief for c in succeeded])
        primary = sorted(succeeded, key=lambda c: c.weight, reverse=True)[0]
        if confidence >= self.consensus_threshold:
            brief = merge_briefs(succeeded, page, bucket)
            strategy = "consensus"
        else:
            brief = primary.brief
            strategy = "primary"
        logger.info(
            "Consensus for %s: strategy=%s confidence=%.3f primary=%s providers=%s",
            page.url,
            strategy,
            confidence,
            primary.provider_id,
            [c.provider_id for c in succeeded],
        )
        return self._result(brief, confidence, contributions, primary.provider_id, strategy, failures)

    @staticmethod
    def _result(
        brief: ContentBrief,
        confidence: float,
        contributions: List[ProviderContribution],
        primary: str,
        strategy: str,
        failures: Dict[str, str],
    ) -> ConsensusResult:
        succeeded = [c for c in contributions if c.brief is not None]
        tagged = replace(
            brief,
            generated_by=primary,
            contributing_models=[c.provider_id for c in succeeded],
            consensus_confidence=confidence,
        )
        return ConsensusResult(
            brief=tagged,
            confidence=confidence,
            contributions=contributions,
            primary_model=primary,
            strategy=strategy,
            model_outputs={c.provider_id: c.brief for c in succeeded},
            failures=failures,
        )
