"""Action bucketer: assigns every page to exactly one bucket."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from cr0n.constants import (
    ACTION_BUCKETS,
    CITY_PATTERNS,
    CTR_FIX,
    DEFAULT_CTR_CURVE,
    LOCAL_BOOST,
    LOCAL_KEYWORDS,
    MONITOR,
    RELEVANCE_REBUILD,
    SERVICE_AREA_PATTERNS,
    STRIKING_DISTANCE,
    get_expected_ctr,
    merge_criteria,
)
from cr0n.types import PageData


class Bucketer:
    """Classifies pages with a fixed precedence.

    MONITOR wins for pages already in the top band, then CTR_FIX,
    STRIKING_DISTANCE, LOCAL_BOOST and RELEVANCE_REBUILD. Anything left
    falls back to MONITOR.
    """

    def __init__(
        self,
        criteria: Optional[Dict[str, Dict[str, Any]]] = None,
        ctr_curve: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.criteria = merge_criteria(criteria)
        self.ctr_curve = {**DEFAULT_CTR_CURVE, **(ctr_curve or {})}

    def is_monitor(self, page: PageData) -> bool:
        return page.position <= self.criteria[MONITOR]["max_position"]

    def is_ctr_fix(self, page: PageData) -> bool:
        rule = self.criteria[CTR_FIX]
        expected = get_expected_ctr(page.position, self.ctr_curve)
        return (
            page.impressions >= rule["min_impressions"]
            and page.ctr < expected * (1 - rule["ctr_gap_threshold"])
        )

    def _in_band(self, page: PageData, bucket: str) -> bool:
        rule = self.criteria[bucket]
        return (
            rule["min_position"] <= page.position <= rule["max_position"]
            and page.impressions >= rule["min_impressions"]
        )

    def is_striking_distance(self, page: PageData) -> bool:
        return self._in_band(page, STRIKING_DISTANCE)

    def is_relevance_rebuild(self, page: PageData) -> bool:
        return self._in_band(page, RELEVANCE_REBUILD)

    def is_local_boost(self, page: PageData) -> bool:
        rule = self.criteria[LOCAL_BOOST]
        if rule.get("requires_local_intent", True):
            local = page.is_local_page or page.intent == "local" or self.detect_local_intent(page)
            if not local:
                return False
        return page.position > rule["position_above"]

    @staticmethod
    def detect_local_intent(page: PageData) -> bool:
        text = f"{page.url} {page.primary_keyword}"
        lowered = text.lower()
        if any(keyword in lowered for keyword in LOCAL_KEYWORDS):
            return True
        # The "City, ST" pattern is case sensitive, so match on the raw text.
        if any(pattern.search(text) for pattern in CITY_PATTERNS + SERVICE_AREA_PATTERNS):
            return True
        return bool(page.local_keywords)

    @staticmethod
    def extract_local_keywords(page: PageData) -> List[str]:
        text = f"{page.url} {page.primary_keyword}"
        found: List[str] = []
        for pattern in CITY_PATTERNS:
            match = pattern.search(text)
            if match:
                found.append(match.group(0))
        lowered = text.lower()
        found.extend(keyword for keyword in LOCAL_KEYWORDS if keyword in lowered)
        return list(dict.fromkeys(found))

    def classify(self, page: PageData) -> str:
        if self.is_monitor(page):
            return MONITOR
        if self.is_ctr_fix(page):
            return CTR_FIX
        if self.is_striking_distance(page):
            return STRIKING_DISTANCE
        if self.is_local_boost(page):
            return LOCAL_BOOST
        if self.is_relevance_rebuild(page):
            return RELEVANCE_REBUILD
        return MONITOR

    def classify_all(self, pages: Iterable[PageData]) -> List[Tuple[PageData, str]]:
        return [(page, self.classify(page)) for page in pages]

    def group_by_bucket(self, pages: Iterable[PageData]) -> Dict[str, List[PageData]]:
        groups: Dict[str, List[PageData]] = {bucket: [] for bucket in ACTION_BUCKETS}
        for page in pages:
            groups[self.classify(page)].append(page)
        return groups

    def distribution(self, pages: Iterable[PageData]) -> Dict[str, int]:
        return {bucket: len(items) for bucket, items in self.group_by_bucket(pages).items()}

    def set_criteria(self, criteria: Dict[str, Dict[str, Any]]) -> None:
        for bucket, values in criteria.items():
            if bucket in self.criteria and isinstance(values, dict):
                self.criteria[bucket].update(values)


def classify_bucket(page: PageData, criteria: Optional[Dict[str, Dict[str, Any]]] = None) -> str:
    return Bucketer(criteria).classify(page)
