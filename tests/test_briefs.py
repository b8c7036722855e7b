"""Tests for cr0n.briefs and cr0n.buckets modules."""
import unittest

from cr0n.briefs import BriefGenerator, capitalize_words
from cr0n.buckets import BUCKET_INSTRUCTIONS, get_bucket_instructions
from cr0n.constants import ACTION_BUCKETS, CTR_FIX, LOCAL_BOOST, MONITOR, RELEVANCE_REBUILD, SCHEMA_STACKS
from cr0n.types import PageData


def _page(**kwargs):
    defaults = {"url": "https://example.com/widgets", "primary_keyword": "blue widgets"}
    defaults.update(kwargs)
    return PageData(**defaults)


class TestBucketInstructions(unittest.TestCase):
    def test_every_bucket_has_instructions(self):
        for bucket in ACTION_BUCKETS:
            hints = get_bucket_instructions(bucket)
            self.assertTrue(hints.priority_action)
            self.assertTrue(hints.tasks)

    def test_unknown_bucket_falls_back_to_monitor(self):
        self.assertIs(get_bucket_instructions("NOPE"), BUCKET_INSTRUCTIONS[MONITOR])
        self.assertIs(get_bucket_instructions(None), BUCKET_INSTRUCTIONS[MONITOR])

    def test_local_boost_mentions_schema(self):
        hints = get_bucket_instructions(LOCAL_BOOST)
        self.assertEqual(hints.priority_action, "LOCAL_OPTIMIZATION")
        self.assertIn("Add LocalBusiness schema markup", hints.tasks)


class TestBriefGenerator(unittest.TestCase):
    def setUp(self):
        self.generator = BriefGenerator(year=2026)

    def test_capitalize_words(self):
        self.assertEqual(capitalize_words("blue WIDGETS near me"), "Blue Widgets Near Me")

    def test_word_count_by_page_type(self):
        self.assertEqual(self.generator.target_word_count(_page(impressions=6000)), 2700)
        self.assertEqual(self.generator.target_word_count(_page(url="https://example.com/guide/widgets")), 2700)
        self.assertEqual(self.generator.target_word_count(_page(impressions=100)), 1300)

    def test_ctr_fix_titles(self):
        titles = self.generator.title_recommendations(_page(), CTR_FIX)
        self.assertEqual(
            titles,
            [
                "Blue Widgets: Complete Guide",
                "Blue Widgets [2026 Guide]",
                "Blue Widgets: What You Need to Know [Updated]",
            ],
        )

    def test_local_titles_use_location(self):
        page = _page(intent="local", local_keywords=("Pittsburgh",))
        titles = self.generator.title_recommendations(page, RELEVANCE_REBUILD)
        self.assertEqual(titles[-1], "Best Blue Widgets in Pittsburgh")
        self.assertLessEqual(len(titles), 3)

    def test_schema_stack_for_local_page(self):
        stack = self.generator.schema_stack(_page(is_local_page=True))
        self.assertEqual(stack[:3], ["Organization", "WebSite", "BreadcrumbList"])
        self.assertIn("LocalBusiness", stack)
        self.assertIn("AreaServed", stack)
        # shared tables stay untouched
        self.assertNotIn("LocalBusiness", SCHEMA_STACKS["mixed"])

    def test_generate(self):
        brief = self.generator.generate(_page(impressions=800, position=6), LOCAL_BOOST)
        self.assertEqual(brief.bucket, LOCAL_BOOST)
        self.assertEqual(brief.h1_recommendation, "Blue Widgets")
        self.assertIn("Top Blue Widgets Services in Your Area", brief.h2_additions)
        self.assertEqual(brief.priority_tasks, get_bucket_instructions(LOCAL_BOOST).tasks)
        self.assertIsNot(brief.priority_tasks, get_bucket_instructions(LOCAL_BOOST).tasks)
        self.assertEqual(brief.keyword_density_target, "0.6% - 1.2%")
        self.assertEqual(brief.metrics_snapshot["impressions"], 800)
        self.assertEqual(len(brief.internal_links), 3)
        self.assertIsNone(brief.generated_by)


if __name__ == "__main__":
    unittest.main()
