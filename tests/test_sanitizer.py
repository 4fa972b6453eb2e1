from __future__ import annotations

import unittest

from pipeline.sanitizer import (
    FAILED_AD_GROUP_NAME,
    GENERATION_FAILED,
    UNTITLED_AD_GROUP,
    failed_ad_group,
    new_item_id,
    sanitize_ad_group,
)
from schemas.ad_copy import AdGroupInput, GeneratedAdGroup, GenerationConfig


def all_ids(group: GeneratedAdGroup) -> list[str]:
    ids = []
    for variant in group.variants:
        ids.extend(h.id for h in variant.headlines)
        ids.extend(d.id for d in variant.descriptions)
    ids.extend(s.id for s in group.sitelinks)
    ids.extend(c.id for c in group.callouts)
    return ids


class SanitizeAdGroupTests(unittest.TestCase):
    def test_well_formed_response_is_kept(self):
        config = GenerationConfig(variants=1, headlines=2, descriptions=1, sitelinks=1, callouts=1)
        data = {
            "adGroupName": "Running Shoes",
            "variants": [{
                "headlines": [{"text": "Fast Shoes"}, {"text": "Run Further"}],
                "descriptions": [{"text": "Lightweight shoes for every runner."}],
            }],
            "sitelinks": [{"title": "Sale", "description1": "Up to 50% off", "description2": "This week only"}],
            "callouts": [{"text": "Free Shipping"}],
        }

        group = sanitize_ad_group(data, config)

        self.assertEqual(group.ad_group_name, "Running Shoes")
        self.assertEqual([h.text for h in group.variants[0].headlines], ["Fast Shoes", "Run Further"])
        self.assertEqual(group.variants[0].descriptions[0].text, "Lightweight shoes for every runner.")
        self.assertEqual(group.sitelinks[0].description2, "This week only")
        self.assertEqual(group.callouts[0].text, "Free Shipping")

    def test_extra_items_are_truncated_to_configured_counts(self):
        config = GenerationConfig(variants=1, headlines=3, descriptions=2, sitelinks=0, callouts=2)
        data = {
            "adGroupName": "X",
            "variants": [
                {"headlines": [{"text": f"H{i}"} for i in range(5)], "descriptions": [{"text": "D"}] * 4},
                {"headlines": [{"text": "other"}], "descriptions": []},
            ],
            "sitelinks": [{"title": "S"}],
            "callouts": [{"text": f"C{i}"} for i in range(6)],
        }

        group = sanitize_ad_group(data, config)

        self.assertEqual(len(group.variants), 1)
        self.assertEqual([h.text for h in group.variants[0].headlines], ["H0", "H1", "H2"])
        self.assertEqual(len(group.variants[0].descriptions), 2)
        self.assertEqual(group.sitelinks, [])
        self.assertEqual([c.text for c in group.callouts], ["C0", "C1"])

    def test_fewer_items_than_asked_are_not_padded(self):
        config = GenerationConfig(variants=3, headlines=3)
        group = sanitize_ad_group({"variants": [{"headlines": [{"text": "only"}]}]}, config)

        self.assertEqual(len(group.variants), 1)
        self.assertEqual(len(group.variants[0].headlines), 1)
        self.assertEqual(group.variants[0].descriptions, [])

    def test_missing_fields_become_empty_strings(self):
        config = GenerationConfig(variants=1, headlines=2, sitelinks=1, callouts=1)
        data = {
            "adGroupName": "Partial",
            "variants": [{"headlines": [{}, {"text": 42}]}],
            "sitelinks": [{"title": "Only title", "description1": None}],
            "callouts": ["not an object"],
        }

        group = sanitize_ad_group(data, config)

        self.assertEqual([h.text for h in group.variants[0].headlines], ["", ""])
        self.assertEqual(group.sitelinks[0].title, "Only title")
        self.assertEqual(group.sitelinks[0].description1, "")
        self.assertEqual(group.sitelinks[0].description2, "")
        self.assertEqual(group.callouts[0].text, "")

    def test_non_object_inputs_give_untitled_empty_group(self):
        config = GenerationConfig()
        for junk in (None, "text", 7, [], {"variants": "nope", "sitelinks": {}, "callouts": None}):
            with self.subTest(junk=junk):
                group = sanitize_ad_group(junk, config)
                self.assertEqual(group.ad_group_name, UNTITLED_AD_GROUP)
                self.assertEqual(group.variants, [])
                self.assertEqual(group.sitelinks, [])
                self.assertEqual(group.callouts, [])

    def test_non_string_name_is_untitled(self):
        group = sanitize_ad_group({"adGroupName": 123}, GenerationConfig())
        self.assertEqual(group.ad_group_name, UNTITLED_AD_GROUP)

    def test_model_ids_are_ignored_and_fresh_ids_are_unique(self):
        config = GenerationConfig(variants=2, headlines=3, descriptions=2, sitelinks=2, callouts=2)
        variant = {
            "headlines": [{"id": "same", "text": "h"}] * 3,
            "descriptions": [{"id": "same", "text": "d"}] * 2,
        }
        data = {
            "variants": [variant, variant],
            "sitelinks": [{"id": "same", "title": "t"}] * 2,
            "callouts": [{"id": "same", "text": "c"}] * 2,
        }

        ids = all_ids(sanitize_ad_group(data, config))

        self.assertEqual(len(ids), 14)
        self.assertEqual(len(set(ids)), 14)
        self.assertNotIn("same", ids)


class FailedAdGroupTests(unittest.TestCase):
    def test_placeholder_matches_configured_counts(self):
        config = GenerationConfig(variants=2, headlines=3, descriptions=2, sitelinks=4, callouts=1)
        group = failed_ad_group(AdGroupInput(topic="Giày nữ"), config)

        self.assertEqual(group.ad_group_name, "Giày nữ")
        self.assertEqual(len(group.variants), 2)
        self.assertEqual(len(group.variants[0].headlines), 3)
        self.assertEqual(len(group.variants[1].descriptions), 2)
        self.assertEqual(len(group.sitelinks), 4)
        self.assertEqual(len(group.callouts), 1)
        self.assertTrue(all(h.text == GENERATION_FAILED for v in group.variants for h in v.headlines))
        self.assertEqual(group.sitelinks[0].description2, GENERATION_FAILED)

    def test_zero_counts_still_give_one_variant_headline_and_description(self):
        config = GenerationConfig(variants=0, headlines=0, descriptions=0, sitelinks=0, callouts=0)
        group = failed_ad_group(AdGroupInput(), config)

        self.assertEqual(group.ad_group_name, FAILED_AD_GROUP_NAME)
        self.assertEqual(len(group.variants), 1)
        self.assertEqual(len(group.variants[0].headlines), 1)
        self.assertEqual(len(group.variants[0].descriptions), 1)
        self.assertEqual(group.sitelinks, [])
        self.assertEqual(group.callouts, [])

    def test_placeholder_ids_are_unique(self):
        group = failed_ad_group(AdGroupInput(topic="t"), GenerationConfig())
        ids = all_ids(group)
        self.assertEqual(len(ids), len(set(ids)))


class NewItemIdTests(unittest.TestCase):
    def test_ids_do_not_collide(self):
        ids = {new_item_id() for _ in range(1000)}
        self.assertEqual(len(ids), 1000)
        self.assertTrue(all(i.startswith("item-") for i in ids))


if __name__ == "__main__":
    unittest.main()
