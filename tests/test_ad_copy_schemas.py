from __future__ import annotations

import json
import unittest

from pydantic import ValidationError

from schemas.ad_copy import (
    AdGroupInput,
    GeneratedAdGroup,
    GenerationConfig,
    ItemPath,
    ItemType,
)


class GenerationConfigTests(unittest.TestCase):
    def test_defaults(self):
        config = GenerationConfig()
        self.assertEqual(
            (config.variants, config.headlines, config.descriptions, config.sitelinks, config.callouts),
            (2, 3, 2, 4, 4),
        )
        self.assertEqual(config.language, "Tiếng Việt")

    def test_counts_are_clamped_and_junk_is_zero(self):
        config = GenerationConfig(variants=25, headlines=-3, descriptions="abc", sitelinks="7", callouts=None)
        self.assertEqual(config.variants, 10)
        self.assertEqual(config.headlines, 0)
        self.assertEqual(config.descriptions, 0)
        self.assertEqual(config.sitelinks, 7)
        self.assertEqual(config.callouts, 0)

    def test_non_finite_counts_are_zero(self):
        config = GenerationConfig(variants=float("inf"), headlines=float("-inf"), descriptions=float("nan"))
        self.assertEqual((config.variants, config.headlines, config.descriptions), (0, 0, 0))

        config = GenerationConfig.model_validate(json.loads('{"variants": Infinity, "callouts": NaN}'))
        self.assertEqual((config.variants, config.callouts), (0, 0))

    def test_blank_language_falls_back_to_default(self):
        self.assertEqual(GenerationConfig(language="  ").language, "Tiếng Việt")
        self.assertEqual(GenerationConfig(language="English").language, "English")

    def test_config_is_immutable(self):
        config = GenerationConfig()
        with self.assertRaises(ValidationError):
            config.variants = 5


class AliasTests(unittest.TestCase):
    def test_ad_group_input_accepts_camel_case(self):
        group = AdGroupInput.model_validate({"landingPage": "https://x.vn", "toneAndMood": "Vui vẻ"})
        self.assertEqual(group.landing_page, "https://x.vn")
        self.assertEqual(group.tone_and_mood, "Vui vẻ")
        self.assertIsNone(group.topic)

    def test_generated_ad_group_dumps_camel_case(self):
        group = GeneratedAdGroup(ad_group_name="Name")
        self.assertEqual(group.model_dump(by_alias=True)["adGroupName"], "Name")
        self.assertEqual(GeneratedAdGroup.model_validate({"adGroupName": "N"}).ad_group_name, "N")

    def test_item_path_accepts_both_spellings(self):
        camel = ItemPath.model_validate({"adGroupIndex": 1, "itemType": "callout", "itemId": "x"})
        snake = ItemPath(ad_group_index=1, item_type=ItemType.CALLOUT, item_id="x")
        self.assertEqual(camel, snake)

    def test_item_path_rejects_negative_index(self):
        with self.assertRaises(ValidationError):
            ItemPath(ad_group_index=-1, item_type=ItemType.HEADLINE, item_id="x")


class ItemTypeTests(unittest.TestCase):
    def test_limits(self):
        self.assertEqual(ItemType.HEADLINE.max_chars, 30)
        self.assertEqual(ItemType.DESCRIPTION.max_chars, 90)
        self.assertEqual(ItemType.SITELINK.max_chars, 25)
        self.assertEqual(ItemType.CALLOUT.max_chars, 25)

    def test_only_headlines_and_descriptions_live_in_variants(self):
        self.assertTrue(ItemType.HEADLINE.in_variant)
        self.assertTrue(ItemType.DESCRIPTION.in_variant)
        self.assertFalse(ItemType.SITELINK.in_variant)
        self.assertFalse(ItemType.CALLOUT.in_variant)


if __name__ == "__main__":
    unittest.main()
