from __future__ import annotations

import asyncio
import json
import unittest
from unittest.mock import AsyncMock, patch

from pipeline.session import MISSING_TOPIC_MESSAGE, Session, SessionError, SessionStore
from schemas.ad_copy import AdGroupInput, CampaignInput, GenerationConfig, ItemPath, ItemType

AD_GROUP_RESPONSE = json.dumps({
    "adGroupName": "Shoes",
    "variants": [{"headlines": [{"text": "Fast Shoes"}], "descriptions": [{"text": "Comfy."}]}],
    "sitelinks": [{"title": "Sale", "description1": "a", "description2": "b"}],
    "callouts": [{"text": "Free Shipping"}],
})


def generated_session() -> Session:
    session = Session("key-123", provider="google")
    session.update_form(
        campaign=CampaignInput(topic="Giày"),
        ad_group_inputs=[AdGroupInput(topic="Shoes")],
        gen_config=GenerationConfig(variants=1, headlines=1, descriptions=1, sitelinks=1, callouts=1),
    )
    with patch("pipeline.ad_generator.call_llm", AsyncMock(return_value=AD_GROUP_RESPONSE)):
        asyncio.run(session.generate())
    return session


class SessionLifecycleTests(unittest.TestCase):
    def test_blank_key_is_rejected(self):
        with self.assertRaises(SessionError):
            Session("   ")

    def test_clear_forgets_key_and_results(self):
        session = generated_session()
        with patch("pipeline.session.forget_client") as forget:
            session.clear()

        forget.assert_called_once_with("key-123")
        self.assertFalse(session.active)
        self.assertEqual(session.results, [])
        with self.assertRaises(SessionError):
            asyncio.run(session.generate())

    def test_store_get_and_close(self):
        store = SessionStore()
        session = store.create("k")
        self.assertIs(store.get(session.session_id), session)

        store.close(session.session_id)
        with self.assertRaises(SessionError):
            store.get(session.session_id)
        with self.assertRaises(SessionError):
            store.close(session.session_id)


class SessionFormTests(unittest.TestCase):
    def test_ad_group_count_is_clamped_and_preserves_inputs(self):
        session = Session("k")
        session.ad_group_inputs = [AdGroupInput(topic="keep")]
        session.set_ad_group_count(3)
        self.assertEqual(len(session.ad_group_inputs), 3)
        self.assertEqual(session.ad_group_inputs[0].topic, "keep")

        session.set_ad_group_count(50)
        self.assertEqual(len(session.ad_group_inputs), 10)
        session.set_ad_group_count(0)
        self.assertEqual(len(session.ad_group_inputs), 1)
        session.set_ad_group_count("junk")
        self.assertEqual(len(session.ad_group_inputs), 1)
        session.set_ad_group_count(float("inf"))
        self.assertEqual(len(session.ad_group_inputs), 1)
        self.assertEqual(session.ad_group_inputs[0].topic, "keep")

    def test_can_generate_needs_every_topic(self):
        session = Session("k")
        session.update_form(campaign=CampaignInput(topic="Giày"), ad_group_inputs=[AdGroupInput(topic="a"), AdGroupInput()])
        self.assertFalse(session.can_generate)
        session.update_form(ad_group_inputs=[AdGroupInput(topic="a"), AdGroupInput(topic="b")])
        self.assertTrue(session.can_generate)

    def test_form_change_drops_results(self):
        session = generated_session()
        self.assertEqual(len(session.results), 1)
        session.update_form(gen_config=GenerationConfig(language="English"))
        self.assertEqual(session.results, [])


class SessionGenerationTests(unittest.TestCase):
    def test_blank_campaign_topic_raises_without_calling_model(self):
        session = Session("k")
        fake = AsyncMock()
        with patch("pipeline.ad_generator.call_llm", fake):
            with self.assertRaises(SessionError) as ctx:
                asyncio.run(session.generate())

        self.assertEqual(str(ctx.exception), MISSING_TOPIC_MESSAGE)
        self.assertEqual(session.error, MISSING_TOPIC_MESSAGE)
        fake.assert_not_awaited()

    def test_generate_passes_session_key_and_provider(self):
        session = Session("key-xyz", provider="openai", model="gpt-4.1-mini")
        session.update_form(campaign=CampaignInput(topic="Giày"))
        fake = AsyncMock(return_value=AD_GROUP_RESPONSE)
        with patch("pipeline.ad_generator.call_llm", fake):
            asyncio.run(session.generate())

        kwargs = fake.await_args.kwargs
        self.assertEqual((kwargs["api_key"], kwargs["provider"], kwargs["model"]), ("key-xyz", "openai", "gpt-4.1-mini"))
        self.assertIsNone(session.error)

    def test_failed_group_sets_banner_error(self):
        session = Session("k")
        session.update_form(campaign=CampaignInput(topic="Giày"))
        with patch("pipeline.ad_generator.call_llm", AsyncMock(return_value="API key not valid.")):
            results = asyncio.run(session.generate())

        self.assertEqual(len(results), 1)
        self.assertIn("API key not valid", session.error)

    def test_regenerate_replaces_item_in_results(self):
        session = generated_session()
        headline = session.results[0].variants[0].headlines[0]
        item_path = ItemPath(ad_group_index=0, item_type=ItemType.HEADLINE, variant_index=0, item_id=headline.id)

        fake = AsyncMock(return_value="Brand New Headline")
        with patch("pipeline.regenerator.call_llm_once", fake):
            content = asyncio.run(session.regenerate(item_path))

        self.assertEqual(content, "Brand New Headline")
        self.assertEqual(session.results[0].variants[0].headlines[0].text, "Brand New Headline")
        self.assertEqual(session.results[0].variants[0].headlines[0].id, headline.id)
        self.assertEqual(session.regenerating, set())
        self.assertIn('"Fast Shoes"', fake.await_args.args[0])

    def test_regenerate_result_is_dropped_if_item_deleted_meanwhile(self):
        session = generated_session()
        callout_id = session.results[0].callouts[0].id
        item_path = ItemPath(ad_group_index=0, item_type=ItemType.CALLOUT, item_id=callout_id)

        async def slow_call(*_args, **_kwargs):
            session.delete_item(item_path)
            return "Late callout"

        with patch("pipeline.regenerator.call_llm_once", AsyncMock(side_effect=slow_call)):
            content = asyncio.run(session.regenerate(item_path))

        self.assertEqual(content, "Late callout")
        self.assertEqual(session.results[0].callouts, [])

    def test_manual_add_edit_delete(self):
        session = generated_session()
        new_path = session.add_item(0, ItemType.CALLOUT)
        session.edit_item(new_path, text="24/7 Support")
        self.assertEqual([c.text for c in session.results[0].callouts], ["Free Shipping", "24/7 Support"])

        session.delete_item(new_path)
        self.assertEqual([c.text for c in session.results[0].callouts], ["Free Shipping"])

    def test_snapshot_is_json_friendly(self):
        snapshot = generated_session().snapshot()
        self.assertEqual(snapshot["results"][0]["adGroupName"], "Shoes")
        json.dumps(snapshot)


if __name__ == "__main__":
    unittest.main()
