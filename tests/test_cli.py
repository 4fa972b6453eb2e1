from __future__ import annotations

import argparse
import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, patch

import main

AD_GROUP_RESPONSE = json.dumps({
    "adGroupName": "Shoes",
    "variants": [{"headlines": [{"text": "Fast Shoes"}], "descriptions": [{"text": "Comfy."}]}],
    "sitelinks": [],
    "callouts": [],
})


class CliTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.out_dir = Path(self._tmp.name)
        self._patch = patch("main.config.OUTPUT_DIR", self.out_dir)
        self._patch.start()

    def tearDown(self):
        self._patch.stop()
        self._tmp.cleanup()

    def _write_input(self) -> Path:
        path = self.out_dir / "campaign.json"
        path.write_text(json.dumps({
            "campaign": {"topic": "Giày thể thao"},
            "ad_groups": [{"topic": "Shoes", "landingPage": "https://example.vn"}],
            "config": {"variants": 1, "headlines": 1, "descriptions": 1, "sitelinks": 0, "callouts": 0},
        }), encoding="utf-8")
        return path

    def test_generate_saves_output_and_csv(self):
        args = argparse.Namespace(
            input=str(self._write_input()), csv=str(self.out_dir / "ads.csv"),
            api_key="k", provider=None, model=None,
        )
        with patch("pipeline.ad_generator.call_llm", AsyncMock(return_value=AD_GROUP_RESPONSE)):
            main.run_generate(args)

        saved = json.loads((self.out_dir / main.OUTPUT_FILE).read_text(encoding="utf-8"))
        self.assertEqual(saved["results"][0]["adGroupName"], "Shoes")
        self.assertEqual(saved["ad_groups"][0]["landingPage"], "https://example.vn")
        self.assertTrue((self.out_dir / "ads.csv").exists())

    def test_regenerate_updates_saved_output(self):
        with patch("pipeline.ad_generator.call_llm", AsyncMock(return_value=AD_GROUP_RESPONSE)):
            main.run_generate(argparse.Namespace(
                input=str(self._write_input()), csv=None, api_key="k", provider=None, model=None,
            ))
        saved = json.loads((self.out_dir / main.OUTPUT_FILE).read_text(encoding="utf-8"))
        headline_id = saved["results"][0]["variants"][0]["headlines"][0]["id"]

        args = argparse.Namespace(
            ad_group=0, type="headline", variant=0, item_id=headline_id,
            api_key="k", provider=None, model=None,
        )
        with patch("pipeline.regenerator.call_llm_once", AsyncMock(return_value="Run Faster")):
            main.run_regenerate(args)

        saved = json.loads((self.out_dir / main.OUTPUT_FILE).read_text(encoding="utf-8"))
        headline = saved["results"][0]["variants"][0]["headlines"][0]
        self.assertEqual((headline["id"], headline["text"]), (headline_id, "Run Faster"))

    def test_export_without_saved_output_exits(self):
        with self.assertRaises(SystemExit):
            main.run_export(argparse.Namespace(csv=None))

    def test_length_cell_marks_over_limit(self):
        self.assertEqual(main._length_cell("x" * 31, 30), "[red]31/30[/red]")
        self.assertEqual(main._length_cell("ok", 30), "[green]2/30[/green]")


if __name__ == "__main__":
    unittest.main()
