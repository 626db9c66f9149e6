import json
import tempfile
import unittest
from pathlib import Path

import yaml
from pydantic import ValidationError

from news_digest.config import (
    DEFAULT_CONFIG,
    DEFAULT_FEEDS,
    load_config,
    load_feed_file,
    parse_feed_records,
    resolve_feeds,
)
from news_digest.core.models import FeedSource
from news_digest.exceptions import ConfigError, FeedFileError


class FeedSourceTests(unittest.TestCase):
    def test_category_defaults_to_general(self):
        self.assertEqual(FeedSource(name="A", url="https://a/").category, "general")
        self.assertEqual(FeedSource(name="A", url="https://a/", category=None).category, "general")
        self.assertEqual(FeedSource(name="A", url="https://a/", category="  ").category, "general")

    def test_is_immutable(self):
        feed = FeedSource(name="A", url="https://a/", category="tech")
        with self.assertRaises(ValidationError):
            feed.name = "B"

    def test_name_and_url_are_required(self):
        with self.assertRaises(ValidationError):
            FeedSource(name="", url="https://a/")
        with self.assertRaises(ValidationError):
            FeedSource.model_validate({"name": "A"})


class LoadConfigTests(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp_dir.name)

    def tearDown(self):
        self.tmp_dir.cleanup()

    def test_defaults_without_file(self):
        config = load_config(None)
        self.assertEqual(config, DEFAULT_CONFIG)
        config["time_filter"]["hours"] = 1
        self.assertEqual(DEFAULT_CONFIG["time_filter"]["hours"], 24)

    def test_file_is_merged_over_defaults(self):
        path = self.root / "config.yaml"
        path.write_text(yaml.safe_dump({"time_filter": {"hours": 6}, "fetch": {"max_workers": 4}}), encoding="utf-8")

        config = load_config(str(path))
        self.assertEqual(config["time_filter"]["hours"], 6)
        self.assertEqual(config["fetch"]["max_workers"], 4)
        self.assertEqual(config["fetch"]["max_redirects"], 3)
        self.assertEqual(config["output"]["format"], "json")

    def test_missing_or_invalid_file(self):
        with self.assertRaises(ConfigError):
            load_config(str(self.root / "missing.yaml"))

        bad = self.root / "bad.yaml"
        bad.write_text("time_filter: [unclosed", encoding="utf-8")
        with self.assertRaises(ConfigError):
            load_config(str(bad))

        scalar = self.root / "scalar.yaml"
        scalar.write_text("just a string", encoding="utf-8")
        with self.assertRaises(ConfigError):
            load_config(str(scalar))


class FeedFileTests(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp_dir.name)

    def tearDown(self):
        self.tmp_dir.cleanup()

    def test_json_feed_file(self):
        path = self.root / "feeds.json"
        path.write_text(json.dumps([
            {"name": "HN Only", "url": "https://hnrss.org/newest?points=200", "category": "tech"},
            {"name": "No Category", "url": "https://example.com/feed"},
        ]), encoding="utf-8")

        feeds = load_feed_file(str(path))
        self.assertEqual([f.name for f in feeds], ["HN Only", "No Category"])
        self.assertEqual(feeds[1].category, "general")

    def test_yaml_feed_file_with_feeds_key(self):
        path = self.root / "feeds.yml"
        path.write_text(yaml.safe_dump({"feeds": [{"name": "Y", "url": "https://y/"}]}), encoding="utf-8")
        self.assertEqual(load_feed_file(str(path))[0].url, "https://y/")

    def test_invalid_feed_files(self):
        cases = {
            "syntax.json": "[{",
            "shape.json": json.dumps({"name": "not a list"}),
            "record.json": json.dumps([{"name": "Missing URL"}]),
        }
        for name, content in cases.items():
            with self.subTest(name=name):
                path = self.root / name
                path.write_text(content, encoding="utf-8")
                with self.assertRaises(FeedFileError):
                    load_feed_file(str(path))

        with self.assertRaises(FeedFileError):
            load_feed_file(str(self.root / "missing.json"))

    def test_invalid_record_message_names_the_field(self):
        with self.assertRaises(FeedFileError) as ctx:
            parse_feed_records([{"name": "ok", "url": "https://ok/"}, {"name": "bad"}], origin="feeds.json")
        self.assertIn("feed #1", str(ctx.exception))
        self.assertIn("url", str(ctx.exception))

    def test_resolve_feeds_precedence(self):
        self.assertEqual(resolve_feeds(load_config(None)), DEFAULT_FEEDS)

        config = load_config(None)
        config["feeds"] = [{"name": "From Config", "url": "https://config/"}]
        self.assertEqual([f.name for f in resolve_feeds(config)], ["From Config"])

        path = self.root / "feeds.json"
        path.write_text(json.dumps([{"name": "From File", "url": "https://file/"}]), encoding="utf-8")
        self.assertEqual([f.name for f in resolve_feeds(config, str(path))], ["From File"])

    def test_default_feeds_have_categories(self):
        self.assertEqual(len(DEFAULT_FEEDS), 5)
        self.assertTrue(all(f.category != "general" for f in DEFAULT_FEEDS))


if __name__ == "__main__":
    unittest.main()
