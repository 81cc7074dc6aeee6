import json
import os
import shutil
import tempfile
import unittest

from dsa_tui.config import ENDPOINT_URL_KEY, SHEET_URL_KEY, Config, load_config, load_overrides
from dsa_tui.preferences import PreferenceStore


class TestPreferenceStore(unittest.TestCase):
    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.path = os.path.join(self.test_dir, "prefs", "preferences.json")
        self.store = PreferenceStore(self.path)

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_set_and_get(self):
        self.store.set(SHEET_URL_KEY, "https://docs.google.com/spreadsheets/d/abc/edit")
        self.assertEqual(
            PreferenceStore(self.path).get(SHEET_URL_KEY),
            "https://docs.google.com/spreadsheets/d/abc/edit",
        )

    def test_missing_and_expired(self):
        self.assertIsNone(self.store.get(SHEET_URL_KEY))
        self.store.set(SHEET_URL_KEY, "old", days=-1)
        self.assertIsNone(self.store.get(SHEET_URL_KEY))

    def test_expire_and_clear(self):
        self.store.set(SHEET_URL_KEY, "a")
        self.store.set(ENDPOINT_URL_KEY, "b")
        self.store.expire(SHEET_URL_KEY)
        self.assertIsNone(self.store.get(SHEET_URL_KEY))
        self.assertEqual(self.store.get(ENDPOINT_URL_KEY), "b")
        self.store.clear()
        self.assertIsNone(self.store.get(ENDPOINT_URL_KEY))

    def test_corrupt_file(self):
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        with open(self.path, "w") as f:
            f.write("{not json")
        self.assertIsNone(self.store.get(SHEET_URL_KEY))

    def test_config_round_trip(self):
        Config(sheet_url="https://docs.google.com/spreadsheets/d/x/edit", endpoint_url="https://hook").save(self.store)
        self.assertEqual(
            Config.from_preferences(self.store),
            Config(sheet_url="https://docs.google.com/spreadsheets/d/x/edit", endpoint_url="https://hook"),
        )
        Config(sheet_url="https://docs.google.com/spreadsheets/d/x/edit").save(self.store)
        self.assertIsNone(self.store.get(ENDPOINT_URL_KEY))


class TestConfigFiles(unittest.TestCase):
    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_default_config_is_created(self):
        path = os.path.join(self.test_dir, "config.json")
        config = load_config(path)
        self.assertTrue(os.path.exists(path))
        self.assertTrue(config["strict_sync"])

    def test_overrides_file_is_normalised(self):
        path = os.path.join(self.test_dir, "overrides.json")
        with open(path, "w") as f:
            json.dump({"status": {"A": "Solved"}, "pinned": {"A": 1}}, f)
        self.assertEqual(load_overrides(path), {"status": {"A": "Solved"}, "pinned": {"A": True}})
        self.assertEqual(load_overrides(os.path.join(self.test_dir, "missing.json")), {"status": {}, "pinned": {}})


if __name__ == "__main__":
    unittest.main()
