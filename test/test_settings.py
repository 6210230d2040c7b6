import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from heliotrope.settings import (
    DEFAULT_GAIN,
    GAIN_KEY,
    MAX_GAIN,
    MIN_GAIN,
    GainStore,
    clamp_gain,
    gain_choices,
    parse_gain,
    settings_path_from_env,
)


class TestGainHelpers(unittest.TestCase):
    def test_clamp_gain(self):
        self.assertEqual(clamp_gain(0.5), MAX_GAIN)
        self.assertEqual(clamp_gain(0.0), MIN_GAIN)
        self.assertEqual(clamp_gain(0.15), 0.15)

    def test_parse_gain(self):
        self.assertEqual(parse_gain("0.15"), 0.15)
        self.assertEqual(parse_gain(0.3), 0.3)
        for raw in ("abc", "nan", "inf", "0.5", "0.001", None, [0.1]):
            with self.subTest(raw=raw):
                self.assertIsNone(parse_gain(raw))

    def test_gain_choices(self):
        choices = gain_choices()
        self.assertEqual(len(choices), 30)
        self.assertEqual(choices[0], 0.01)
        self.assertEqual(choices[-1], 0.3)
        self.assertIn(DEFAULT_GAIN, choices)
        self.assertEqual(choices, sorted(choices))

    def test_settings_path_from_env(self):
        with mock.patch.dict(os.environ, {"HELIOTROPE_SETTINGS": "/tmp/custom.json"}):
            self.assertEqual(settings_path_from_env(), Path("/tmp/custom.json"))
        with mock.patch.dict(os.environ, {}, clear=True):
            self.assertEqual(settings_path_from_env().name, ".heliotrope.json")


class TestGainStore(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "settings.json"
        self.store = GainStore(self.path)

    def tearDown(self):
        self._tmp.cleanup()

    def write(self, data):
        self.path.write_text(json.dumps(data), encoding="utf-8")

    def test_missing_file_loads_default(self):
        self.assertEqual(self.store.load(), DEFAULT_GAIN)

    def test_round_trip_as_string(self):
        self.assertEqual(self.store.save(0.2), 0.2)
        stored = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual(stored[GAIN_KEY], "0.2")
        self.assertEqual(self.store.load(), 0.2)

    def test_save_clamps(self):
        self.assertEqual(self.store.save(0.5), MAX_GAIN)
        self.assertEqual(self.store.load(), MAX_GAIN)
        self.assertEqual(self.store.save(0.001), MIN_GAIN)
        self.assertEqual(self.store.load(), MIN_GAIN)

    def test_save_ignores_non_finite(self):
        with self.assertLogs("heliotrope.settings", level="WARNING"):
            self.assertIsNone(self.store.save(float("nan")))
        self.assertFalse(self.path.exists())

    def test_invalid_stored_values_load_default(self):
        for raw in ("abc", "0.5", "nan", "-0.1"):
            with self.subTest(raw=raw):
                self.write({GAIN_KEY: raw})
                with self.assertLogs("heliotrope.settings", level="WARNING"):
                    self.assertEqual(self.store.load(), DEFAULT_GAIN)

    def test_corrupt_file_loads_default(self):
        self.path.write_text("{not json", encoding="utf-8")
        with self.assertLogs("heliotrope.settings", level="WARNING"):
            self.assertEqual(self.store.load(), DEFAULT_GAIN)

    def test_save_preserves_other_keys(self):
        self.write({"theme": "dark"})
        self.store.save(0.05)
        stored = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual(stored["theme"], "dark")
        self.assertEqual(stored[GAIN_KEY], "0.05")

    def test_save_creates_parent_directory(self):
        store = GainStore(Path(self._tmp.name) / "nested" / "settings.json")
        self.assertEqual(store.save(0.12), 0.12)
        self.assertEqual(store.load(), 0.12)


if __name__ == '__main__':
    unittest.main()
