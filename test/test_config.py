import tempfile
import unittest
from pathlib import Path

import yaml

from partsmith.config import Config, KernelConfig, SessionConfig, load_config


class TestConfig(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "nested" / "config.yaml"

    def tearDown(self):
        self.tmp.cleanup()

    def test_01_defaults(self):
        config = Config()
        self.assertEqual(config.kernel.mesh_tolerance, 0.1)
        self.assertEqual(config.kernel.angular_tolerance, 0.5)
        self.assertEqual(config.session.debounce_seconds, 0.3)
        self.assertEqual(config.session.max_adjust_iterations, 10)
        self.assertEqual(config.log_level, "INFO")

    def test_02_save_load(self):
        config = Config(
            kernel=KernelConfig(mesh_tolerance=0.05),
            session=SessionConfig(debounce_seconds=0.5),
            log_level="DEBUG",
            presets={"hoseAdapter": {"length": 80, "ridgeCount": 2}},
        )
        config.save(self.path)

        with open(self.path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
        self.assertEqual(raw["logging"]["level"], "DEBUG")

        loaded = Config.load(self.path)
        self.assertEqual(loaded.to_dict(), config.to_dict())

    def test_03_partial_file(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("session:\n  debounce_seconds: 0.1\nlogging:\n  level: warning\n", encoding="utf-8")
        config = Config.load(self.path)
        self.assertEqual(config.session.debounce_seconds, 0.1)
        self.assertEqual(config.session.max_adjust_iterations, 10)
        self.assertEqual(config.kernel.mesh_tolerance, 0.1)
        self.assertEqual(config.log_level, "WARNING")

    def test_04_empty_and_missing(self):
        self.assertEqual(Config.from_dict(None).to_dict(), Config().to_dict())
        self.assertEqual(load_config(self.path).to_dict(), Config().to_dict())

    def test_05_presets(self):
        config = Config.from_dict({"presets": {"drainStrainer": {"diameter": 90}, "bad": 3}})
        self.assertNotIn("bad", config.presets)
        values = config.preset_values("drainStrainer", {"diameter": 75, "depth": 20})
        self.assertEqual(values, {"diameter": 90.0, "depth": 20})
        self.assertEqual(config.preset_values("hoseAdapter", {"length": 60}), {"length": 60})

    def test_06_invalid_session(self):
        with self.assertRaises(ValueError):
            SessionConfig(debounce_seconds=-1)
        with self.assertRaises(ValueError):
            SessionConfig(max_adjust_iterations=0)


if __name__ == "__main__":
    unittest.main()
