import json
import random
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from fake_kernel import FakeKernel

from partsmith.errors import DomainConstraintError, GeometryConstructionError, SchemaBoundError
from partsmith.generator import (
    GenerationStatus, batch_generate, ensure_valid, generate, random_values,
    save_generation_log, timestamped_filename,
)
from partsmith.products import create_registry


class FailingKernel(FakeKernel):
    def loft(self, bottom, top):
        raise GeometryConstructionError("loft", None, "forced failure")


class BrokenKernel(FakeKernel):
    def loft(self, bottom, top):
        raise ValueError("BRep_API: command not done")


class TestGeneratorHelpers(unittest.TestCase):
    def test_01_timestamped_filename(self):
        name = timestamped_filename("hose-adapter", datetime(2024, 3, 5, 14, 7, 9))
        self.assertEqual(name, "hose-adapter_2024-03-05_14-07-09")

    def test_02_ensure_valid(self):
        hose = create_registry().get("hoseAdapter")
        values = hose.defaults()

        with self.assertRaises(DomainConstraintError) as ctx:
            ensure_valid(hose.validate(values))
        self.assertEqual([e.code for e in ctx.exception.errors], ["tooManyRidges"])

        values["length"] = 1000
        with self.assertRaises(SchemaBoundError):
            ensure_valid(hose.validate(values))

        ensure_valid(hose.validate(hose.adjust(hose.defaults()).values))

    def test_03_random_values_on_grid(self):
        rng = random.Random(1)
        for product in create_registry():
            values = random_values(product, rng)
            self.assertEqual(set(values), set(product.schema))
            schema_errors = product.validate(values).schema_errors
            self.assertEqual(schema_errors, [], product.id)


class TestGenerate(unittest.TestCase):
    def setUp(self):
        self.registry = create_registry()
        self.tmp = tempfile.TemporaryDirectory()
        self.output = Path(self.tmp.name) / "part.stl"

    def tearDown(self):
        self.tmp.cleanup()

    def test_01_invalid_without_correction(self):
        hose = self.registry.get("hoseAdapter")
        result = generate(hose, hose.defaults(), self.output, allow_correction=False, kernel=FakeKernel())
        self.assertEqual(result.status, GenerationStatus.FAILED)
        self.assertIsNone(result.adjustment)
        self.assertIn("Invalid parameters", result.error_message)
        self.assertFalse(self.output.exists())

    def test_02_uncorrectable(self):
        thread = self.registry.get("threadAdapter")
        values = dict(thread.defaults(), threadBDiameter=80, hexGripSize=30)
        result = generate(thread, values, self.output, kernel=FakeKernel())
        self.assertEqual(result.status, GenerationStatus.FAILED)
        self.assertIn("after correction", result.error_message)
        self.assertEqual(result.values_used["hexGripSize"], 60)

    def test_03_geometry_failure(self):
        hose = self.registry.get("hoseAdapter")
        values = hose.adjust(hose.defaults()).values
        result = generate(hose, values, self.output, kernel=FailingKernel())
        self.assertEqual(result.status, GenerationStatus.FAILED)
        self.assertIn("loft", result.error_message)

    def test_04_unsupported_format(self):
        hose = self.registry.get("hoseAdapter")
        with self.assertRaises(ValueError):
            generate(hose, hose.defaults(), self.output, fmt="obj")

    def test_05_log(self):
        hose = self.registry.get("hoseAdapter")
        result = generate(hose, hose.defaults(), self.output, allow_correction=False, kernel=FakeKernel())
        log_path = Path(self.tmp.name) / "logs" / "generation.json"
        save_generation_log([result], log_path)

        with open(log_path, encoding="utf-8") as f:
            data = json.load(f)
        self.assertEqual(data["total"], 1)
        self.assertEqual(data["success"], 0)
        entry = data["results"][0]
        self.assertEqual(entry["status"], "failed")
        self.assertEqual(entry["errors"][0]["code"], "tooManyRidges")

    def test_06_valid_values_still_adjusted(self):
        hose = self.registry.get("hoseAdapter")
        values = hose.adjust(hose.defaults()).values
        values["length"] = 60.00001
        self.assertTrue(hose.validate(values).is_valid)

        result = generate(hose, values, self.output, allow_correction=False, kernel=FailingKernel())
        self.assertIsNotNone(result.adjustment)
        self.assertTrue(result.adjustment.changed)
        self.assertEqual(result.values_used["length"], 60)

        values["length"] = 60
        result = generate(hose, values, self.output, kernel=FailingKernel())
        self.assertIsNotNone(result.adjustment)
        self.assertFalse(result.adjustment.changed)
        self.assertEqual(result.to_dict()["corrections_applied"], [])

    def test_07_kernel_exception_fails_one_item(self):
        hose = self.registry.get("hoseAdapter")
        values = hose.adjust(hose.defaults()).values
        results = batch_generate(hose, [values, values], Path(self.tmp.name), kernel=BrokenKernel())
        self.assertEqual(len(results), 2)
        for result in results:
            self.assertEqual(result.status, GenerationStatus.FAILED)
            self.assertIn("Geometry construction failed", result.error_message)
            self.assertIn("BRep_API", result.error_message)


if __name__ == "__main__":
    unittest.main()
