import random
import unittest

from fake_kernel import FakeKernel

from partsmith.generator import random_values
from partsmith.parameters import ParameterKind
from partsmith.products.thread_adapter import (
    PRODUCT, SCHEMA, build_thread_adapter, passage_diameter, thread_adapter_constraints,
    thread_adapter_dimensions,
)
from partsmith.validation import errors_for


def _values(**overrides):
    values = {k: d.default for k, d in SCHEMA.items()}
    values.update(overrides)
    return values


def _codes(result, parameter_id):
    return [e.code for e in errors_for(result, parameter_id)]


class TestThreadAdapterSchema(unittest.TestCase):
    def test_01_kinds(self):
        self.assertEqual(SCHEMA["threadAType"].kind, ParameterKind.ENUM)
        self.assertEqual(SCHEMA["hollow"].kind, ParameterKind.BOOLEAN)
        self.assertEqual(SCHEMA["threadBDiameter"].default, 38)
        self.assertEqual(SCHEMA["threadBType"].default, 1)
        self.assertEqual(len(SCHEMA), 11)


class TestThreadAdapterValidation(unittest.TestCase):
    def test_01_defaults_valid(self):
        self.assertTrue(PRODUCT.validate(_values()).is_valid)

    def test_02_diameter_and_pitch(self):
        result = PRODUCT.validate(_values(threadADiameter=11, threadALength=5, threadBPitch=0.6))
        self.assertEqual(_codes(result, "threadADiameter"), ["diameterTooSmall"])
        self.assertEqual(_codes(result, "threadBPitch"), ["pitchTooSmall"])

    def test_03_length_ratio(self):
        result = PRODUCT.validate(_values(threadALength=17))
        errors = errors_for(result, "threadALength")
        self.assertEqual([e.code for e in errors], ["threadLengthTooLong"])
        self.assertAlmostEqual(errors[0].context["maxThreadLength"], 16.8)

    def test_04_hex_grip(self):
        result = PRODUCT.validate(_values(hexGripSize=41))
        self.assertEqual(_codes(result, "hexGripSize"), ["hexGripTooSmall"])
        self.assertTrue(PRODUCT.validate(_values(hexGripSize=42)).is_valid)
        self.assertTrue(PRODUCT.validate(_values(hexGripSize=0)).is_valid)


class TestThreadAdapterConstraints(unittest.TestCase):
    def test_01_dynamic_bounds(self):
        constraints = thread_adapter_constraints(SCHEMA, _values(hexGripSize=10))
        self.assertAlmostEqual(constraints["threadALength"].max, 16.8)
        self.assertAlmostEqual(constraints["threadBLength"].max, 22.8)
        self.assertEqual(constraints["threadAPitch"].min, 0.8)
        self.assertEqual(constraints["threadBDiameter"].min, 12)
        self.assertEqual(constraints["hexGripSize"].min, 42)

        self.assertNotIn("hexGripSize", thread_adapter_constraints(SCHEMA, _values()))

    def test_02_adjust(self):
        values = _values(threadAPitch=0.5, threadADiameter=10, threadALength=10, hexGripSize=30)
        adjusted = PRODUCT.adjust(values).values
        self.assertEqual(adjusted["threadAPitch"], 0.8)
        self.assertEqual(adjusted["threadADiameter"], 12)
        self.assertEqual(adjusted["threadALength"], 6)
        self.assertEqual(adjusted["hexGripSize"], 42)
        self.assertTrue(PRODUCT.validate(adjusted).is_valid)

    def test_03_unreachable_hex_clamps_to_schema_max(self):
        values = _values(threadBDiameter=80, hexGripSize=30)
        result = PRODUCT.adjust(values)
        self.assertEqual(result.values["hexGripSize"], 60)
        self.assertTrue(result.converged)
        self.assertEqual(
            _codes(PRODUCT.validate(result.values), "hexGripSize"), ["hexGripTooSmall"],
        )


class TestThreadAdapterDimensions(unittest.TestCase):
    def test_01_readouts(self):
        readouts = {d.key: d.value for d in thread_adapter_dimensions(_values())}
        self.assertEqual(readouts["threadAOuterDiameter"], 28)
        self.assertEqual(readouts["threadBOuterDiameter"], 43)
        self.assertEqual(readouts["totalLength"], 40)
        self.assertEqual(readouts["wallThickness"], 2.5)
        self.assertAlmostEqual(readouts["innerPassageDiameter"], 26.4)

    def test_02_solid_has_no_passage(self):
        keys = [d.key for d in thread_adapter_dimensions(_values(hollow=0))]
        self.assertNotIn("innerPassageDiameter", keys)

    def test_03_passage_uses_smaller_end(self):
        values = _values(threadAType=1, threadBType=0, threadBDiameter=20, threadBPitch=5)
        self.assertAlmostEqual(passage_diameter(values), 16)


class TestThreadAdapterBuilder(unittest.TestCase):
    def setUp(self):
        self.kernel = FakeKernel()

    def test_01_composition(self):
        solid = build_thread_adapter(_values(), self.kernel)
        self.assertEqual(solid.op, "translate")
        self.assertEqual(solid.args, (0, 0, -20))

        male, female = self.kernel.calls_named("thread")
        radius, pitch, height, root, apex, tooth = male
        self.assertEqual(radius, 14)
        self.assertIn([14, 10, 0.0], self.kernel.calls_named("cylinder"))
        self.assertEqual((pitch, height), (2.0, 10))
        self.assertAlmostEqual(root, 1.2)
        self.assertAlmostEqual(apex, 0.6)
        self.assertAlmostEqual(tooth, 1.2)

        radius, pitch, height, root, apex, tooth = female
        self.assertEqual(radius, 19)
        self.assertAlmostEqual(tooth, -1.5)

        (bottom, top), = self.kernel.calls_named("loft")
        self.assertEqual(bottom, ("circle", 14, 10))
        self.assertEqual(top, ("circle", 21.5, 30))

        passage = self.kernel.calls_named("cylinder")[-1]
        self.assertAlmostEqual(passage[0], 13.2)
        self.assertEqual(passage[1:], [42, -1])

    def test_02_female_sleeve_is_bored(self):
        build_thread_adapter(_values(), self.kernel)
        cylinders = self.kernel.calls_named("cylinder")
        self.assertIn([21.5, 10], [c[:2] for c in cylinders])
        self.assertIn([19, 10], [c[:2] for c in cylinders])

    def test_03_hex_body(self):
        build_thread_adapter(_values(hexGripSize=42), self.kernel)
        self.assertEqual(
            self.kernel.calls_named("polygon"), [[21, 6, 10], [21, 6, 30]],
        )
        self.assertEqual(self.kernel.calls_named("circle"), [])

    def test_04_solid_body(self):
        build_thread_adapter(_values(hollow=0), self.kernel)
        cylinders = self.kernel.calls_named("cylinder")
        self.assertFalse(any(c[2] == -1 for c in cylinders))

    def test_05_sections_positioned(self):
        build_thread_adapter(_values(), self.kernel)
        moves = [s.args for s in self.kernel.solids if s.op == "translate"]
        self.assertIn((0, 0, 0), moves)
        self.assertIn((0, 0, 30), moves)

    def test_06_validity_implies_buildability(self):
        rng = random.Random(9)
        built = 0
        for _ in range(200):
            values = random_values(PRODUCT, rng)
            if PRODUCT.validate(values).is_valid:
                PRODUCT.build(values, self.kernel)
                built += 1
        self.assertGreater(built, 0)


if __name__ == "__main__":
    unittest.main()
