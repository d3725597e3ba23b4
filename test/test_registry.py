import dataclasses
import unittest

from partsmith.errors import GeometryConstructionError, UnknownProductError
from partsmith.products import ProductRegistry, create_registry


class TestProductRegistry(unittest.TestCase):
    def setUp(self):
        self.registry = create_registry()

    def test_01_products(self):
        self.assertEqual(self.registry.ids, ["hoseAdapter", "drainStrainer", "threadAdapter"])
        self.assertEqual(len(self.registry), 3)
        self.assertIn("drainStrainer", self.registry)
        self.assertNotIn("drain-strainer", self.registry)

    def test_02_lookup(self):
        self.assertEqual(self.registry.get("threadAdapter").slug, "thread-adapter")
        self.assertEqual(self.registry.by_slug("hose-adapter").id, "hoseAdapter")
        self.assertIsNone(self.registry.by_slug("hoseAdapter"))
        self.assertEqual(self.registry.lookup("drain-strainer").id, "drainStrainer")
        self.assertEqual(self.registry.lookup("drainStrainer").id, "drainStrainer")

    def test_03_unknown(self):
        with self.assertRaises(UnknownProductError):
            self.registry.get("bottleCap")
        with self.assertRaises(KeyError):
            self.registry.lookup("bottle-cap")

    def test_04_duplicates_rejected(self):
        hose = self.registry.get("hoseAdapter")
        with self.assertRaises(ValueError):
            ProductRegistry([hose, hose])
        with self.assertRaises(ValueError):
            ProductRegistry([hose, dataclasses.replace(hose, id="other")])

    def test_05_independent_instances(self):
        other = create_registry()
        self.assertIsNot(other, self.registry)
        self.assertEqual(other.ids, self.registry.ids)

    def test_06_every_product_complete(self):
        for product in self.registry:
            defaults = product.defaults()
            self.assertEqual(set(defaults), set(product.schema))
            adjusted = product.adjust(defaults)
            self.assertTrue(adjusted.converged, product.id)
            self.assertTrue(product.validate(adjusted.values).is_valid, product.id)
            self.assertTrue(product.dimensions(adjusted.values), product.id)
            for readout in product.dimensions(adjusted.values):
                self.assertIn("value", readout.to_dict())

    def test_07_build_wraps_kernel_errors(self):
        def broken(values, kernel=None):
            raise RuntimeError("Standard_Failure")

        def degenerate(values, kernel=None):
            raise GeometryConstructionError("endLength", -1.0)

        hose = self.registry.get("hoseAdapter")
        with self.assertRaises(GeometryConstructionError) as ctx:
            dataclasses.replace(hose, builder=broken).build({})
        self.assertEqual(ctx.exception.quantity, "hoseAdapter")
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)

        with self.assertRaises(GeometryConstructionError) as ctx:
            dataclasses.replace(hose, builder=degenerate).build({})
        self.assertEqual(ctx.exception.quantity, "endLength")
        self.assertIsNone(ctx.exception.__cause__)


if __name__ == "__main__":
    unittest.main()
