import unittest
import tempfile
import yaml

from . import DEFAULTS, OrderingConfig, load_config


class TestOrderingConfig(unittest.TestCase):
    def test_defaults(self):
        c = OrderingConfig()
        self.assertEqual(c.ceiling, 10000000)
        self.assertEqual(c.max_depth, None)
        self.assertEqual(c.retries, 3)
        self.assertEqual(load_config(), c)

    def test_defaults_file_complete(self):
        self.assertEqual(set(DEFAULTS.keys()), set(["ceiling", "max_depth", "retries"]))

    def test_from_dict_overrides(self):
        c = OrderingConfig.from_dict(dict(ceiling=100))
        self.assertEqual(c.ceiling, 100)
        self.assertEqual(c.retries, DEFAULTS["retries"])

    def test_from_dict_unknown(self):
        with self.assertRaises(KeyError):
            OrderingConfig.from_dict(dict(cieling=100))

    def test_invalid(self):
        with self.assertRaises(ValueError):
            OrderingConfig(ceiling=1)
        with self.assertRaises(ValueError):
            OrderingConfig(retries=-1)

    def test_load_file(self):
        for data in (
            dict(Ordering=dict(ceiling=500, retries=0)),
            dict(ceiling=500, retries=0),
        ):
            with tempfile.NamedTemporaryFile("w", suffix=".yaml") as f:
                f.write(yaml.safe_dump(data))
                f.flush()
                c = load_config(f.name)
            self.assertEqual((c.ceiling, c.retries), (500, 0))

    def test_load_empty_file(self):
        with tempfile.NamedTemporaryFile("w", suffix=".yaml") as f:
            self.assertEqual(load_config(f.name), OrderingConfig())
