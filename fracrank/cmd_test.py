import unittest
import tempfile
from io import StringIO

from .cmd import main
from .storage.database import DB, StorageDetails


class TestCmd(unittest.TestCase):
    def setUp(self):
        self.tmpItems = tempfile.NamedTemporaryFile(delete=True)
        self.addCleanup(self.tmpItems.close)
        self.addCleanup(DB.items.close)

    def run_cmd(self, *argv):
        out = StringIO()
        code = main(["--db", self.tmpItems.name, *argv], out=out)
        return code, out.getvalue()

    def test_between(self):
        self.assertEqual(self.run_cmd("between", "1/3", "1/2"), (0, "2/5\n"))
        self.assertEqual(self.run_cmd("between", "0", "inf"), (0, "1/1\n"))

    def test_between_invalid(self):
        self.assertEqual(self.run_cmd("between", "1/2", "1/3"), (1, ""))

    def test_add_and_list(self):
        self.assertEqual(self.run_cmd("add", "todo", "a"), (0, "1\t1/1\n"))
        self.assertEqual(self.run_cmd("add", "todo", "b"), (0, "2\t2/1\n"))
        self.assertEqual(
            self.run_cmd("add", "todo", "c", "--before", "2"), (0, "3\t3/2\n")
        )
        self.assertEqual(
            self.run_cmd("ls", "todo"), (0, "1\t1/1\ta\n3\t3/2\tc\n2\t2/1\tb\n")
        )
        self.assertEqual(self.run_cmd("ls"), (0, "todo\n"))

    def test_move(self):
        for name in "abc":
            self.run_cmd("add", "todo", name)
        self.assertEqual(self.run_cmd("mv", "todo", "1"), (0, "1\t4/1\n"))
        self.assertEqual(self.run_cmd("mv", "todo", "1", "--start"), (0, "1\t1/1\n"))
        self.assertEqual(
            self.run_cmd("mv", "todo", "3", "--after", "1"), (0, "3\t3/2\n")
        )
        self.assertEqual(self.run_cmd("mv", "todo", "3", "--after", "3"), (0, "3\t3/2\n"))

    def test_move_missing_anchor(self):
        self.run_cmd("add", "todo", "a")
        self.assertEqual(self.run_cmd("mv", "todo", "1", "--before", "99"), (1, ""))

    def test_remove(self):
        self.run_cmd("add", "todo", "a")
        self.run_cmd("add", "todo", "b")
        self.assertEqual(self.run_cmd("rm", "todo", "1"), (0, ""))
        self.assertEqual(self.run_cmd("ls", "todo"), (0, "2\t2/1\tb\n"))
        self.assertEqual(self.run_cmd("rm", "todo", "1"), (1, ""))

    def test_renormalize(self):
        for name in "abc":
            self.run_cmd("add", "todo", name)
        self.assertEqual(self.run_cmd("renormalize", "todo"), (0, "3 keys rewritten\n"))
        self.assertEqual(
            self.run_cmd("ls", "todo"), (0, "1\t1/2\ta\n2\t3/2\tb\n3\t5/2\tc\n")
        )

    def test_missing_item_message(self):
        with self.assertLogs("fracrank", level="ERROR") as logs:
            self.assertEqual(self.run_cmd("rm", "todo", "7"), (1, ""))
        self.assertEqual(
            logs.output, ["ERROR:fracrank:No item 7 in collection todo"]
        )

    def test_unknown_config_setting(self):
        with tempfile.NamedTemporaryFile("w", suffix=".yaml") as f:
            f.write("Ordering:\n  cieling: 5\n")
            f.flush()
            with self.assertLogs("fracrank", level="ERROR") as logs:
                code, out = self.run_cmd("--config", f.name, "between", "0", "1")
        self.assertEqual((code, out), (1, ""))
        self.assertEqual(
            logs.output, ["ERROR:fracrank:Unknown ordering settings ['cieling']"]
        )

    def test_stale_schema(self):
        self.run_cmd("add", "todo", "a")
        StorageDetails.update(schemaVersion="0.0.0").execute()
        with self.assertLogs("fracrank", level="ERROR") as logs:
            self.assertEqual(self.run_cmd("ls", "todo"), (1, ""))
        self.assertEqual(
            logs.output, ["ERROR:fracrank:DB schema version is not current: 0.0.0"]
        )
