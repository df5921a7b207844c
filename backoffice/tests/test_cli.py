import io
import unittest
from unittest.mock import MagicMock, patch

from backoffice.cli import main
from backoffice.db import InMemoryNoticeStore, PersistenceError
from backoffice.notices import NoticeManager


class NoticesCliTests(unittest.TestCase):
    def setUp(self):
        self.store = MagicMock(wraps=InMemoryNoticeStore())
        self.manager = NoticeManager(self.store)
        self.first = self.manager.add("Exam postponed")
        self.second = self.manager.add("Holiday hours")

    def _run(self, argv, answer="n"):
        with patch("sys.stdout", new_callable=io.StringIO) as out, patch(
            "sys.stderr", new_callable=io.StringIO
        ) as err:
            code = main(argv, manager=self.manager, input_fn=lambda _: answer)
        return code, out.getvalue(), err.getvalue()

    def test_list(self):
        code, out, _ = self._run(["list"])
        self.assertEqual(code, 0)
        self.assertLess(out.index("Exam postponed"), out.index("Holiday hours"))

    def test_add_blank_fails(self):
        code, _, err = self._run(["add", "  "])
        self.assertEqual(code, 1)
        self.assertIn("blank", err)

    def test_move(self):
        code, out, _ = self._run(["move", self.second.id, "up"])
        self.assertEqual(code, 0)
        self.assertLess(out.index("Holiday hours"), out.index("Exam postponed"))

    def test_delete_declined(self):
        self.store.reset_mock()
        code, out, _ = self._run(["delete", self.first.id], answer="n")
        self.assertEqual(code, 1)
        self.assertIn("Aborted", out)
        self.store.delete.assert_not_called()

    def test_delete_confirmed(self):
        code, out, _ = self._run(["delete", self.first.id], answer="yes")
        self.assertEqual(code, 0)
        self.assertNotIn("Exam postponed", out)

    def test_delete_with_yes_flag(self):
        code, _, _ = self._run(["delete", "--yes", self.first.id], answer="n")
        self.assertEqual(code, 0)
        self.assertEqual([n.id for n in self.manager.notices], [self.second.id])

    def test_unknown_id(self):
        code, _, err = self._run(["toggle", "missing"])
        self.assertEqual(code, 1)
        self.assertIn("missing", err)

    def test_persistence_error(self):
        self.store.update.side_effect = PersistenceError("permission denied")
        code, _, err = self._run(["toggle", self.first.id])
        self.assertEqual(code, 1)
        self.assertIn("permission denied", err)

    def test_toggle_with_unloaded_manager(self):
        self.manager = NoticeManager(self.store)
        code, out, _ = self._run(["toggle", self.first.id])
        self.assertEqual(code, 0)
        self.assertIn("[off]", out)

    def test_delete_with_unloaded_manager(self):
        self.manager = NoticeManager(self.store)
        code, out, _ = self._run(["delete", "--yes", self.first.id])
        self.assertEqual(code, 0)
        self.assertNotIn("Exam postponed", out)
        self.assertIn("Holiday hours", out)


if __name__ == "__main__":
    unittest.main()
