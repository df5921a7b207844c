import os
import tempfile
import unittest

from backoffice.db import InMemoryNoticeStore, PersistenceError, SqlNoticeStore
from backoffice.notices import NoticeManager


class SqlNoticeStoreTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL store.
    """

    def setUp(self):
        self.store = SqlNoticeStore("sqlite+pysqlite:///:memory:")

    def test_insert_defaults_to_active(self):
        record = self.store.insert({"message": "Exam postponed", "display_order": 1})
        self.assertTrue(record.is_active)
        self.assertTrue(record.id)
        self.assertGreater(record.created_at, 0)

    def test_select_orders_and_filters(self):
        self.store.insert({"message": "late", "display_order": 9})
        self.store.insert({"message": "early", "display_order": 2})
        self.store.insert({"message": "hidden", "display_order": 5, "is_active": False})

        rows = self.store.select()
        self.assertEqual([r.message for r in rows], ["early", "hidden", "late"])

        active = self.store.select(filters={"is_active": True})
        self.assertEqual([r.message for r in active], ["early", "late"])

        descending = self.store.select(ascending=False)
        self.assertEqual(descending[0].message, "late")

    def test_update_and_delete(self):
        record = self.store.insert({"message": "old", "display_order": 1})
        self.assertEqual(self.store.update({"message": "new"}, {"id": record.id}), 1)
        self.assertEqual(self.store.select()[0].message, "new")

        self.assertEqual(self.store.delete({"id": record.id}), 1)
        self.assertEqual(self.store.select(), [])

    def test_update_batch_rolls_back_on_failure(self):
        first = self.store.insert({"message": "first", "display_order": 1})
        second = self.store.insert({"message": "second", "display_order": 2})

        with self.assertRaises(PersistenceError):
            self.store.update_batch(
                [
                    ({"display_order": 2}, {"id": first.id}),
                    ({"message": None}, {"id": second.id}),
                ]
            )

        rows = self.store.select()
        self.assertEqual([(r.message, r.display_order) for r in rows], [("first", 1), ("second", 2)])

    def test_rejects_unfiltered_writes_and_unknown_columns(self):
        with self.assertRaises(PersistenceError):
            self.store.delete({})
        with self.assertRaises(PersistenceError):
            self.store.update({"colour": "red"}, {"id": "x"})
        with self.assertRaises(PersistenceError):
            self.store.insert({"display_order": 1})

    def test_manager_swap_against_sql(self):
        manager = NoticeManager(self.store)
        a = manager.add("A")
        b = manager.add("B")
        manager.add("C")

        manager.move(b.id, "up")

        self.assertEqual([n.message for n in manager.notices], ["B", "A", "C"])
        self.assertEqual([n.display_order for n in manager.notices], [1, 2, 3])
        self.assertEqual(manager.get(a.id).display_order, 2)


class SharedStoreTests(unittest.TestCase):
    """Two managers writing to the same database file."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        url = f"sqlite+pysqlite:///{os.path.join(self.tmpdir.name, 'notices.db')}"
        self.server_store = SqlNoticeStore(url)
        self.cli_store = SqlNoticeStore(url)
        self.server = NoticeManager(self.server_store)
        self.cli = NoticeManager(self.cli_store)

    def tearDown(self):
        self.server_store.engine.dispose()
        self.cli_store.engine.dispose()
        self.tmpdir.cleanup()

    def test_mutations_see_rows_from_other_writer(self):
        self.server.add("A")
        b = self.cli.add("B")

        self.assertFalse(self.server.toggle_active(b.id))
        c = self.server.add("C")

        self.assertEqual(c.display_order, 3)
        self.assertEqual(
            [(n.message, n.display_order) for n in self.cli.list()],
            [("A", 1), ("B", 2), ("C", 3)],
        )

    def test_move_uses_current_neighbours(self):
        a = self.server.add("A")
        self.cli.add("B")

        self.assertTrue(self.server.move(a.id, "down"))
        self.assertEqual([n.message for n in self.cli.list()], ["B", "A"])


class InMemoryNoticeStoreTests(unittest.TestCase):
    def test_update_batch_is_all_or_nothing(self):
        store = InMemoryNoticeStore()
        first = store.insert({"message": "first", "display_order": 1})

        with self.assertRaises(PersistenceError):
            store.update_batch(
                [
                    ({"display_order": 7}, {"id": first.id}),
                    ({"colour": "red"}, {"id": first.id}),
                ]
            )

        self.assertEqual(store.select()[0].display_order, 1)

    def test_select_returns_copies(self):
        store = InMemoryNoticeStore()
        store.insert({"message": "first", "display_order": 1})
        store.select()[0].message = "changed"
        self.assertEqual(store.select()[0].message, "first")


if __name__ == "__main__":
    unittest.main()
