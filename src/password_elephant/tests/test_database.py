import unittest

from password_elephant.core.database import Change, Database
from password_elephant.core.entry import Entry
from password_elephant.core.feature import Category, Feature


class TestDatabase(unittest.TestCase):
    def setUp(self):
        self.database = Database()
        self.changes = []
        self.subscription = self.database.subscribe(lambda change, entry: self.changes.append((change, entry)))

    def test_add_notifies(self):
        entry = Entry()
        self.database.add(entry)
        self.assertEqual(self.database.count, 1)
        self.assertEqual(self.changes, [(Change.ADDED, entry)])

    def test_adding_same_entry_twice_fails(self):
        entry = Entry()
        self.database.add(entry)
        with self.assertRaises(ValueError):
            self.database.add(entry)

    def test_identical_entries_are_deleted_independently(self):
        features = [Feature.from_text(Category.TITLE, "twin")]
        first, second = Entry(features=features), Entry(features=features)
        self.database.add(first)
        self.database.add(second)
        self.assertEqual(self.database.delete([first]), 1)
        self.assertEqual(self.database.entries, [second])
        self.assertEqual(self.changes[-1], (Change.DELETED, first))

    def test_delete_missing_entry(self):
        self.assertFalse(self.database.delete_entry(Entry()))
        self.assertEqual(self.changes, [])

    def test_entry_update_is_forwarded(self):
        entry = Entry()
        self.database.add(entry)
        scratch = Entry.copy_of(entry)
        scratch.set_title("Updated")
        entry.update_from(scratch)
        self.assertEqual(self.changes[-1], (Change.UPDATED, entry))

    def test_deleted_entry_no_longer_forwards_updates(self):
        entry = Entry()
        self.database.add(entry)
        self.database.delete_entry(entry)
        entry.update_from(Entry())
        self.assertEqual([c for c, _ in self.changes], [Change.ADDED, Change.DELETED])

    def test_invalidated_subscription(self):
        self.subscription.invalidate()
        self.database.add(Entry())
        self.assertEqual(self.changes, [])

    def test_empty(self):
        self.assertTrue(self.database.is_empty)
        self.assertEqual(len(self.database), 0)


if __name__ == '__main__':
    unittest.main()
