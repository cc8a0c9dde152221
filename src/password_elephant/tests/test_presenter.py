import tempfile
import unittest
from pathlib import Path

from password_elephant.core.archive import open_archive
from password_elephant.core.database import Change
from password_elephant.core.entry import Entry
from password_elephant.core.presenter import ArchivePresenter
from password_elephant.tests.legacy_fixture import GORILLA_RECORD, write_safe


class TestArchivePresenter(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)
        self.changes = []
        self.presenter = ArchivePresenter(lambda change, entry: self.changes.append(change))

    def tearDown(self):
        self.tmp.cleanup()

    def test_new_database_cannot_save(self):
        self.assertFalse(self.presenter.can_save())
        self.presenter.database.add(Entry())
        self.assertEqual(self.changes, [Change.ADDED])

    def test_import_then_save_as(self):
        source = self.dir / "gorilla.dat"
        target = self.dir / "imported.elephant"
        write_safe(source, "masterpass", [GORILLA_RECORD])

        self.presenter.import_file(source, "masterpass")
        self.assertFalse(self.presenter.can_save())
        self.presenter.save_archive_as(target, "elephant")
        self.assertTrue(self.presenter.can_save())

        self.assertEqual(open_archive(target, "elephant").database.entries[0].title, "PasswordGorilla")

    def test_open_and_save(self):
        path = self.dir / "vault.elephant"
        self.presenter.save_archive_as(path, "elephant")
        self.presenter.discard_database()
        self.presenter.open_archive(path, "elephant")
        self.presenter.database.add(Entry())
        self.presenter.save_archive()
        self.assertEqual(open_archive(path, "elephant").database.count, 1)

    def test_discard_stops_old_notifications(self):
        old_database = self.presenter.database
        self.presenter.discard_database()
        old_database.add(Entry())
        self.assertEqual(self.changes, [])
        self.presenter.database.add(Entry())
        self.assertEqual(self.changes, [Change.ADDED])


if __name__ == '__main__':
    unittest.main()
