import unittest
from datetime import datetime

from password_elephant.core.entry import Entry, LifetimeUnit
from password_elephant.core.feature import Category, Feature


class TestEntry(unittest.TestCase):
    def test_new_entry_has_creation_time(self):
        before = datetime.now().replace(microsecond=0)
        entry = Entry()
        self.assertIsNotNone(entry.created)
        self.assertGreaterEqual(entry.created, before)

    def test_replace_keeps_one_feature_per_category(self):
        entry = Entry()
        entry.set_title("First")
        before = datetime.now().replace(microsecond=0)
        entry.set_title("Second")
        titles = [f for f in entry.features if f.category == Category.TITLE]
        self.assertEqual(len(titles), 1)
        self.assertEqual(entry.title, "Second")
        stamps = [f for f in entry.features if f.category == Category.MODIFICATION_TIME]
        self.assertEqual(len(stamps), 1)
        self.assertGreaterEqual(entry.modified, before)

    def test_set_password_stamps_change_time(self):
        entry = Entry()
        entry.set_password("s3cret")
        self.assertEqual(entry.password, "s3cret")
        self.assertIsNotNone(entry.password_changed)

    def test_explicit_entry_features_kept_in_order(self):
        features = [Feature.from_text(Category.TITLE, "a"), Feature.from_text(Category.URL, "b")]
        entry = Entry(features=features)
        self.assertEqual(entry.features, features)

    def test_update_from_notifies_once(self):
        entry = Entry()
        calls = []
        entry.subscribe(calls.append)
        scratch = Entry.copy_of(entry)
        scratch.set_username("alice")
        scratch.set_url("https://example.com/")
        entry.update_from(scratch)
        self.assertEqual(calls, [entry])
        self.assertEqual(entry.username, "alice")
        self.assertEqual(entry.url, "https://example.com/")

    def test_invalidated_subscription_is_not_called(self):
        entry = Entry()
        calls = []
        subscription = entry.subscribe(calls.append)
        subscription.invalidate()
        entry.update_from(Entry())
        self.assertEqual(calls, [])

    def test_unknown_features_survive_edit(self):
        entry = Entry()
        entry.add_unknown(b"first")
        entry.add_unknown(b"second")
        scratch = Entry.copy_of(entry)
        scratch.set_title("Edited")
        entry.update_from(scratch)
        self.assertEqual([f.content for f in entry.find_all(Category.UNKNOWN)], [b"first", b"second"])
        self.assertEqual(entry.title, "Edited")

    def test_copy_is_independent(self):
        entry = Entry()
        entry.set_title("Original")
        copy = Entry.copy_of(entry)
        copy.set_title("Changed")
        self.assertEqual(entry.title, "Original")
        self.assertIsNot(copy, entry)

    def test_expiration(self):
        entry = Entry()
        entry.set_password("pw")
        self.assertIsNone(entry.expiration)
        entry.set_password_lifetime(2, LifetimeUnit.WEEKS)
        self.assertEqual((entry.expiration - entry.password_changed).days, 14)

    def test_month_lifetime_clamps_day(self):
        entry = Entry(features=[Feature.from_date(Category.PASSWORD_CHANGED_TIME, datetime(2021, 1, 31))])
        entry.set_password_lifetime(1, LifetimeUnit.MONTHS)
        self.assertEqual(entry.expiration, datetime(2021, 2, 28))

    def test_identity_not_content_equality(self):
        features = [Feature.from_text(Category.TITLE, "same")]
        a, b = Entry(features=features), Entry(features=features)
        self.assertNotEqual(a, b)
        self.assertTrue(a.same_content(b))


if __name__ == '__main__':
    unittest.main()
