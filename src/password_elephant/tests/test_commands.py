import json
import os
import tempfile
import unittest

from click.testing import CliRunner

from password_elephant.cli.commands import cli
from password_elephant.core.archive import open_archive
from password_elephant.tests.legacy_fixture import GORILLA_RECORD, write_safe


class TestCommands(unittest.TestCase):
    def setUp(self):
        """Give each test its own archive and settings file"""
        self.runner = CliRunner()
        self.tmp = tempfile.TemporaryDirectory()
        self.archive = os.path.join(self.tmp.name, 'vault.elephant')
        self.settings = os.path.join(self.tmp.name, 'settings.json')

    def tearDown(self):
        self.tmp.cleanup()

    def invoke(self, args, input=None):
        return self.runner.invoke(cli, ['--archive', self.archive, '--settings', self.settings] + args, input=input)

    def init(self, password='pw'):
        result = self.invoke(['init'], input=f'{password}\n{password}\n')
        self.assertEqual(result.exit_code, 0, result.output)

    def add(self, title, username='alice', password='secret'):
        result = self.invoke(['add', '--title', title, '--username', username],
                             input=f'pw\n{password}\n{password}\n')
        self.assertEqual(result.exit_code, 0, result.output)
        return result

    def test_init(self):
        self.init()
        self.assertTrue(os.path.exists(self.archive))
        self.assertTrue(open_archive(self.archive, 'pw').database.is_empty)

    def test_init_refuses_to_overwrite(self):
        self.init()
        result = self.invoke(['init'], input='pw\npw\n')
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn('already exists', result.output)

    def test_add_and_list(self):
        self.init()
        result = self.add('Bank')
        self.assertIn('Added entry 1: Bank', result.output)
        result = self.invoke(['list'], input='pw\n')
        self.assertIn('1: Bank', result.output)
        self.assertIn('alice', result.output)

    def test_list_empty(self):
        self.init()
        result = self.invoke(['list'], input='pw\n')
        self.assertIn('No entries.', result.output)

    def test_show_hides_password_unless_revealed(self):
        self.init()
        self.add('Bank', password='hunter2')
        result = self.invoke(['show', '1'], input='pw\n')
        self.assertIn('Title: Bank', result.output)
        self.assertNotIn('hunter2', result.output)
        result = self.invoke(['show', '1', '--reveal'], input='pw\n')
        self.assertIn('Password: hunter2', result.output)

    def test_show_unknown_number(self):
        self.init()
        result = self.invoke(['show', '3'], input='pw\n')
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn('No entry number 3', result.output)

    def test_incorrect_password_reprompts(self):
        self.init()
        result = self.invoke(['list'], input='bad\npw\n')
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('Incorrect password.', result.output)

    def test_too_many_incorrect_passwords(self):
        self.init()
        result = self.invoke(['list'], input='a\nb\nc\n')
        self.assertNotEqual(result.exit_code, 0)
        self.assertEqual(result.output.count('Incorrect password.'), 3)
        self.assertIn('Error: Too many incorrect password attempts.', result.output)

    def test_add_generated(self):
        self.init()
        result = self.invoke(['add', '--title', 'Mail', '--username', 'bob', '--generate', '--length', '24'],
                             input='pw\n')
        self.assertEqual(result.exit_code, 0, result.output)
        entry = open_archive(self.archive, 'pw').database.entries[0]
        self.assertEqual(len(entry.password), 24)
        self.assertIn(f'Generated password: {entry.password}', result.output)

    def test_edit(self):
        self.init()
        self.add('Bank')
        result = self.invoke(['edit', '1', '--title', 'Savings', '--url', 'https://bank.example/',
                              '--lifetime', '2', '--units', 'weeks'], input='pw\n')
        self.assertEqual(result.exit_code, 0, result.output)
        entry = open_archive(self.archive, 'pw').database.entries[0]
        self.assertEqual(entry.title, 'Savings')
        self.assertEqual(entry.username, 'alice')
        self.assertEqual(entry.url, 'https://bank.example/')
        self.assertIsNotNone(entry.expiration)

    def test_inactive_entries_hidden(self):
        self.init()
        self.add('Old')
        self.add('Current')
        self.invoke(['edit', '1', '--inactive'], input='pw\n')
        result = self.invoke(['list'], input='pw\n')
        self.assertNotIn('Old', result.output)
        self.assertIn('2: Current', result.output)
        result = self.invoke(['list', '--show-inactive'], input='pw\n')
        self.assertIn('1: Old', result.output)
        self.assertIn('(inactive)', result.output)

    def test_remove(self):
        self.init()
        self.add('Bank')
        self.add('Mail')
        result = self.invoke(['remove', '1', '--yes'], input='pw\n')
        self.assertEqual(result.exit_code, 0, result.output)
        titles = [e.title for e in open_archive(self.archive, 'pw').database.entries]
        self.assertEqual(titles, ['Mail'])

    def test_import(self):
        source = os.path.join(self.tmp.name, 'gorilla.dat')
        write_safe(source, 'masterpass', [GORILLA_RECORD])
        result = self.invoke(['import', source], input='masterpass\nelephant\nelephant\n')
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('Imported 1 entries', result.output)
        entry = open_archive(self.archive, 'elephant').database.entries[0]
        self.assertEqual(entry.username, 'ImportUser')

    def test_import_strict_failure(self):
        source = os.path.join(self.tmp.name, 'odd.dat')
        write_safe(source, 'masterpass', [[(42, b'mystery')]])
        result = self.invoke(['import', source, '--strict'], input='masterpass\n')
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn('Error: Unsupported field type 42', result.output)
        self.assertFalse(os.path.exists(self.archive))

    def test_passwd(self):
        self.init()
        self.add('Bank')
        result = self.invoke(['passwd'], input='pw\nnewpw\nnewpw\n')
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(open_archive(self.archive, 'newpw').database.count, 1)

    def test_generate(self):
        result = self.invoke(['generate', '--length', '20'])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(len(result.output.strip()), 20)

    def test_generate_invalid(self):
        result = self.invoke(['generate', '--length', '4'])
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn('Error:', result.output)

    def test_config(self):
        result = self.invoke(['config', 'generator_length', '24'])
        self.assertEqual(result.exit_code, 0, result.output)
        with open(self.settings) as f:
            self.assertEqual(json.load(f)['generator_length'], 24)
        result = self.invoke(['generate'])
        self.assertEqual(len(result.output.strip()), 24)

    def test_config_unknown_key(self):
        result = self.invoke(['config', 'colour', 'blue'])
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn('Unknown setting: colour', result.output)

    def test_config_rejects_wrong_type(self):
        result = self.invoke(['config', 'generator_length', 'abc'])
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn('Error: Setting generator_length must be a whole number', result.output)
        self.assertFalse(os.path.exists(self.settings))
        result = self.invoke(['generate'])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(len(result.output.strip()), 16)

    def test_badly_typed_setting_file_ignored(self):
        with open(self.settings, 'w') as f:
            json.dump({'generator_length': 'abc', 'show_inactive_entries': 1}, f)
        result = self.invoke(['generate'])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(len(result.output.strip().splitlines()[-1]), 16)


if __name__ == '__main__':
    unittest.main()
