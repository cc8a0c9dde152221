import json
import logging
import os
from functools import wraps
from pathlib import Path

import click

from password_elephant.cli.settings import DATA_DIR, SETTINGS_FILE, Settings
from password_elephant.core.archive import Archive, open_archive, save_archive
from password_elephant.core.entry import Entry, LifetimeUnit
from password_elephant.core.errors import IncorrectPassword, PasswordElephantError
from password_elephant.legacy.importer import import_legacy

LOG_FILE = DATA_DIR / 'elephant.log'
MAX_PASSWORD_ATTEMPTS = 3
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def report_errors(f):
    """Turn storage and generator errors into a click error ("Error: ...", exit status 1)."""
    @wraps(f)
    def wrapped(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except (PasswordElephantError, ValueError) as e:
            logging.error(f"{f.__name__} failed: {e}")
            raise click.ClickException(str(e)) from e
    return wrapped


def unlock(opener, path, prompt_text="Enter master password"):
    """Prompt for a password until opener(path, password) accepts it."""
    for attempt in range(1, MAX_PASSWORD_ATTEMPTS + 1):
        password = click.prompt(prompt_text, hide_input=True)
        try:
            return opener(path, password)
        except IncorrectPassword:
            logging.warning(f"Incorrect password for {path} (attempt {attempt})")
            click.echo("Incorrect password.")
    raise click.ClickException("Too many incorrect password attempts.")


def new_password(prompt_text="Enter new master password"):
    return click.prompt(prompt_text, hide_input=True, confirmation_prompt=True)


def entry_at(archive: Archive, number: int) -> Entry:
    entries = archive.database.entries
    if number < 1 or number > len(entries):
        raise click.ClickException(f"No entry number {number} (archive has {len(entries)} entries).")
    return entries[number - 1]


def format_date(date):
    return date.strftime(DATE_FORMAT) if date else "-"


def parse_setting(value: str):
    try:
        return json.loads(value)
    except ValueError:
        return value


@click.group()
@click.option('--archive', 'archive_path', envvar='ELEPHANT_ARCHIVE', default=None,
              type=click.Path(dir_okay=False), help='Archive file to work on.')
@click.option('--settings', 'settings_path', envvar='ELEPHANT_SETTINGS', default=str(SETTINGS_FILE),
              type=click.Path(dir_okay=False), help='Settings file.')
@click.pass_context
def cli(ctx, archive_path, settings_path):
    """Password Elephant CLI

    Keeps passwords in an encrypted archive and imports Password Safe 2.0
    databases written by Password Gorilla.
    """
    settings = Settings(Path(settings_path))
    ctx.obj = {
        "settings": settings,
        "archive_path": Path(archive_path) if archive_path else settings.archive_path,
    }


@cli.command()
@click.option('--force', is_flag=True, help='Overwrite an existing archive.')
@click.pass_obj
@report_errors
def init(obj, force):
    """Create a new, empty archive."""
    path = obj["archive_path"]
    if path.exists() and not force:
        raise click.ClickException(f"{path} already exists. Use --force to overwrite it.")
    path.parent.mkdir(parents=True, exist_ok=True)
    password = new_password()
    save_archive(Archive(), path, password)
    click.echo(f"Created archive at {path}")


@cli.command(name="list")
@click.option('--show-inactive/--hide-inactive', default=None,
              help='Include entries marked inactive (default from settings).')
@click.option('--group', default=None, help='Only list entries in this group.')
@click.pass_obj
@report_errors
def list_entries(obj, show_inactive, group):
    """List the entries of the archive."""
    if show_inactive is None:
        show_inactive = obj["settings"].show_inactive_entries
    archive = unlock(open_archive, obj["archive_path"])
    shown = 0
    for number, entry in enumerate(archive.database.entries, start=1):
        if entry.inactive and not show_inactive:
            continue
        if group is not None and entry.group != group:
            continue
        marker = " (inactive)" if entry.inactive else ""
        click.echo(f"  {number}: {entry.title or '<untitled>'} [{entry.group or ''}] {entry.username or ''}{marker}")
        shown += 1
    if not shown:
        click.echo("No entries.")


@cli.command()
@click.argument('number', type=int)
@click.option('--reveal', is_flag=True, help='Print the password.')
@click.pass_obj
@report_errors
def show(obj, number, reveal):
    """Show one entry by its number in `list`."""
    archive = unlock(open_archive, obj["archive_path"])
    entry = entry_at(archive, number)
    click.echo(f"Title: {entry.title or ''}")
    click.echo(f"Group: {entry.group or ''}")
    click.echo(f"Username: {entry.username or ''}")
    click.echo(f"URL: {entry.url or ''}")
    click.echo(f"Notes: {entry.notes or ''}")
    password = entry.password or ''
    click.echo(f"Password: {password if reveal else '*' * 8}")
    click.echo(f"Created: {format_date(entry.created)}")
    click.echo(f"Modified: {format_date(entry.modified)}")
    click.echo(f"Password changed: {format_date(entry.password_changed)}")
    click.echo(f"Expires: {format_date(entry.expiration)}")
    if entry.inactive:
        click.echo("Inactive: yes")


@cli.command()
@click.option('--title', prompt='Title')
@click.option('--username', prompt='Username', default='', show_default=False)
@click.option('--group', default='', help='Group of the entry.')
@click.option('--url', default='', help='URL of the entry.')
@click.option('--notes', default='', help='Free-form notes.')
@click.option('--generate', is_flag=True, help='Generate the password instead of prompting for it.')
@click.option('--length', type=int, default=None, help='Length of a generated password.')
@click.pass_obj
@report_errors
def add(obj, title, username, group, url, notes, generate, length):
    """Add a new entry to the archive."""
    archive = unlock(open_archive, obj["archive_path"])
    if generate:
        generator = obj["settings"].generator()
        if length is not None:
            generator.length = length
        password = generator.generate()
    else:
        password = click.prompt('Password', hide_input=True, confirmation_prompt=True)

    entry = Entry()
    entry.set_title(title)
    for value, setter in ((username, entry.set_username), (group, entry.set_group),
                          (url, entry.set_url), (notes, entry.set_notes)):
        if value:
            setter(value)
    entry.set_password(password)
    archive.database.add(entry)
    save_archive(archive)
    click.echo(f"Added entry {archive.database.count}: {title}")
    if generate:
        click.echo(f"Generated password: {password}")


@cli.command()
@click.argument('number', type=int)
@click.option('--title', default=None)
@click.option('--username', default=None)
@click.option('--group', default=None)
@click.option('--url', default=None)
@click.option('--notes', default=None)
@click.option('--change-password', is_flag=True, help='Prompt for a new password.')
@click.option('--generate', is_flag=True, help='Replace the password with a generated one.')
@click.option('--lifetime', type=int, default=None, help='Password lifetime count (0 for none).')
@click.option('--units', type=click.Choice(['days', 'weeks', 'months']), default='days',
              help='Units of --lifetime.')
@click.option('--inactive/--active', default=None, help='Mark the entry inactive or active.')
@click.pass_obj
@report_errors
def edit(obj, number, title, username, group, url, notes, change_password, generate, lifetime, units, inactive):
    """Edit an entry; only the given fields change."""
    archive = unlock(open_archive, obj["archive_path"])
    entry = entry_at(archive, number)
    scratch = Entry.copy_of(entry)

    for value, setter in ((title, scratch.set_title), (username, scratch.set_username),
                          (group, scratch.set_group), (url, scratch.set_url), (notes, scratch.set_notes)):
        if value is not None:
            setter(value)
    if generate:
        scratch.set_password(obj["settings"].generator().generate())
    elif change_password:
        scratch.set_password(click.prompt('New password', hide_input=True, confirmation_prompt=True))
    if lifetime is not None:
        scratch.set_password_lifetime(lifetime, LifetimeUnit[units.upper()])
    if inactive is not None:
        scratch.set_inactive(inactive)

    entry.update_from(scratch)
    save_archive(archive)
    click.echo(f"Updated entry {number}: {entry.title or '<untitled>'}")


@cli.command(name="remove")
@click.argument('number', type=int)
@click.option('--yes', is_flag=True, help='Do not ask for confirmation.')
@click.pass_obj
@report_errors
def remove_entry(obj, number, yes):
    """Remove an entry by its number in `list`."""
    archive = unlock(open_archive, obj["archive_path"])
    entry = entry_at(archive, number)
    if not yes and not click.confirm(f"Remove '{entry.title or '<untitled>'}'?"):
        click.echo("Aborted.")
        return
    archive.database.delete([entry])
    save_archive(archive)
    click.echo(f"Removed entry {number}.")


@cli.command(name="import")
@click.argument('source', type=click.Path(exists=True, dir_okay=False))
@click.option('--strict', is_flag=True, help='Fail on field types that cannot be imported.')
@click.option('--keep-dates', is_flag=True, help='Import creation and modification times.')
@click.option('--force', is_flag=True, help='Overwrite an existing archive.')
@click.pass_obj
@report_errors
def import_file(obj, source, strict, keep_dates, force):
    """Import a Password Safe 2.0 database into a new archive."""
    path = obj["archive_path"]
    if path.exists() and not force:
        raise click.ClickException(f"{path} already exists. Use --force to overwrite it.")
    archive = unlock(lambda p, pw: import_legacy(p, pw, strict=strict, keep_dates=keep_dates),
                     source, "Enter Password Safe password")
    path.parent.mkdir(parents=True, exist_ok=True)
    save_archive(archive, path, new_password("Enter master password for the new archive"))
    click.echo(f"Imported {archive.database.count} entries into {path}")


@cli.command()
@click.pass_obj
@report_errors
def passwd(obj):
    """Change the master password of the archive."""
    archive = unlock(open_archive, obj["archive_path"], "Enter current master password")
    save_archive(archive, password=new_password())
    click.echo("Master password changed.")


@cli.command()
@click.option('--length', type=int, default=None, help='Password length.')
@click.option('--punctuation', type=int, default=None, help='Minimum punctuation characters.')
@click.option('--special', type=int, default=None, help='Minimum special characters.')
@click.pass_obj
@report_errors
def generate(obj, length, punctuation, special):
    """Print a generated password."""
    generator = obj["settings"].generator()
    if length is not None:
        generator.length = length
    if punctuation is not None:
        generator.min_punctuation = punctuation
    if special is not None:
        generator.min_special = special
    click.echo(generator.generate())


@cli.command()
@click.argument('key', required=False)
@click.argument('value', required=False)
@click.pass_obj
def config(obj, key, value):
    """Show settings, or set KEY to VALUE."""
    settings = obj["settings"]
    if key is None:
        for name, current in settings.values.items():
            click.echo(f"{name} = {json.dumps(current)}")
        return
    if value is None:
        if key not in settings.values:
            raise click.ClickException(f"Unknown setting: {key}")
        click.echo(json.dumps(settings.values[key]))
        return
    try:
        settings.set(key, parse_setting(value))
    except KeyError:
        raise click.ClickException(f"Unknown setting: {key}") from None
    except ValueError as e:
        raise click.ClickException(str(e)) from None
    settings.save()
    click.echo(f"{key} = {json.dumps(settings.values[key])}")


def main():
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    os.chmod(DATA_DIR, 0o700)
    logging.basicConfig(filename=LOG_FILE, level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    cli()


if __name__ == '__main__':
    main()
