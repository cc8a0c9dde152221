# password_elephant/legacy/importer.py
import logging
from pathlib import Path
from typing import Optional, Union

from password_elephant.core.archive import Archive
from password_elephant.core.database import Database
from password_elephant.core.entry import Entry
from password_elephant.core.errors import UnsupportedField
from password_elephant.core.feature import Category, Feature, encode_date
from password_elephant.legacy.field import FieldType, PasswordSafeField
from password_elephant.legacy.record import PasswordSafeRecord
from password_elephant.legacy.safe_db import PasswordSafeDB

TEXT_CATEGORIES = {
    FieldType.GROUP: Category.GROUP,
    FieldType.TITLE: Category.TITLE,
    FieldType.USERNAME: Category.USERNAME,
    FieldType.PASSWORD: Category.PASSWORD,
    FieldType.NOTES: Category.NOTES,
    FieldType.URL: Category.URL,
}

# Only imported with keep_dates=True.
DATE_CATEGORIES = {
    FieldType.CREATION_TIME: Category.CREATION_TIME,
    FieldType.PASSWORD_MODIFICATION_TIME: Category.PASSWORD_CHANGED_TIME,
    FieldType.LAST_MODIFICATION_TIME: Category.MODIFICATION_TIME,
}


def reencode_date(field: PasswordSafeField) -> bytes:
    """Epoch seconds to the 7-byte calendar encoding used by archives."""
    date = field.date
    return encode_date(date) if date is not None else b""


def feature_from_field(field: PasswordSafeField, is_utf8: bool,
                       strict: bool = False, keep_dates: bool = False) -> Optional[Feature]:
    """The Feature for a legacy field, or None when the field is not imported."""
    if field.type in TEXT_CATEGORIES:
        content = field.content if is_utf8 else field.text(is_utf8=False).encode('utf-8')
        return Feature(TEXT_CATEGORIES[field.type], content)
    if field.type == FieldType.UNKNOWN:
        if strict:
            raise UnsupportedField(field.raw_type)
        return Feature(Category.UNKNOWN, field.content)
    if keep_dates and field.type in DATE_CATEGORIES:
        content = reencode_date(field)
        return Feature(DATE_CATEGORIES[field.type], content) if content else None
    return None


def entry_from_record(record: PasswordSafeRecord, strict: bool = False, keep_dates: bool = False) -> Entry:
    entry = Entry()
    modified = None
    for field in record.fields:
        feature = feature_from_field(field, record.is_utf8, strict, keep_dates)
        if feature is None:
            continue
        if feature.category == Category.MODIFICATION_TIME:
            modified = feature
        elif feature.category == Category.UNKNOWN:
            entry.add_unknown(feature.content)
        else:
            entry.replace_feature(feature)
    # Every replacement restamps ModificationTime, so an imported one goes last.
    if modified is not None:
        entry.replace_feature(modified)
    return entry


def database_from_safe(safe_db: PasswordSafeDB, strict: bool = False, keep_dates: bool = False) -> Database:
    database = Database()
    for record in safe_db.records:
        database.add_entry(entry_from_record(record, strict, keep_dates))
    return database


def import_legacy(path: Union[str, Path], password: str,
                  strict: bool = False, keep_dates: bool = False) -> Archive:
    """
    Import a Password Safe 2.0 database into a new, unsaved Archive.

    The Archive has no path or password; the caller chooses both before
    saving. With strict=True an unrecognised field type raises
    UnsupportedField instead of being kept as an Unknown feature.
    """
    safe_db = PasswordSafeDB.open(path, password)
    database = database_from_safe(safe_db, strict, keep_dates)
    logging.info(f"Imported {database.count} entries from {path}")
    return Archive(database)
