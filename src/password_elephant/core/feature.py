# password_elephant/core/feature.py
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Optional

DATE_LENGTH = 7
INT_LENGTH = 4


class Category(IntEnum):
    """Feature categories. Values are the wire numbers used in archives."""
    RAW = 0
    GROUP = 1
    TITLE = 2
    USERNAME = 3
    PASSWORD = 4
    NOTES = 5
    URL = 6
    CREATION_TIME = 7
    PASSWORD_CHANGED_TIME = 8
    MODIFICATION_TIME = 9
    UNIQUE_ID = 10
    PASSWORD_LIFETIME_COUNT = 11
    PASSWORD_LIFETIME_UNITS = 12
    UNKNOWN = 13

    @classmethod
    def from_wire(cls, number: int) -> 'Category':
        try:
            return cls(number)
        except ValueError:
            return cls.UNKNOWN


def encode_date(date: datetime) -> bytes:
    """Encode a datetime as (year_lo, year_hi, month, day, hour, minute, second)."""
    return bytes([
        date.year & 0xFF,
        date.year >> 8,
        date.month,
        date.day,
        date.hour,
        date.minute,
        date.second,
    ])


def decode_date(content: bytes) -> Optional[datetime]:
    if len(content) < DATE_LENGTH:
        return None
    year = content[0] + (content[1] << 8)
    try:
        return datetime(year, content[2], content[3], content[4], content[5], content[6])
    except ValueError:
        return None


@dataclass(frozen=True)
class Feature:
    """The smallest unit of data in a database: a category and its encoded content."""
    category: Category
    content: bytes = b""

    @classmethod
    def from_text(cls, category: Category, text: str) -> 'Feature':
        return cls(category, text.encode('utf-8'))

    @classmethod
    def from_date(cls, category: Category, date: datetime) -> 'Feature':
        return cls(category, encode_date(date))

    @classmethod
    def from_int(cls, category: Category, value: int) -> 'Feature':
        return cls(category, value.to_bytes(INT_LENGTH, 'little', signed=True))

    @property
    def text(self) -> Optional[str]:
        try:
            return self.content.decode('utf-8')
        except UnicodeDecodeError:
            return None

    @property
    def date(self) -> Optional[datetime]:
        return decode_date(self.content)

    @property
    def integer(self) -> int:
        return int.from_bytes(self.content, 'little', signed=True)

    def __repr__(self):
        if self.category == Category.PASSWORD:
            return "Feature(PASSWORD, ********)"
        return f"Feature({self.category.name}, {self.content!r})"
