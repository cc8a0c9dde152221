# password_elephant/core/entry.py
import calendar
from datetime import datetime, timedelta
from enum import IntEnum
from typing import Callable, List, Optional

from password_elephant.core.feature import Category, Feature
from password_elephant.core.observers import ObserverCollection, Subscription


class LifetimeUnit(IntEnum):
    DAYS = 0
    WEEKS = 1
    MONTHS = 2

    @classmethod
    def from_wire(cls, number: int) -> 'LifetimeUnit':
        try:
            return cls(number)
        except ValueError:
            return cls.DAYS


def _now() -> datetime:
    return datetime.now().replace(microsecond=0)


def _add_months(date: datetime, months: int) -> datetime:
    month_index = date.month - 1 + months
    year = date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(date.day, calendar.monthrange(year, month)[1])
    return date.replace(year=year, month=month, day=day)


class Entry:
    """A password item made of Features.

    At most one Feature per category is kept, except Unknown, which holds
    every unrecognised imported field. Every replacement drops the previous
    Feature of that category and refreshes ModificationTime.
    Entries compare by identity; use same_content() to compare their data.
    """

    def __init__(self, features: Optional[List[Feature]] = None):
        self.password_lifetime_count: int = 0
        self.password_lifetime_units: LifetimeUnit = LifetimeUnit.DAYS
        self.inactive: bool = False
        self._observers: ObserverCollection[Callable[['Entry'], None]] = ObserverCollection()
        if features is None:
            self.features: List[Feature] = []
            self.replace_feature(Feature.from_date(Category.CREATION_TIME, _now()))
        else:
            self.features = list(features)

    @classmethod
    def copy_of(cls, other: 'Entry') -> 'Entry':
        """Scratch copy for edit-then-commit: edit the copy, then original.update_from(copy)."""
        entry = cls()
        entry.update_from(other)
        return entry

    # Accessors

    def find_first(self, category: Category) -> Optional[Feature]:
        for feature in self.features:
            if feature.category == category:
                return feature
        return None

    def find_all(self, category: Category) -> List[Feature]:
        return [f for f in self.features if f.category == category]

    def _text(self, category: Category) -> Optional[str]:
        feature = self.find_first(category)
        return feature.text if feature else None

    def _date(self, category: Category) -> Optional[datetime]:
        feature = self.find_first(category)
        return feature.date if feature else None

    @property
    def group(self) -> Optional[str]:
        return self._text(Category.GROUP)

    @property
    def title(self) -> Optional[str]:
        return self._text(Category.TITLE)

    @property
    def username(self) -> Optional[str]:
        return self._text(Category.USERNAME)

    @property
    def password(self) -> Optional[str]:
        return self._text(Category.PASSWORD)

    @property
    def notes(self) -> Optional[str]:
        return self._text(Category.NOTES)

    @property
    def url(self) -> Optional[str]:
        return self._text(Category.URL)

    @property
    def uuid(self) -> Optional[str]:
        return self._text(Category.UNIQUE_ID)

    @property
    def created(self) -> Optional[datetime]:
        return self._date(Category.CREATION_TIME)

    @property
    def modified(self) -> Optional[datetime]:
        return self._date(Category.MODIFICATION_TIME)

    @property
    def password_changed(self) -> Optional[datetime]:
        return self._date(Category.PASSWORD_CHANGED_TIME)

    @property
    def expiration(self) -> Optional[datetime]:
        """When the password expires, or None if it has no lifetime."""
        if self.password_lifetime_count <= 0:
            return None
        base = self.password_changed or self.created
        if base is None:
            return None
        count = self.password_lifetime_count
        if self.password_lifetime_units == LifetimeUnit.WEEKS:
            return base + timedelta(weeks=count)
        if self.password_lifetime_units == LifetimeUnit.MONTHS:
            return _add_months(base, count)
        return base + timedelta(days=count)

    # Mutators

    def replace_feature(self, feature: Feature) -> None:
        self._replace_category(feature.category, [feature])

    def add_unknown(self, content: bytes) -> None:
        """Append an Unknown feature, keeping the Unknown features already present."""
        unknown = self.find_all(Category.UNKNOWN)
        self._replace_category(Category.UNKNOWN, unknown + [Feature(Category.UNKNOWN, content)])

    def _replace_category(self, category: Category, features: List[Feature]) -> None:
        others = [f for f in self.features
                  if f.category != category and f.category != Category.MODIFICATION_TIME]
        others.extend(features)
        if category != Category.MODIFICATION_TIME:
            others.append(Feature.from_date(Category.MODIFICATION_TIME, _now()))
        self.features = others

    def set_group(self, group: str) -> None:
        self.replace_feature(Feature.from_text(Category.GROUP, group))

    def set_title(self, title: str) -> None:
        self.replace_feature(Feature.from_text(Category.TITLE, title))

    def set_username(self, username: str) -> None:
        self.replace_feature(Feature.from_text(Category.USERNAME, username))

    def set_notes(self, notes: str) -> None:
        self.replace_feature(Feature.from_text(Category.NOTES, notes))

    def set_url(self, url: str) -> None:
        self.replace_feature(Feature.from_text(Category.URL, url))

    def set_password(self, password: str) -> None:
        self.replace_feature(Feature.from_text(Category.PASSWORD, password))
        self.replace_feature(Feature.from_date(Category.PASSWORD_CHANGED_TIME, _now()))

    def set_password_lifetime(self, count: int, units: LifetimeUnit) -> None:
        self.password_lifetime_count = count
        self.password_lifetime_units = units

    def set_inactive(self, inactive: bool) -> None:
        self.inactive = inactive

    def update_from(self, other: 'Entry') -> None:
        """Replace every category present in other, then notify observers once."""
        for feature in other.features:
            if feature.category in (Category.MODIFICATION_TIME, Category.UNKNOWN):
                continue
            self.replace_feature(Feature(feature.category, feature.content))
        unknown = other.find_all(Category.UNKNOWN)
        if unknown:
            self._replace_category(Category.UNKNOWN, [Feature(f.category, f.content) for f in unknown])
        self.password_lifetime_count = other.password_lifetime_count
        self.password_lifetime_units = other.password_lifetime_units
        self.inactive = other.inactive
        self._observers.for_each(lambda observer: observer(self))

    # Observation

    def subscribe(self, callback: Callable[['Entry'], None]) -> Subscription:
        return self._observers.add(callback)

    def same_content(self, other: 'Entry') -> bool:
        return (self.features == other.features
                and self.password_lifetime_count == other.password_lifetime_count
                and self.password_lifetime_units == other.password_lifetime_units
                and self.inactive == other.inactive)

    def __repr__(self):
        return f"Entry(title={self.title!r}, username={self.username!r}, features={len(self.features)})"
