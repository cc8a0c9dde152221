# password_elephant/core/database.py
import logging
from enum import Enum
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from password_elephant.core.entry import Entry
from password_elephant.core.observers import ObserverCollection, Subscription


class Change(Enum):
    ADDED = "added"
    UPDATED = "updated"
    DELETED = "deleted"


ChangeCallback = Callable[[Change, Entry], None]


class Database:
    """An ordered collection of entries, unique by identity."""

    def __init__(self, entries: Optional[Iterable[Entry]] = None):
        self.entries: List[Entry] = []
        self._observers: ObserverCollection[ChangeCallback] = ObserverCollection()
        self._entry_subscriptions: Dict[int, Subscription] = {}
        for entry in entries or []:
            self.entries.append(entry)
            self._start_observing(entry)

    def subscribe(self, callback: ChangeCallback) -> Subscription:
        """Register callback(change, entry); call invalidate() on the handle to stop."""
        return self._observers.add(callback)

    def _notify(self, change: Change, entry: Entry) -> None:
        self._observers.for_each(lambda callback: callback(change, entry))

    def _start_observing(self, entry: Entry) -> None:
        if id(entry) in self._entry_subscriptions:
            return
        self._entry_subscriptions[id(entry)] = entry.subscribe(self._entry_updated)

    def _stop_observing(self, entry: Entry) -> None:
        subscription = self._entry_subscriptions.pop(id(entry), None)
        if subscription is not None:
            subscription.invalidate()

    def _entry_updated(self, entry: Entry) -> None:
        self._notify(Change.UPDATED, entry)

    def _index_of(self, entry: Entry) -> Optional[int]:
        for index, candidate in enumerate(self.entries):
            if candidate is entry:
                return index
        return None

    def add_entry(self, entry: Entry) -> None:
        if self._index_of(entry) is not None:
            raise ValueError("Entry is already in the database.")
        self.entries.append(entry)
        self._start_observing(entry)
        logging.debug(f"Entry added, database holds {self.count} entries")
        self._notify(Change.ADDED, entry)

    def add(self, entry: Entry) -> None:
        self.add_entry(entry)

    def delete_entry(self, entry: Entry) -> bool:
        index = self._index_of(entry)
        if index is None:
            return False
        del self.entries[index]
        self._stop_observing(entry)
        logging.debug(f"Entry deleted, database holds {self.count} entries")
        self._notify(Change.DELETED, entry)
        return True

    def delete(self, entries: Iterable[Entry]) -> int:
        """Delete each given entry by identity; returns how many were removed."""
        return sum(1 for entry in list(entries) if self.delete_entry(entry))

    def close(self) -> None:
        """Release the subscriptions held on contained entries."""
        for subscription in self._entry_subscriptions.values():
            subscription.invalidate()
        self._entry_subscriptions.clear()

    @property
    def count(self) -> int:
        return len(self.entries)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def __len__(self):
        return len(self.entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries)
