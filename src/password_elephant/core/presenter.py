# password_elephant/core/presenter.py
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from password_elephant.core.archive import Archive, open_archive, save_archive
from password_elephant.core.database import ChangeCallback, Database
from password_elephant.core.observers import Subscription
from password_elephant.legacy.importer import import_legacy

PathLike = Union[str, Path]


class DatabasePresenter(ABC):
    """What a user interface needs from the storage layer."""

    @abstractmethod
    def can_save(self) -> bool:
        pass

    @abstractmethod
    def discard_database(self) -> None:
        pass

    @abstractmethod
    def import_file(self, path: PathLike, password: str) -> None:
        pass

    @abstractmethod
    def open_archive(self, path: PathLike, password: str) -> None:
        pass

    @abstractmethod
    def save_archive(self) -> None:
        pass

    @abstractmethod
    def save_archive_as(self, path: PathLike, password: str) -> None:
        pass


class ArchivePresenter(DatabasePresenter):
    """Holds the current Archive and forwards its database changes to a listener."""

    def __init__(self, listener: Optional[ChangeCallback] = None):
        self.listener = listener
        self.archive = Archive()
        self._subscription: Optional[Subscription] = None
        self._watch()

    @property
    def database(self) -> Database:
        return self.archive.database

    def _watch(self) -> None:
        if self.listener is not None:
            self._subscription = self.archive.database.subscribe(self.listener)

    def _replace(self, archive: Archive) -> None:
        if self._subscription is not None:
            self._subscription.invalidate()
            self._subscription = None
        self.archive.database.close()
        self.archive = archive
        self._watch()

    def can_save(self) -> bool:
        return self.archive.can_save()

    def discard_database(self) -> None:
        logging.info("Discarding current database")
        self._replace(Archive())

    def import_file(self, path: PathLike, password: str) -> None:
        self._replace(import_legacy(path, password))

    def open_archive(self, path: PathLike, password: str) -> None:
        self._replace(open_archive(path, password))

    def save_archive(self) -> None:
        save_archive(self.archive)

    def save_archive_as(self, path: PathLike, password: str) -> None:
        save_archive(self.archive, path, password)
