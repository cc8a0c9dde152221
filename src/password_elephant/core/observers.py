# password_elephant/core/observers.py
from typing import Callable, Generic, List, Optional, TypeVar

Observer = TypeVar('Observer')


class Subscription:
    """Handle returned by ObserverCollection.add; invalidate() releases it."""

    def __init__(self, observer):
        self._observer = observer

    @property
    def observer(self):
        return self._observer

    @property
    def is_valid(self) -> bool:
        return self._observer is not None

    def invalidate(self) -> None:
        self._observer = None


class ObserverCollection(Generic[Observer]):
    """Registry of observers indexed by their subscription handles."""

    def __init__(self):
        self._registrations: List[Subscription] = []

    def add(self, observer: Observer) -> Subscription:
        registration = Subscription(observer)
        self._registrations.append(registration)
        return registration

    def for_each(self, body: Callable[[Observer], None]) -> None:
        """Call body on each live observer, pruning invalidated registrations."""
        found_invalid = False
        for registration in list(self._registrations):
            observer: Optional[Observer] = registration.observer
            if observer is None:
                found_invalid = True
                continue
            body(observer)
        if found_invalid:
            self._registrations = [r for r in self._registrations if r.is_valid]

    def __len__(self):
        return sum(1 for r in self._registrations if r.is_valid)
