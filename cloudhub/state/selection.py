"""Set of file ids the user has marked in the current listing."""

from typing import Iterable

from ..events.base import SelectionChangedEvent
from ..events.dispatcher import EventDispatcher


class FileSelection:
    """Marked file ids, always a subset of the ids in the current listing.

    The listing cache calls ``retain`` on every replacement; ids outside the
    listing can never be marked.
    """

    def __init__(self, dispatcher: EventDispatcher):
        self._dispatcher = dispatcher
        self._available: set[int] = set()
        self._selected: set[int] = set()

    @property
    def ids(self) -> frozenset[int]:
        return frozenset(self._selected)

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, file_id: object) -> bool:
        return file_id in self._selected

    def select(self, file_id: int) -> bool:
        if file_id not in self._available or file_id in self._selected:
            return False
        self._selected.add(file_id)
        self._fire()
        return True

    def deselect(self, file_id: int) -> bool:
        if file_id not in self._selected:
            return False
        self._selected.discard(file_id)
        self._fire()
        return True

    def toggle(self, file_id: int) -> bool:
        """Flip one id. Returns whether it is selected afterwards."""
        if file_id in self._selected:
            self.deselect(file_id)
            return False
        return self.select(file_id)

    def select_all(self) -> None:
        if self._selected != self._available:
            self._selected = set(self._available)
            self._fire()

    def clear(self) -> None:
        if self._selected:
            self._selected.clear()
            self._fire()

    def retain(self, available_ids: Iterable[int]) -> None:
        """Install the ids of a new listing and drop marks outside it."""
        self._available = set(available_ids)
        kept = self._selected & self._available
        if kept != self._selected:
            self._selected = kept
            self._fire()

    def _fire(self) -> None:
        self._dispatcher.fire(SelectionChangedEvent(selected_ids=sorted(self._selected)))
