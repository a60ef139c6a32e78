"""Process-wide sequential identifier allocator with batch persistence.

One :class:`IdAllocator` is built per run and handed to every component
that mints records. Allocation happens purely in memory; the counter only
reaches disk when the owner calls :meth:`IdAllocator.persist`, which the
crawl service does once per batch (after a traversal, after enrichment).

A crash between persists re-issues the ids handed out since the last
persist on the next run. Ids only need to be unique within the records of
one merged document, so that degrades numbering but loses no data.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError

from catalog_crawler.models.catalog import AllocatorState
from catalog_crawler.utils.atomic import atomic_write_text
from catalog_crawler.utils.logging import get_logger

_FIRST_ID = 1


class IdAllocator:
    """Monotonic counter restored from and saved to a small JSON file.

    Parameters
    ----------
    state_path:
        Location of the ``{"nextId": n}`` state file.
    """

    def __init__(self, state_path: str | Path) -> None:
        self._state_path = Path(state_path)
        self._logger = get_logger(__name__)
        self._next_id = self._load()

    @property
    def next_id(self) -> int:
        """The value the next :meth:`allocate` call will return."""
        return self._next_id

    @property
    def state_path(self) -> Path:
        return self._state_path

    def allocate(self) -> int:
        """Return the current counter value and advance it by one."""
        value = self._next_id
        self._next_id += 1
        return value

    def set_start(self, start: int | None) -> None:
        """Override the counter with *start* if it is a positive integer.

        Anything else (``None``, zero, negatives, non-ints) is ignored.
        """
        if isinstance(start, int) and not isinstance(start, bool) and start > 0:
            self._logger.debug("id_allocator_start_overridden", previous=self._next_id, start=start)
            self._next_id = start

    def persist(self) -> bool:
        """Write the current counter to the state file.

        Failures are logged and swallowed; returns whether the write succeeded.
        """
        state = AllocatorState(next_id=self._next_id)
        try:
            atomic_write_text(self._state_path, state.model_dump_json(by_alias=True, indent=2))
        except OSError as exc:
            self._logger.warning(
                "id_allocator_persist_failed",
                path=str(self._state_path),
                error=str(exc),
            )
            return False
        self._logger.debug("id_allocator_persisted", path=str(self._state_path), next_id=self._next_id)
        return True

    def _load(self) -> int:
        if not self._state_path.exists():
            return _FIRST_ID
        try:
            state = AllocatorState.model_validate_json(self._state_path.read_text(encoding="utf-8"))
        except (OSError, ValidationError, ValueError) as exc:
            self._logger.warning(
                "id_allocator_state_unreadable",
                path=str(self._state_path),
                error=str(exc),
            )
            return _FIRST_ID
        return state.next_id
