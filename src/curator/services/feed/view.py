"""Caller-side pagination state on top of [FeedLoader][curator.services.feed.FeedLoader].

A view holds the records currently displayed for one kind (and optional
author set), in display order, plus the cursor for the next page. Because
``until`` is inclusive, consecutive pages overlap at their boundary; the view
drops records it already shows. When a page brings nothing new and the
cursor did not move, the view stops paginating.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .loader import sort_records


if TYPE_CHECKING:
    from collections.abc import Iterable

    from curator.models.event import EventRecord

    from .loader import FeedLoader, FeedPage


class FeedView:
    """Displayed records of one feed with explicit refresh and load-more.

    Examples:
        ```python
        view = FeedView(loader, kind=1)
        await view.refresh()
        while view.has_more:
            await view.load_more()
        view.hide(deleted_id)
        ```
    """

    def __init__(
        self,
        loader: FeedLoader,
        kind: int,
        authors: Iterable[str] | None = None,
    ) -> None:
        self._loader = loader
        self._kind = kind
        self._authors = frozenset(authors) if authors is not None else None
        self._records: list[EventRecord] = []
        self._ids: set[str] = set()
        self._cursor: int | None = None
        self._has_more = False
        self._loaded = False

    @property
    def kind(self) -> int:
        return self._kind

    @property
    def records(self) -> tuple[EventRecord, ...]:
        return tuple(self._records)

    @property
    def cursor(self) -> int | None:
        return self._cursor

    @property
    def has_more(self) -> bool:
        return self._has_more

    def __len__(self) -> int:
        return len(self._records)

    async def refresh(self) -> FeedPage:
        """Discard the displayed records and load the newest page."""
        page = await self._loader.load(self._kind, self._authors)
        self._records = list(page.records)
        self._ids = {r.id for r in page.records}
        self._cursor = page.next_cursor
        self._has_more = page.has_more
        self._loaded = True
        return page

    async def load_more(self) -> list[EventRecord]:
        """Append the next page, skipping records already displayed.

        Loads the first page when nothing has been loaded yet.

        Returns:
            The records that were newly added.
        """
        if not self._loaded:
            page = await self.refresh()
            return list(page.records)
        if not self._has_more:
            return []

        previous_cursor = self._cursor
        page = await self._loader.load(self._kind, self._authors, cursor=self._cursor)
        added = [r for r in page.records if r.id not in self._ids]
        for record in added:
            self._ids.add(record.id)
        self._records = sort_records([*self._records, *added])
        self._cursor = page.next_cursor

        advanced = page.next_cursor is not None and (
            previous_cursor is None or page.next_cursor < previous_cursor
        )
        self._has_more = page.has_more and (advanced or bool(added))
        return added

    def hide(self, event_id: str) -> bool:
        """Remove a record from the view, e.g. right after deleting it.

        Returns:
            ``True`` if the record was displayed.
        """
        if event_id not in self._ids:
            return False
        self._ids.discard(event_id)
        self._records = [r for r in self._records if r.id != event_id]
        return True
