"""Bookmark CRUD tools over a host bookmark store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import urlsplit

from browsebot.ids import new_id

logger = logging.getLogger(__name__)

TOOLBAR_GUID = "toolbar_____"


@dataclass(slots=True)
class BookmarkRecord:
    guid: str
    title: str
    url: str | None = None
    parent_guid: str = TOOLBAR_GUID
    is_folder: bool = False

    def slim(self) -> dict[str, Any]:
        """The shape handed to the model; fewer keys, fewer prompt tokens."""
        return {
            "id": self.guid,
            "title": self.title,
            "url": self.url,
            "parentID": self.parent_guid,
        }


class BookmarkStore(Protocol):
    async def search(self, query: str) -> list[BookmarkRecord]: ...

    async def list_all(self) -> list[BookmarkRecord]: ...

    async def fetch(self, guid: str) -> BookmarkRecord | None: ...

    async def insert(
        self,
        *,
        parent_guid: str,
        title: str,
        url: str | None = None,
        is_folder: bool = False,
    ) -> BookmarkRecord: ...

    async def update(
        self,
        guid: str,
        *,
        url: str | None,
        title: str,
        parent_guid: str,
    ) -> BookmarkRecord: ...

    async def remove(self, guid: str) -> None: ...


class InMemoryBookmarkStore:
    """Session-lifetime store used by the headless CLI."""

    def __init__(self, records: list[BookmarkRecord] | None = None) -> None:
        self._records: dict[str, BookmarkRecord] = {r.guid: r for r in records or []}

    async def search(self, query: str) -> list[BookmarkRecord]:
        needle = query.strip().lower()
        return [
            record
            for record in self._records.values()
            if needle in record.title.lower() or needle in (record.url or "").lower()
        ]

    async def list_all(self) -> list[BookmarkRecord]:
        return list(self._records.values())

    async def fetch(self, guid: str) -> BookmarkRecord | None:
        return self._records.get(guid)

    async def insert(
        self,
        *,
        parent_guid: str,
        title: str,
        url: str | None = None,
        is_folder: bool = False,
    ) -> BookmarkRecord:
        record = BookmarkRecord(
            guid=new_id("bm")[:15],
            title=title,
            url=url,
            parent_guid=parent_guid,
            is_folder=is_folder,
        )
        self._records[record.guid] = record
        return record

    async def update(
        self,
        guid: str,
        *,
        url: str | None,
        title: str,
        parent_guid: str,
    ) -> BookmarkRecord:
        record = self._records.get(guid)
        if record is None:
            raise KeyError(guid)
        record.url = url
        record.title = title
        record.parent_guid = parent_guid
        return record

    async def remove(self, guid: str) -> None:
        if guid not in self._records:
            raise KeyError(guid)
        del self._records[guid]


def _validated_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.scheme or not (parts.netloc or parts.scheme in {"about", "file", "data"}):
        raise ValueError(f"invalid URL: {url!r}")
    return url


class BookmarkTools:
    def __init__(self, store: BookmarkStore) -> None:
        self.store = store

    async def search_bookmarks(self, args: dict[str, Any]) -> dict[str, Any]:
        query = args.get("query")
        if not query:
            return {"error": "searchBookmarks requires a query."}
        try:
            records = await self.store.search(str(query))
        except Exception:
            logger.exception("Error searching bookmarks for query %r", query)
            return {"error": "Failed to search bookmarks."}
        results = [record.slim() for record in records]
        logger.debug("Found %d bookmarks for query %r", len(results), query)
        return {"bookmarks": results}

    async def get_all_bookmarks(self, args: dict[str, Any]) -> dict[str, Any]:
        del args
        try:
            records = await self.store.list_all()
        except Exception:
            logger.exception("Error reading all bookmarks")
            return {"error": "Failed to read all bookmarks."}
        logger.debug("Read %d total bookmarks", len(records))
        return {"bookmarks": [record.slim() for record in records]}

    async def create_bookmark(self, args: dict[str, Any]) -> dict[str, Any]:
        url = args.get("url")
        if not url:
            return {"error": "createBookmark requires a URL."}
        try:
            record = await self.store.insert(
                parent_guid=args.get("parentID") or TOOLBAR_GUID,
                url=_validated_url(str(url)),
                title=args.get("title") or str(url),
            )
        except Exception:
            logger.exception("Error creating bookmark for URL %r", url)
            return {"error": "Failed to create bookmark."}
        return {"result": f'Successfully bookmarked "{record.title}".'}

    async def add_bookmark_folder(self, args: dict[str, Any]) -> dict[str, Any]:
        title = args.get("title")
        if not title:
            return {"error": "addBookmarkFolder requires a title."}
        try:
            folder = await self.store.insert(
                parent_guid=args.get("parentID") or TOOLBAR_GUID,
                title=str(title),
                is_folder=True,
            )
        except Exception:
            logger.exception("Error creating bookmark folder %r", title)
            return {"error": "Failed to create folder."}
        return {"result": f'Successfully created folder "{folder.title}".'}

    async def update_bookmark(self, args: dict[str, Any]) -> dict[str, Any]:
        guid = args.get("id")
        url = args.get("url")
        title = args.get("title")
        parent_id = args.get("parentID")
        if not guid:
            return {"error": "updateBookmark requires a bookmark id (guid)."}
        if not url and not title and not parent_id:
            return {"error": "updateBookmark requires either a new url, title or parentID."}
        try:
            existing = await self.store.fetch(str(guid))
            if existing is None:
                return {"error": f'No bookmark found with id "{guid}".'}
            record = await self.store.update(
                str(guid),
                url=_validated_url(str(url)) if url else existing.url,
                title=title or existing.title,
                parent_guid=parent_id or existing.parent_guid,
            )
        except Exception:
            logger.exception("Error updating bookmark with id %r", guid)
            return {"error": "Failed to update bookmark."}
        return {"result": f'Successfully updated bookmark to "{record.title}".'}

    async def delete_bookmark(self, args: dict[str, Any]) -> dict[str, Any]:
        guid = args.get("id")
        if not guid:
            return {"error": "deleteBookmark requires a bookmark id (guid)."}
        try:
            await self.store.remove(str(guid))
        except Exception:
            logger.exception("Error deleting bookmark with id %r", guid)
            return {"error": "Failed to delete bookmark."}
        logger.debug("Bookmark with id %r deleted", guid)
        return {"result": "Successfully deleted bookmark."}


_PARENT_ID = {
    "type": "STRING",
    "description": (
        'Optional. The GUID of the parent folder. Defaults to the "Bookmarks Toolbar" folder.'
    ),
}

SEARCH_BOOKMARKS_DECLARATION: dict[str, object] = {
    "type": "OBJECT",
    "properties": {"query": {"type": "STRING", "description": "The search term for bookmarks."}},
    "required": ["query"],
}

CREATE_BOOKMARK_DECLARATION: dict[str, object] = {
    "type": "OBJECT",
    "properties": {
        "url": {"type": "STRING", "description": "The URL to bookmark."},
        "title": {
            "type": "STRING",
            "description": (
                "Optional. The title for the bookmark. If not provided, the URL is used."
            ),
        },
        "parentID": _PARENT_ID,
    },
    "required": ["url"],
}

ADD_FOLDER_DECLARATION: dict[str, object] = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING", "description": "The title for the new folder."},
        "parentID": _PARENT_ID,
    },
    "required": ["title"],
}

UPDATE_BOOKMARK_DECLARATION: dict[str, object] = {
    "type": "OBJECT",
    "properties": {
        "id": {"type": "STRING", "description": "The GUID of the bookmark to update."},
        "url": {"type": "STRING", "description": "The new URL for the bookmark."},
        "title": {"type": "STRING", "description": "The new title for the bookmark."},
        "parentID": {"type": "STRING", "description": "The GUID of the parent folder."},
    },
    "required": ["id"],
}

DELETE_BOOKMARK_DECLARATION: dict[str, object] = {
    "type": "OBJECT",
    "properties": {
        "id": {"type": "STRING", "description": "The GUID of the bookmark to delete."},
    },
    "required": ["id"],
}
