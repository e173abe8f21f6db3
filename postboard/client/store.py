"""
Client-side content store with optimistic updates.

ContentStore owns one immutable StoreState. Each mutation:

    1. snapshots the current state
    2. applies the change locally (state is replaced, never edited in place)
    3. calls the server through ApiClient
    4. reconciles with the server's answer, or puts the snapshot back

The store does not serialize concurrent mutations against each other.
Search mode and the category filter are mutually exclusive: turning one on
turns the other off.
"""

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional, Tuple

from postboard.client.api import ApiClient

logger = logging.getLogger(__name__)

TEMP_PREFIX = "temp-"


@dataclass(frozen=True)
class StoreState:
    posts: Tuple[dict, ...] = ()
    categories: Tuple[dict, ...] = ()
    # Pagination
    current_page: int = 1
    total_pages: int = 1
    total_posts: int = 0
    posts_per_page: int = 10
    # Search
    search_query: str = ""
    is_searching: bool = False
    is_search_mode: bool = False
    # Category filter
    selected_category: Optional[int] = None
    loading: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class MutationResult:
    success: bool
    state: StoreState
    error: Optional[str] = None


def _error_text(err: Exception, fallback: str) -> str:
    return getattr(err, "message", None) or str(err) or fallback


def _replace_item(items: Tuple[dict, ...], item_id, new_item: dict) -> Tuple[dict, ...]:
    return tuple(new_item if i.get("id") == item_id else i for i in items)


class ContentStore:
    def __init__(self, api: ApiClient, state: Optional[StoreState] = None):
        self.api = api
        self._state = state or StoreState()

    @property
    def state(self) -> StoreState:
        return self._state

    def _set(self, **changes) -> StoreState:
        self._state = replace(self._state, **changes)
        return self._state

    def _fail(self, err: Exception, fallback: str, **restore) -> MutationResult:
        message = _error_text(err, fallback)
        logger.warning("%s: %s", fallback, message)
        state = self._set(error=message, **restore)
        return MutationResult(False, state, message)

    # --- Loading ---

    def _apply_page(self, response: dict):
        pagination = response.get("pagination") or {}
        self._set(
            posts=tuple(response.get("posts") or ()),
            total_pages=pagination.get("totalPages") or 1,
            total_posts=pagination.get("totalPosts") or 0,
        )

    def refresh(self) -> StoreState:
        """Fetch the current page of posts (honouring the category filter) and all categories."""
        self._set(loading=True, error=None)
        try:
            response = self.api.posts.list(
                self._state.current_page, self._state.posts_per_page, self._state.selected_category
            )
            categories = self.api.categories.list()
            self._apply_page(response)
            self._set(categories=tuple(categories or ()))
        except Exception as err:
            self._set(error=_error_text(err, "Failed to load posts"))
            logger.warning("Error fetching data: %s", self._state.error)
        finally:
            self._set(loading=False)
        return self._state

    # --- Posts (optimistic) ---

    def create_post(self, fields: dict) -> MutationResult:
        temp_id = f"{TEMP_PREFIX}{uuid.uuid4().hex}"
        optimistic = {
            **fields,
            "id": temp_id,
            "author": "You",
            "createdAt": datetime.now(timezone.utc).isoformat(),
            "_optimistic": True,
        }
        self._set(posts=self._state.posts + (optimistic,))

        try:
            result = self.api.posts.create(fields)
        except Exception as err:
            return self._fail(
                err,
                "Failed to create post",
                posts=tuple(p for p in self._state.posts if p.get("id") != temp_id),
            )

        created = result.get("data") or result
        self._set(posts=_replace_item(self._state.posts, temp_id, created), current_page=1)
        return MutationResult(True, self._state)

    def edit_post(self, post_id, patch: dict) -> MutationResult:
        snapshot = self._state.posts
        self._set(posts=tuple({**p, **patch} if p.get("id") == post_id else p for p in snapshot))

        try:
            result = self.api.posts.update(post_id, patch)
        except Exception as err:
            return self._fail(err, "Failed to update post", posts=snapshot)

        updated = result.get("data") or result
        self._set(posts=_replace_item(self._state.posts, post_id, updated))
        return MutationResult(True, self._state)

    def delete_post(self, post_id) -> MutationResult:
        snapshot = self._state.posts
        self._set(posts=tuple(p for p in snapshot if p.get("id") != post_id))

        try:
            self.api.posts.delete(post_id)
        except Exception as err:
            return self._fail(err, "Failed to delete post", posts=snapshot)

        return MutationResult(True, self._state)

    # --- Categories (optimistic) ---

    def create_category(self, fields: dict) -> MutationResult:
        temp_id = f"{TEMP_PREFIX}cat-{uuid.uuid4().hex}"
        self._set(categories=self._state.categories + ({**fields, "id": temp_id, "_optimistic": True},))

        try:
            result = self.api.categories.create(fields)
        except Exception as err:
            return self._fail(
                err,
                "Failed to create category",
                categories=tuple(c for c in self._state.categories if c.get("id") != temp_id),
            )

        created = result.get("data") or result
        self._set(categories=_replace_item(self._state.categories, temp_id, created))
        return MutationResult(True, self._state)

    def edit_category(self, category_id, patch: dict) -> MutationResult:
        snapshot = self._state.categories
        self._set(categories=tuple({**c, **patch} if c.get("id") == category_id else c for c in snapshot))

        try:
            result = self.api.categories.update(category_id, patch)
        except Exception as err:
            return self._fail(err, "Failed to update category", categories=snapshot)

        updated = result.get("data") or result
        self._set(categories=_replace_item(self._state.categories, category_id, updated))
        return MutationResult(True, self._state)

    # --- Pagination ---

    def go_to_page(self, page: int) -> StoreState:
        if 1 <= page <= self._state.total_pages and page != self._state.current_page:
            self._set(current_page=page)
            return self._reload()
        return self._state

    def go_to_next_page(self) -> StoreState:
        return self.go_to_page(self._state.current_page + 1)

    def go_to_prev_page(self) -> StoreState:
        return self.go_to_page(self._state.current_page - 1)

    def reset_pagination(self) -> StoreState:
        return self._set(current_page=1)

    def _reload(self) -> StoreState:
        if self._state.is_search_mode:
            return self._run_search(self._state.search_query)
        return self.refresh()

    # --- Search & category filter (mutually exclusive) ---

    def search_posts(self, query: str) -> StoreState:
        if not query or not query.strip():
            return self.clear_search()

        self._set(
            search_query=query.strip(),
            is_search_mode=True,
            selected_category=None,
            current_page=1,
        )
        return self._run_search(query.strip())

    def _run_search(self, query: str) -> StoreState:
        self._set(is_searching=True, error=None)
        try:
            response = self.api.posts.search(query, self._state.current_page, self._state.posts_per_page)
            self._apply_page(response)
        except Exception as err:
            self._set(error=_error_text(err, "Search failed"), posts=())
        finally:
            self._set(is_searching=False)
        return self._state

    def clear_search(self) -> StoreState:
        self._set(search_query="", is_search_mode=False, current_page=1)
        return self.refresh()

    def select_category(self, category_id: Optional[int]) -> StoreState:
        self._set(
            selected_category=category_id,
            search_query="",
            is_search_mode=False,
            current_page=1,
        )
        return self.refresh()
