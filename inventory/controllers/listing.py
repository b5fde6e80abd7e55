"""Filtered, paginated list state with last-request-wins reloads."""

from typing import Any, Generic, Optional, TypeVar

import structlog

from inventory.controllers.base import ViewController
from inventory.errors import AuthError, InventoryError, ValidationError
from inventory.models.common import Page, wildcard_to_none
from inventory.services.auth_guard import AuthGuard

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class ListController(ViewController, Generic[T]):
    """Base for list views.

    Subclasses declare their filter names and implement _query() and
    _fetch(). Every load takes a generation number; a response whose
    generation is no longer the latest is dropped so rapid filter
    changes never flicker back to older data.
    """

    filter_names: tuple[str, ...] = ()

    def __init__(self, guard: AuthGuard, page_size: int = 10):
        super().__init__(guard)
        self.page_size = page_size
        self.filters: dict[str, Optional[str]] = {name: None for name in self.filter_names}
        self.current_page = 1
        self.items: list[T] = []
        self.total_count = 0
        self.total_pages = 0
        self.loaded = False
        self._generation = 0

    @property
    def can_edit(self) -> bool:
        return self.guard.is_admin

    @property
    def is_empty(self) -> bool:
        """Explicit "no results" state, distinct from "not loaded yet"."""
        return self.loaded and self.total_count == 0

    def _query(self) -> Any:
        raise NotImplementedError

    async def _fetch(self, query: Any) -> Page[T]:
        raise NotImplementedError

    def _allowed(self) -> bool:
        return True

    async def set_filter(self, **changes: Optional[str]) -> None:
        """Change one or more filters; the cursor goes back to page 1."""
        for name, value in changes.items():
            if name not in self.filters:
                raise ValidationError(name, f"Unknown filter '{name}'")
            self.filters[name] = wildcard_to_none(value)
        self.current_page = 1
        await self.load()

    async def go_to_page(self, page: int) -> None:
        self.current_page = max(1, page)
        await self.load()

    async def load(self) -> None:
        """Fetch the page described by the current filters and cursor."""
        if not self._allowed():
            return

        self._generation += 1
        generation = self._generation
        self.loading = True
        self.session_expired = False

        try:
            query = self._query()
        except ValidationError as e:
            self.loading = False
            self.error = e.message
            return

        try:
            page = await self._fetch(query)
        except AuthError as e:
            if self._is_stale(generation):
                # The data is outdated but the token rejection still holds
                if e.invalidates_session and self.guard.is_authenticated:
                    self.guard.handle_session_invalidated(e)
                return
            self.loading = False
            self._session_rejected(e)
            return
        except InventoryError as e:
            if self._is_stale(generation):
                return
            self.loading = False
            self._load_failed(e, "load")
            return

        if self._is_stale(generation):
            return

        if page.total_pages > 0 and query.page > page.total_pages:
            # The requested page no longer exists (e.g. last row deleted)
            logger.info(
                "list_page_clamped",
                view=self.view_name,
                requested=query.page,
                total_pages=page.total_pages,
            )
            self.current_page = page.total_pages
            await self.load()
            return

        self.items = list(page.items)
        self.total_count = page.total_count
        self.total_pages = page.total_pages
        self.current_page = 1 if page.total_pages == 0 else query.page
        self.loaded = True
        self.loading = False
        self.error = None
        self.failure = None
        logger.info(
            f"{self.view_name}_loaded",
            page=self.current_page,
            total_count=self.total_count,
        )

    def _is_stale(self, generation: int) -> bool:
        if generation == self._generation:
            return False
        logger.info(
            "stale_response_discarded",
            view=self.view_name,
            generation=generation,
            current_generation=self._generation,
        )
        return True

    def snapshot(self) -> dict[str, Any]:
        """Plain view model for rendering."""
        return {
            "filters": dict(self.filters),
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "totalCount": self.total_count,
            "isEmpty": self.is_empty,
            "loading": self.loading,
            "error": self.error,
            "canEdit": self.can_edit,
        }
