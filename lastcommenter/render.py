"""Render-state control for last-commenter cells.

A cell moves through a small set of visible states::

    IDLE ──(no row id)──────────────────────────► NO_ID
      │
      ├──(cached)───────────────────────────────► RESOLVED
      │
      └──(not cached)──► LOADING ──(pipeline)──► RESOLVED

Unexpected failures while dispatching a render show the ``Error`` marker
(state ERROR). The pipeline itself never fails: its worst outcome is the
empty payload, which is cached like any other.

Renders of a row that is already being resolved join the in-flight
resolution instead of starting another one (unless ``single_flight`` is
off). A target disposed before its resolution completes is left untouched;
the result is still cached for the next render.
"""

import asyncio
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from lastcommenter.cache import CommenterCacheInterface
from lastcommenter.config import LastCommenterConfig
from lastcommenter.exceptions import IdentifierMissing
from lastcommenter.host import ListItemAccessorInterface, RenderTargetInterface
from lastcommenter.identifier import RowIdentifierResolver
from lastcommenter.logging import setup_logging
from lastcommenter.markup import ERROR_MARKUP, LOADING_MARKUP, NO_ID_MARKUP
from lastcommenter.models import Resolution, ResolvedPayload
from lastcommenter.pipeline import CommentResolutionPipeline

logger = setup_logging()


class CellState(str, Enum):
    """Visible state of a cell after a render call returns."""

    IDLE = "idle"
    LOADING = "loading"
    RESOLVED = "resolved"
    NO_ID = "no_id"
    ERROR = "error"


class CellRender(BaseModel):
    """Outcome of one render call.

    Attributes:
        state: State the cell is in when ``render`` returns.
        row_id: Resolved row id, None for NO_ID and dispatch errors.
        payload: Payload shown, when RESOLVED synchronously from the cache.
        task: Completion task when LOADING. Awaiting it yields the payload
            written (or that would have been written) into the cell.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    state: CellState
    row_id: Optional[int] = None
    payload: Optional[ResolvedPayload] = None
    task: Optional[asyncio.Task] = None


class RenderStateController:
    """Drive one cell per call through loading, resolved, and error states.

    ``render`` must be called from a running event loop; the network work it
    schedules runs as independent tasks on that loop.
    """

    def __init__(
        self,
        pipeline: CommentResolutionPipeline,
        cache: CommenterCacheInterface,
        config: Optional[LastCommenterConfig] = None,
        resolver: Optional[RowIdentifierResolver] = None,
    ):
        self.pipeline = pipeline
        self.cache = cache
        self.config = config or pipeline.config
        self.resolver = resolver or RowIdentifierResolver(self.config.identifier_field, self.config.url_parameter)
        self._in_flight: dict[int, asyncio.Task] = {}
        self._pending: set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        """Number of rows currently being resolved."""
        return len(self._in_flight)

    def render(
        self,
        target: RenderTargetInterface,
        field_value: Any = None,
        list_item: Optional[ListItemAccessorInterface] = None,
        page_url: Optional[str] = None,
    ) -> CellRender:
        """Render one cell into ``target``."""
        try:
            try:
                row_id = self.resolver.resolve(field_value, list_item, page_url)
            except IdentifierMissing as e:
                logger.debug({"message": "Cannot render cell without a row id", "error": str(e)}, pprint=True)
                target.set_inner_html(NO_ID_MARKUP)
                return CellRender(state=CellState.NO_ID)

            cached = self.cache.get(row_id)
            if cached is not None:
                target.set_inner_html(cached.markup)
                return CellRender(state=CellState.RESOLVED, row_id=row_id, payload=cached)

            target.set_inner_html(LOADING_MARKUP)
            task = asyncio.get_running_loop().create_task(self._complete(row_id, target))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
            return CellRender(state=CellState.LOADING, row_id=row_id, task=task)
        except Exception:
            logger.exception({"message": "Error in render dispatch", "field_value": repr(field_value)}, pprint=True)
            target.set_inner_html(ERROR_MARKUP)
            return CellRender(state=CellState.ERROR)

    async def drain(self) -> None:
        """Wait for every scheduled cell completion."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _complete(self, row_id: int, target: RenderTargetInterface) -> ResolvedPayload:
        try:
            resolution = await self._resolution_for(row_id)
            payload = resolution.payload
            if not target.is_mounted:
                logger.debug({"message": f"Cell for row {row_id} was disposed, not updating it"}, pprint=True)
                return payload
            target.set_inner_html(payload.markup)
            return payload
        except Exception:
            logger.exception({"message": f"Error completing cell for row {row_id}", "row_id": row_id}, pprint=True)
            empty = ResolvedPayload.empty()
            if target.is_mounted:
                target.set_inner_html(empty.markup)
            return empty

    def _resolution_for(self, row_id: int) -> "asyncio.Future[Resolution]":
        if not self.config.single_flight:
            return asyncio.ensure_future(self._resolve_and_store(row_id))

        shared = self._in_flight.get(row_id)
        if shared is None:
            shared = asyncio.get_running_loop().create_task(self._resolve_and_store(row_id))
            self._in_flight[row_id] = shared
            shared.add_done_callback(lambda _: self._in_flight.pop(row_id, None))
        # A cancelled waiter must not cancel the resolution other cells share.
        return asyncio.shield(shared)

    async def _resolve_and_store(self, row_id: int) -> Resolution:
        resolution = await self.pipeline.resolve_row(row_id)
        self.cache.set(row_id, resolution.payload)
        return resolution
