"""Test fixtures and fakes for the last-commenter renderer.

This module provides:
- FakeListClient, an in-memory ListClientInterface that serves comment and
  row bodies per row id, records every URL requested, can fail on demand,
  and can hold responses behind an asyncio.Event to test in-flight behaviour
- Factory helpers for comment records as the list API returns them
- Pytest fixtures for list context, config, cache, pipeline and controller

Timestamps are rendered in UTC so expected strings do not depend on the
machine running the tests.
"""

import asyncio
import re
from typing import Any, Optional

import pytest

from lastcommenter.cache import InMemoryCommenterCache
from lastcommenter.client import ListClientInterface
from lastcommenter.config import CommenterCacheConfig, LastCommenterConfig, PipelineVariant
from lastcommenter.exceptions import ListClientError
from lastcommenter.host import ListContext
from lastcommenter.pipeline import CommentResolutionPipeline
from lastcommenter.render import RenderStateController

WEB_URL = "https://contoso.example/sites/ops"
LIST_ID = "5a1e0b7e-0000-4000-8000-00000000c0de"

_ROW_IN_URL = re.compile(r"items\((\d+)\)")


def make_comment(
    email: str = "a@x.com",
    first_name: Optional[str] = "Ada",
    last_name: Optional[str] = "Lovelace",
    created: str = "2024-03-05T14:07:00Z",
) -> dict[str, Any]:
    """A comment record shaped like the list API's Comments endpoint."""
    return {
        "id": "1",
        "text": "looks good",
        "createdDate": created,
        "author": {"firstName": first_name, "lastName": last_name, "email": email},
    }


def person(email: str = "", title: str = "") -> dict[str, str]:
    return {"EMail": email, "Title": title}


class FakeListClient(ListClientInterface):
    """In-memory list API.

    Attributes:
        comments: Row id → comment records, newest first.
        items: Row id → row body returned for person-field queries.
        failing: Endpoints that raise ListClientError ("comments", "item").
        gate: When set, every request waits for the event before answering.
        calls: Every URL requested, in order.
    """

    def __init__(
        self,
        comments: Optional[dict[int, list[dict[str, Any]]]] = None,
        items: Optional[dict[int, Any]] = None,
        failing: tuple[str, ...] = (),
    ):
        self.comments = comments or {}
        self.items = items or {}
        self.failing = set(failing)
        self.gate: Optional[asyncio.Event] = None
        self.calls: list[str] = []
        self.closed = False

    def calls_for(self, row_id: int) -> list[str]:
        return [url for url in self.calls if f"items({row_id})" in url]

    async def get_json(self, url: str) -> Any:
        self.calls.append(url)
        if self.gate is not None:
            await self.gate.wait()
        match = _ROW_IN_URL.search(url)
        assert match is not None, url
        row_id = int(match.group(1))

        if "/Comments" in url:
            if "comments" in self.failing:
                raise ListClientError(f"Request to {url} returned HTTP 500", status_code=500)
            return {"value": self.comments.get(row_id, [])[:1]}

        if "item" in self.failing:
            raise ListClientError(f"Request to {url} returned HTTP 404", status_code=404)
        return self.items.get(row_id, {})

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def list_context() -> ListContext:
    return ListContext(list_id=LIST_ID, web_url=WEB_URL)


@pytest.fixture
def client() -> FakeListClient:
    return FakeListClient()


@pytest.fixture
def config() -> LastCommenterConfig:
    return LastCommenterConfig(variant=PipelineVariant.ADMIN_MATCH, display_timezone="UTC")


@pytest.fixture
def cache() -> InMemoryCommenterCache:
    return InMemoryCommenterCache(CommenterCacheConfig(max_size=None))


@pytest.fixture
def pipeline(client, list_context, config) -> CommentResolutionPipeline:
    return CommentResolutionPipeline(client, list_context, config)


@pytest.fixture
def controller(pipeline, cache, config) -> RenderStateController:
    return RenderStateController(pipeline, cache, config)
