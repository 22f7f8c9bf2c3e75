"""Network access to the list REST API.

The renderer never authenticates: the host hands over a client that already
carries credentials. ``ListClientInterface`` is the one call the fetchers
make; ``HttpxListClient`` adapts an ``httpx.AsyncClient`` to it.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from lastcommenter.exceptions import ListClientError

JSON_ACCEPT = "application/json;odata=nometadata"


def item_url(web_url: str, list_id: str, row_id: int) -> str:
    """REST URL of one list row."""
    return f"{web_url.rstrip('/')}/_api/web/lists(guid'{list_id}')/items({row_id})"


def latest_comment_url(web_url: str, list_id: str, row_id: int) -> str:
    """Comments of a row, newest first, limited to one, with the author expanded."""
    return f"{item_url(web_url, list_id, row_id)}/Comments?$expand=author&$orderby=createdDate desc&$top=1"


def person_fields_url(web_url: str, list_id: str, row_id: int, fields: tuple[str, ...], properties: tuple[str, ...]) -> str:
    """A row with the given person fields expanded to the given sub-properties."""
    select = ",".join(f"{field}/{prop}" for field in fields for prop in properties)
    expand = ",".join(fields)
    return f"{item_url(web_url, list_id, row_id)}?$select={select}&$expand={expand}"


class ListClientInterface(ABC):
    """Authenticated JSON access to the list API."""

    @abstractmethod
    async def get_json(self, url: str) -> Any:
        """GET ``url`` and return the decoded JSON body.

        Raises:
            ListClientError: On transport failure, a non-2xx status, or a body
                that is not JSON.
        """

    async def aclose(self) -> None:
        """Release network resources. No-op unless the client owns any."""


class HttpxListClient(ListClientInterface):
    """``ListClientInterface`` over ``httpx.AsyncClient``.

    Example:
        ```python
        async with httpx.AsyncClient(headers=auth_headers) as http:
            client = HttpxListClient(http)
            body = await client.get_json(latest_comment_url(web, list_id, 10))
        ```
    """

    def __init__(self, http: Optional[httpx.AsyncClient] = None, *, timeout: float = 10.0):
        """Initialize the client.

        Args:
            http: Pre-configured (authenticated) client. When omitted, a
                client is created and owned by this instance.
            timeout: Timeout for an owned client. Ignored when ``http`` is given.
        """
        self._owns_client = http is None
        self._http = http if http is not None else httpx.AsyncClient(timeout=timeout)

    async def get_json(self, url: str) -> Any:
        try:
            response = await self._http.get(url, headers={"Accept": JSON_ACCEPT})
        except httpx.HTTPError as e:
            raise ListClientError(f"Request to {url} failed: {e}") from e
        if response.is_error:
            raise ListClientError(
                f"Request to {url} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise ListClientError(f"Response from {url} is not JSON", status_code=response.status_code) from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()
