"""Interfaces the renderer consumes from the hosting list view.

The host owns the page: it knows which list is displayed, holds an
authenticated HTTP client, and hands the renderer one cell at a time. These
types describe exactly what the renderer reads from it and the single side
effect it produces (replacing a cell's inner HTML).
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from lastcommenter.client import ListClientInterface


class ListContext(BaseModel):
    """The list being rendered.

    Attributes:
        list_id: List GUID. None when the page is not a list view.
        web_url: Absolute URL of the site hosting the list.
    """

    model_config = {"frozen": True}

    list_id: Optional[str] = None
    web_url: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.list_id) and bool(self.web_url)


class ListItemAccessorInterface(ABC):
    """Read access to the metadata of the row being rendered."""

    @abstractmethod
    def get_value_by_name(self, name: str) -> Any:
        """Return the row's value for the named field.

        Hosts may raise if the field is unavailable in the current view.
        """

    def field_names(self) -> Optional[list[str]]:
        """Return the names of the fields this row exposes, if the host can list them.

        Used for case-insensitive identifier lookup. The default of None means
        only the exact, lower-case and capitalized names are tried.
        """
        return None


class DictListItem(ListItemAccessorInterface):
    """Row metadata backed by a plain mapping."""

    def __init__(self, values: dict[str, Any]):
        self._values = dict(values)

    def get_value_by_name(self, name: str) -> Any:
        return self._values.get(name)

    def field_names(self) -> list[str]:
        return list(self._values)


class RenderTargetInterface(ABC):
    """A DOM-like element whose content the renderer replaces."""

    @abstractmethod
    def set_inner_html(self, markup: str) -> None:
        """Replace the element's content."""

    @property
    @abstractmethod
    def is_mounted(self) -> bool:
        """False once the host has disposed of the element."""

    @abstractmethod
    def dispose(self) -> None:
        """Mark the element as no longer displayed."""


class CellElement(RenderTargetInterface):
    """In-memory render target that records every write."""

    def __init__(self) -> None:
        self.inner_html = ""
        self.history: list[str] = []
        self._mounted = True

    def set_inner_html(self, markup: str) -> None:
        self.inner_html = markup
        self.history.append(markup)

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    def dispose(self) -> None:
        self._mounted = False


class CellEvent(BaseModel):
    """Everything the host passes for one cell render.

    Attributes:
        field_value: Value of the field the renderer is attached to.
        target: Element to render into.
        list_item: Row metadata accessor, when the host exposes one.
        page_url: Current page URL. Overrides ``HostContext.page_url``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    field_value: Any = None
    target: RenderTargetInterface
    list_item: Optional[ListItemAccessorInterface] = None
    page_url: Optional[str] = None


class HostContext(BaseModel):
    """Per-instance context supplied by the host page."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    list_context: ListContext
    client: ListClientInterface
    page_url: str = ""
