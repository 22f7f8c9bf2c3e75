"""Derive the numeric identifier of the row being rendered.

Hosts do not reliably expose the row id to a field renderer, so it is
looked for in four places, first hit wins:

1. the field value, when it is a number;
2. the field value, when it is a string starting with an integer;
3. the row metadata, under the identifier field name (any casing);
4. the ``ID`` query parameter of the current page URL.

A source holding something that is not a non-negative integer counts as a
miss for that source. Only exhausting all four raises ``IdentifierMissing``.
"""

import re
from typing import Any, Optional
from urllib.parse import parse_qs, urlsplit

from lastcommenter.exceptions import IdentifierMissing
from lastcommenter.host import ListItemAccessorInterface
from lastcommenter.logging import setup_logging

logger = setup_logging()

# Leading integer, like JavaScript's parseInt: "42", " 42", "42abc".
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _from_number(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        if not value.is_integer() or value < 0:
            return None
        return int(value)
    return None


def _from_string(value: Any) -> Optional[int]:
    if not isinstance(value, str):
        return None
    match = _LEADING_INT.match(value)
    if match is None:
        return None
    parsed = int(match.group(1))
    return parsed if parsed >= 0 else None


def parse_row_id(value: Any) -> Optional[int]:
    """Interpret a number or a numeric string as a row id, else None."""
    parsed = _from_number(value)
    if parsed is None:
        parsed = _from_string(value)
    return parsed


class RowIdentifierResolver:
    """Resolve a row id from the cell value, the row metadata, or the page URL."""

    def __init__(self, identifier_field: str = "ID", url_parameter: str = "ID"):
        self.identifier_field = identifier_field
        self.url_parameter = url_parameter

    def resolve(
        self,
        field_value: Any,
        list_item: Optional[ListItemAccessorInterface] = None,
        page_url: Optional[str] = None,
    ) -> int:
        """Return the row id.

        Raises:
            IdentifierMissing: If none of the sources yields an id.
        """
        row_id = _from_number(field_value)
        if row_id is not None:
            return row_id

        row_id = _from_string(field_value)
        if row_id is not None:
            return row_id

        if list_item is not None:
            row_id = self._from_list_item(list_item)
            if row_id is not None:
                return row_id

        if page_url:
            row_id = self._from_page_url(page_url)
            if row_id is not None:
                return row_id

        raise IdentifierMissing(f"No row identifier in field value {field_value!r}, row metadata, or page URL")

    def _from_list_item(self, list_item: ListItemAccessorInterface) -> Optional[int]:
        names = [self.identifier_field, self.identifier_field.lower(), self.identifier_field.capitalize()]
        try:
            available = list_item.field_names()
        except Exception as e:
            logger.debug({"message": "Could not list row metadata fields", "error": str(e)}, pprint=True)
            available = None
        if available:
            target = self.identifier_field.lower()
            names.extend(name for name in available if name.lower() == target)

        for name in dict.fromkeys(names):
            try:
                value = list_item.get_value_by_name(name)
            except Exception as e:
                # Hosts raise for fields missing from the current view.
                logger.debug({"message": f"Row metadata lookup of {name!r} failed", "error": str(e)}, pprint=True)
                continue
            row_id = parse_row_id(value)
            if row_id is not None:
                return row_id
        return None

    def _from_page_url(self, page_url: str) -> Optional[int]:
        try:
            query = parse_qs(urlsplit(page_url).query)
        except ValueError:
            return None
        values = query.get(self.url_parameter)
        if not values:
            return None
        return _from_string(values[0])
