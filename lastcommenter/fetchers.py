"""Remote lookups feeding the resolution pipeline.

Every fetcher soft-fails: a transport error, an HTTP error, a malformed
body or a missing list context is logged and turned into a default value.
Nothing raised by the list client escapes a fetcher.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from lastcommenter.client import ListClientInterface, latest_comment_url, person_fields_url
from lastcommenter.exceptions import ListClientError
from lastcommenter.host import ListContext
from lastcommenter.logging import setup_logging
from lastcommenter.markup import NO_EDITOR, format_timestamp, full_name
from lastcommenter.models import AdministratorPair, Annotation, AnnotationLookup, EditorLookup, LookupStatus

logger = setup_logging()


class _CommentAuthor(BaseModel):
    model_config = ConfigDict(extra="ignore")

    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None


class _CommentRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    createdDate: datetime
    author: Optional[_CommentAuthor] = None


class _CommentPage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: list[_CommentRecord] = []


def _person_property(body: dict[str, Any], field: str, prop: str) -> str:
    person = body.get(field)
    if not isinstance(person, dict):
        return ""
    value = person.get(prop)
    return value if isinstance(value, str) else ""


class AnnotationFetcher:
    """Fetch the most recent comment on a row."""

    def __init__(
        self,
        client: ListClientInterface,
        *,
        datetime_format: str = "%m/%d/%Y, %I:%M %p",
        timezone: Optional[str] = None,
    ):
        self.client = client
        self.datetime_format = datetime_format
        self.timezone = timezone

    async def fetch(self, list_context: ListContext, row_id: int) -> AnnotationLookup:
        """Return the latest comment on ``row_id``, tagged with how the lookup went."""
        if not list_context.is_complete:
            logger.debug({"message": "No list context, skipping comment lookup", "row_id": row_id}, pprint=True)
            return AnnotationLookup.failed("missing list context")

        url = latest_comment_url(list_context.web_url, list_context.list_id or "", row_id)
        try:
            body = await self.client.get_json(url)
        except ListClientError as e:
            logger.warning(
                {"message": f"Comment lookup failed for row {row_id}", "url": url, "error": str(e)},
                pprint=True,
            )
            return AnnotationLookup.failed(str(e))
        except Exception as e:
            logger.exception({"message": f"Unexpected error fetching comments for row {row_id}", "url": url}, pprint=True)
            return AnnotationLookup.failed(repr(e))

        try:
            page = _CommentPage.model_validate(body)
        except ValidationError as e:
            logger.warning(
                {"message": f"Malformed comment response for row {row_id}", "error": str(e)},
                pprint=True,
            )
            return AnnotationLookup.failed("malformed comment response")

        if not page.value:
            return AnnotationLookup.not_found()

        record = page.value[0]
        author = record.author or _CommentAuthor()
        annotation = Annotation(
            author_full_name=full_name(author.firstName, author.lastName),
            author_email=author.email or "",
            created_at=format_timestamp(record.createdDate, self.datetime_format, self.timezone),
        )
        return AnnotationLookup.found(annotation)


class AdministratorFieldsFetcher:
    """Fetch the two administrator emails configured on a row."""

    def __init__(self, client: ListClientInterface, admin_field_1: str = "admin_1", admin_field_2: str = "admin_2"):
        self.client = client
        self.admin_field_1 = admin_field_1
        self.admin_field_2 = admin_field_2

    async def fetch(self, list_context: ListContext, row_id: int) -> AdministratorPair:
        """Return the row's administrators; both empty on any failure."""
        if not list_context.is_complete:
            return AdministratorPair()

        url = person_fields_url(
            list_context.web_url,
            list_context.list_id or "",
            row_id,
            (self.admin_field_1, self.admin_field_2),
            ("EMail",),
        )
        try:
            body = await self.client.get_json(url)
        except ListClientError as e:
            logger.warning(
                {"message": f"Administrator lookup failed for row {row_id}", "url": url, "error": str(e)},
                pprint=True,
            )
            return AdministratorPair()
        except Exception:
            logger.exception({"message": f"Unexpected error fetching administrators for row {row_id}", "url": url}, pprint=True)
            return AdministratorPair()

        if not isinstance(body, dict):
            logger.warning({"message": f"Malformed administrator response for row {row_id}"}, pprint=True)
            return AdministratorPair()

        return AdministratorPair(
            admin1_email=_person_property(body, self.admin_field_1, "EMail"),
            admin2_email=_person_property(body, self.admin_field_2, "EMail"),
        )


class EditorFetcher:
    """Fetch the identity of whoever last modified a row."""

    def __init__(self, client: ListClientInterface, editor_field: str = "Editor"):
        self.client = client
        self.editor_field = editor_field

    async def fetch(self, list_context: ListContext, row_id: int) -> EditorLookup:
        """Return the editor's email, else display name, else ``No editor``."""
        if not list_context.is_complete:
            return EditorLookup(status=LookupStatus.FAILED, error="missing list context")

        url = person_fields_url(
            list_context.web_url,
            list_context.list_id or "",
            row_id,
            (self.editor_field,),
            ("EMail", "Title"),
        )
        try:
            body = await self.client.get_json(url)
        except ListClientError as e:
            logger.warning(
                {"message": f"Editor lookup failed for row {row_id}", "url": url, "error": str(e)},
                pprint=True,
            )
            return EditorLookup(status=LookupStatus.FAILED, error=str(e))
        except Exception as e:
            logger.exception({"message": f"Unexpected error fetching editor for row {row_id}", "url": url}, pprint=True)
            return EditorLookup(status=LookupStatus.FAILED, error=repr(e))

        if not isinstance(body, dict):
            return EditorLookup(status=LookupStatus.FAILED, error="malformed editor response")

        display = _person_property(body, self.editor_field, "EMail") or _person_property(body, self.editor_field, "Title")
        if not display:
            return EditorLookup(status=LookupStatus.NOT_FOUND, display=NO_EDITOR)
        return EditorLookup(status=LookupStatus.FOUND, display=display)
