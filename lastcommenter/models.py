"""Value objects passed between the fetchers, the pipeline and the renderer.

All models are frozen: an ``Annotation`` or ``AdministratorPair`` is built
per fetch and folded into a ``ResolvedPayload``, which is cached and reused
verbatim on later renders of the same row.
"""

from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, Field

RowId = Annotated[int, Field(ge=0)]


class LookupStatus(str, Enum):
    """Outcome of a remote lookup.

    ``NOT_FOUND`` is genuine absence (the row has no comments); ``FAILED``
    covers transport errors, HTTP errors, malformed bodies and missing list
    context. Both render identically.
    """

    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILED = "failed"


class Annotation(BaseModel):
    """The latest comment on a row.

    Attributes:
        author_full_name: First and last name joined by a space and trimmed.
            Either part may be empty.
        author_email: Author email as returned by the list API (may be empty).
        created_at: Creation timestamp, already formatted for display.
    """

    model_config = {"frozen": True}

    author_full_name: str = ""
    author_email: str = ""
    created_at: str


class AnnotationLookup(BaseModel):
    """Tagged result of an annotation fetch."""

    model_config = {"frozen": True}

    status: LookupStatus
    annotation: Optional[Annotation] = None
    error: Optional[str] = None

    @classmethod
    def found(cls, annotation: Annotation) -> "AnnotationLookup":
        return cls(status=LookupStatus.FOUND, annotation=annotation)

    @classmethod
    def not_found(cls) -> "AnnotationLookup":
        return cls(status=LookupStatus.NOT_FOUND)

    @classmethod
    def failed(cls, error: str) -> "AnnotationLookup":
        return cls(status=LookupStatus.FAILED, error=error)


class AdministratorPair(BaseModel):
    """The two administrator identities configured on a row.

    An empty email never matches a comment author.
    """

    model_config = {"frozen": True}

    admin1_email: str = ""
    admin2_email: str = ""

    def matches(self, email: str) -> bool:
        """Return True if ``email`` is one of the administrators.

        Comparison is exact and case-sensitive.
        """
        # TODO: mailbox addresses are case-insensitive, compare with casefold()
        if not email:
            return False
        return email == self.admin1_email or email == self.admin2_email


class EditorLookup(BaseModel):
    """Tagged result of a last-editor fetch."""

    model_config = {"frozen": True}

    status: LookupStatus
    display: str = ""
    error: Optional[str] = None


class ResolvedPayload(BaseModel):
    """Final display content for one cell.

    Attributes:
        text: Plain-text lines of the payload, joined by newlines. Empty for
            the canonical "nothing to show" payload.
        markup: HTML written into the cell.
        is_admin_match: Whether the comment author is an administrator. None
            when no administrator comparison was made.
        background: CSS background of the payload block, None when unstyled.
    """

    model_config = {"frozen": True}

    text: str = ""
    markup: str = ""
    is_admin_match: Optional[bool] = None
    background: Optional[str] = None

    @classmethod
    def empty(cls) -> "ResolvedPayload":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.markup


class Resolution(BaseModel):
    """What the pipeline produced for a row, with the tag of the annotation lookup."""

    model_config = {"frozen": True}

    row_id: RowId
    payload: ResolvedPayload
    annotation_status: LookupStatus
    error: Optional[str] = None
