"""
Last commenter field renderer.

Resolves, for each row of a list view, who left the most recent comment on
it, optionally checks that person against the row's two administrators,
and renders the result into the row's cell. Payloads are cached per row for
the lifetime of the renderer instance.

    from lastcommenter import LastCommenterFieldCustomizer, HostContext, ListContext
"""

from lastcommenter.cache import CommenterCacheInterface, InMemoryCommenterCache
from lastcommenter.client import HttpxListClient, ListClientInterface
from lastcommenter.config import CommenterCacheConfig, LastCommenterConfig, PipelineVariant
from lastcommenter.exceptions import IdentifierMissing, LastCommenterError, ListClientError
from lastcommenter.extension import LastCommenterFieldCustomizer
from lastcommenter.fetchers import AdministratorFieldsFetcher, AnnotationFetcher, EditorFetcher
from lastcommenter.host import (
    CellElement,
    CellEvent,
    DictListItem,
    HostContext,
    ListContext,
    ListItemAccessorInterface,
    RenderTargetInterface,
)
from lastcommenter.identifier import RowIdentifierResolver
from lastcommenter.models import (
    AdministratorPair,
    Annotation,
    AnnotationLookup,
    EditorLookup,
    LookupStatus,
    Resolution,
    ResolvedPayload,
)
from lastcommenter.pipeline import CommentResolutionPipeline
from lastcommenter.render import CellRender, CellState, RenderStateController

__all__ = [
    "AdministratorFieldsFetcher",
    "AdministratorPair",
    "Annotation",
    "AnnotationFetcher",
    "AnnotationLookup",
    "CellElement",
    "CellEvent",
    "CellRender",
    "CellState",
    "CommentResolutionPipeline",
    "CommenterCacheConfig",
    "CommenterCacheInterface",
    "DictListItem",
    "EditorFetcher",
    "EditorLookup",
    "HostContext",
    "HttpxListClient",
    "IdentifierMissing",
    "InMemoryCommenterCache",
    "LastCommenterConfig",
    "LastCommenterError",
    "LastCommenterFieldCustomizer",
    "ListClientError",
    "ListClientInterface",
    "ListContext",
    "ListItemAccessorInterface",
    "LookupStatus",
    "PipelineVariant",
    "RenderStateController",
    "RenderTargetInterface",
    "Resolution",
    "ResolvedPayload",
    "RowIdentifierResolver",
]

__version__ = "0.1.0"
