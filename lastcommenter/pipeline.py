"""Resolution of one row into its cell payload.

The pipeline composes the fetchers according to the configured variant:

- **email_only**: latest comment → timestamp and author, or nothing.
- **admin_match**: latest comment and the row's administrators are fetched
  together; the payload gains an ``admin: yes/no`` line and a non-administrator
  comment is highlighted.
- **editor_fallback**: latest comment → timestamp and author; a row without
  comments shows its last editor instead.

``resolve_row`` never raises. Fetch failures are already absorbed by the
fetchers; anything else is logged and turned into the empty payload.

Example usage:
    ```python
    pipeline = CommentResolutionPipeline(
        client=HttpxListClient(authenticated_http),
        list_context=ListContext(list_id=list_guid, web_url=site_url),
        config=LastCommenterConfig(variant=PipelineVariant.ADMIN_MATCH),
    )
    resolution = await pipeline.resolve_row(10)
    print(resolution.payload.text)
    ```
"""

import asyncio
from typing import Any, Optional

from lastcommenter.client import ListClientInterface
from lastcommenter.config import LastCommenterConfig
from lastcommenter.fetchers import AdministratorFieldsFetcher, AnnotationFetcher, EditorFetcher
from lastcommenter.host import ListContext
from lastcommenter.logging import setup_logging
from lastcommenter.markup import compose_annotation_payload, compose_text_payload
from lastcommenter.models import AdministratorPair, AnnotationLookup, LookupStatus, Resolution, ResolvedPayload

logger = setup_logging()


class CommentResolutionPipeline:
    """Turn a row id into a ``Resolution`` for the configured variant."""

    def __init__(
        self,
        client: ListClientInterface,
        list_context: ListContext,
        config: Optional[LastCommenterConfig] = None,
        *,
        annotation_fetcher: Optional[AnnotationFetcher] = None,
        administrator_fetcher: Optional[AdministratorFieldsFetcher] = None,
        editor_fetcher: Optional[EditorFetcher] = None,
    ):
        """Initialize the pipeline.

        Args:
            client: Authenticated list client shared by the default fetchers.
            list_context: The list the rows belong to.
            config: Renderer settings. If None, uses default config.
            annotation_fetcher: Overrides the default comment fetcher.
            administrator_fetcher: Overrides the default administrator fetcher.
            editor_fetcher: Overrides the default last-editor fetcher.
        """
        self.config = config or LastCommenterConfig()
        self.list_context = list_context
        self.annotations = annotation_fetcher or AnnotationFetcher(
            client,
            datetime_format=self.config.datetime_format,
            timezone=self.config.display_timezone,
        )
        self.administrators = administrator_fetcher or AdministratorFieldsFetcher(
            client, self.config.admin_field_1, self.config.admin_field_2
        )
        self.editors = editor_fetcher or EditorFetcher(client, self.config.editor_field)

    async def resolve_row(self, row_id: int) -> Resolution:
        """Resolve ``row_id`` into its payload. Never raises.

        A negative ``row_id`` names no row and resolves to the empty payload,
        tagged FAILED, without any request.
        """
        if row_id < 0:
            logger.warning({"message": f"Refusing to resolve negative row id {row_id}"}, pprint=True)
            return Resolution.model_construct(
                row_id=row_id,
                payload=ResolvedPayload.empty(),
                annotation_status=LookupStatus.FAILED,
                error=f"invalid row id {row_id}",
            )
        try:
            return await self._resolve(row_id)
        except Exception as e:
            logger.exception(
                {"message": f"Error resolving last commenter for row {row_id}", "row_id": row_id},
                pprint=True,
            )
            return Resolution(
                row_id=row_id,
                payload=ResolvedPayload.empty(),
                annotation_status=LookupStatus.FAILED,
                error=repr(e),
            )

    async def _resolve(self, row_id: int) -> Resolution:
        lookup, administrators = await self._fetch(row_id)
        self._diagnose(
            {
                "message": f"Fetched comment data for row {row_id}",
                "variant": self.config.variant.value,
                "annotation_status": lookup.status.value,
                "annotation": lookup.annotation,
                "administrators": administrators,
            }
        )

        if lookup.annotation is None:
            payload = await self._without_annotation(row_id)
        else:
            is_admin_match = administrators.matches(lookup.annotation.author_email) if administrators is not None else None
            payload = compose_annotation_payload(lookup.annotation, is_admin_match, self.config.highlight_color)

        self._diagnose({"message": f"Resolved row {row_id}", "payload": payload})
        return Resolution(row_id=row_id, payload=payload, annotation_status=lookup.status, error=lookup.error)

    async def _fetch(self, row_id: int) -> tuple[AnnotationLookup, Optional[AdministratorPair]]:
        if not self.config.compares_administrators:
            return await self.annotations.fetch(self.list_context, row_id), None
        lookup, administrators = await asyncio.gather(
            self.annotations.fetch(self.list_context, row_id),
            self.administrators.fetch(self.list_context, row_id),
        )
        return lookup, administrators

    async def _without_annotation(self, row_id: int) -> ResolvedPayload:
        if not self.config.falls_back_to_editor:
            return ResolvedPayload.empty()
        editor = await self.editors.fetch(self.list_context, row_id)
        self._diagnose({"message": f"Editor fallback for row {row_id}", "editor": editor})
        if editor.status is LookupStatus.FAILED:
            return ResolvedPayload.empty()
        return compose_text_payload(editor.display)

    def _diagnose(self, payload: dict[str, Any]) -> None:
        # Step traces are INFO for verbose instances and DEBUG otherwise.
        if self.config.verbose_diagnostics:
            logger.info(payload, pprint=True)
        else:
            logger.debug(payload, pprint=True)
