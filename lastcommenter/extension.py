"""Field renderer entry point for list-view hosts.

The host creates one ``LastCommenterFieldCustomizer`` per list view, calls
``on_init`` once, ``on_render_cell`` for every cell it paints, and
``on_dispose_cell`` when a cell leaves the view.

Example:
    ```python
    customizer = LastCommenterFieldCustomizer(
        HostContext(
            list_context=ListContext(list_id=list_guid, web_url=site_url),
            client=HttpxListClient(authenticated_http),
            page_url=current_url,
        ),
        LastCommenterConfig.from_env(),
    )
    await customizer.on_init()
    customizer.on_render_cell(CellEvent(field_value=10, target=element))
    ```
"""

from typing import Optional

from lastcommenter.cache import CommenterCacheInterface, InMemoryCommenterCache
from lastcommenter.config import LastCommenterConfig
from lastcommenter.host import CellEvent, HostContext
from lastcommenter.logging import setup_logging
from lastcommenter.pipeline import CommentResolutionPipeline
from lastcommenter.render import CellRender, RenderStateController

LOG_SOURCE = "LastCommenterFieldCustomizer"


class LastCommenterFieldCustomizer:
    """Show who commented last on each row of a list view."""

    def __init__(
        self,
        context: HostContext,
        config: Optional[LastCommenterConfig] = None,
        cache: Optional[CommenterCacheInterface] = None,
    ):
        self.context = context
        self.config = config or LastCommenterConfig()
        self.cache = cache or InMemoryCommenterCache(self.config.cache)
        self.pipeline = CommentResolutionPipeline(context.client, context.list_context, self.config)
        self.controller = RenderStateController(self.pipeline, self.cache, self.config)
        self.logger = setup_logging(LOG_SOURCE)

    async def on_init(self) -> None:
        self.logger.info(
            {
                "message": f"Activated {LOG_SOURCE}",
                "variant": self.config.variant.value,
                "list_id": self.context.list_context.list_id,
            },
            pprint=True,
        )

    def on_render_cell(self, event: CellEvent) -> CellRender:
        return self.controller.render(
            event.target,
            field_value=event.field_value,
            list_item=event.list_item,
            page_url=event.page_url or self.context.page_url,
        )

    def on_dispose_cell(self, event: CellEvent) -> None:
        event.target.dispose()

    async def aclose(self) -> None:
        """Wait for outstanding cells, then release the list client."""
        await self.controller.drain()
        await self.context.client.aclose()
        self.logger.debug({"message": f"Closed {LOG_SOURCE}", "cache": self.cache.get_stats()}, pprint=True)
