"""ServerRunner — builds the component graph from a config and runs it."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from fmcp import __version__
from fmcp.api.client import ApiClient
from fmcp.context.handler import ContextHandler
from fmcp.context.knowledge_base import EndpointKnowledgeBase
from fmcp.server.handlers import ToolHandlers
from fmcp.server.server import MCPStdioServer
from fmcp.server.transport import StdioServerTransport
from fmcp.tools.discovery import ToolRegistry
from fmcp.updater import Updater

if TYPE_CHECKING:
    from fmcp.config import ServerConfig

logger = logging.getLogger(__name__)


class ServerRunner:
    """Owns every long-lived component for one server process.

    Nothing is shared through module globals: the client, knowledge base,
    cache and updater are created here and handed to whoever needs them.
    """

    def __init__(
        self,
        config: ServerConfig,
        *,
        client: ApiClient | None = None,
        transport: StdioServerTransport | None = None,
    ) -> None:
        self.config = config
        self.client = client or ApiClient(
            config.api_url,
            config.api_key,
            base_path=config.base_path,
            api_version=config.api_version,
            timeout=config.request_timeout,
        )
        self.knowledge_base = EndpointKnowledgeBase(self.client)
        self.registry = ToolRegistry()
        self.context = ContextHandler(config.llm, self.knowledge_base)
        self.updater = Updater(
            self.client,
            __version__,
            auto_update=config.auto_update,
            interval=config.update_check_interval,
        )
        self.server = MCPStdioServer(
            self.registry,
            ToolHandlers(config, self.client, self.knowledge_base, self.context),
            transport or StdioServerTransport(),
            updater=self.updater,
        )

    async def run(self) -> None:
        """Serve until input closes or a termination signal arrives."""
        logger.info("Flow Masters MCP server %s -> %s", __version__, self.client.base_url)
        warm_up = asyncio.create_task(self._warm_up(), name="fmcp-warm-up")
        try:
            await self.server.run()
        finally:
            warm_up.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await warm_up
            await self.client.aclose()

    async def _warm_up(self) -> None:
        if await self.client.test_connection():
            logger.info("Connected to Flow Masters API")
        else:
            logger.warning("Could not connect to Flow Masters API")
        await self.knowledge_base.refresh()
