"""Import the tools of an MCP server into a ToolRegistry over an async stdio session."""

from contextlib import AsyncExitStack
from types import TracebackType
from typing import Any, Dict, List, Optional, Type, cast

from mcp import ClientSession
from mcp.client.stdio import stdio_client, StdioServerParameters
from mcp.types import CallToolResult, EmbeddedResource, ImageContent, TextContent, Tool as MCPTool

from llm_tool_orchestrator.llm_core import ToolDefinition, ToolExecutionError, ToolRegistry, get_logger

logger = get_logger(__name__)

__all__ = ["MCPClientWrapper"]

_LOG_PREVIEW = 200


class MCPClientWrapper:
    """Connects to an MCP server and exposes its tools as registry entries.

    Usage::

        async with MCPClientWrapper("python", ["server.py"]) as mcp:
            await mcp.load_into(registry)
            result = await run_conversation(model, history, registry, max_iterations=5)

    The proxies call back into the session, so conversations using them must run
    inside the ``async with`` block.
    """

    def __init__(self, command: str, args: List[str], env: Optional[Dict[str, str]] = None):
        """Initializes the wrapper with parameters for the MCP server process.

        Args:
            command: The command to run the server.
            args: List of arguments for the command.
            env: Optional dictionary of environment variables.
        """
        self._server_params = StdioServerParameters(command=command, args=args, env=env)
        self._session: Optional[ClientSession] = None
        self._exit_stack = AsyncExitStack()

    async def __aenter__(self) -> "MCPClientWrapper":
        logger.debug("Initializing MCP client session...")
        read, write = await self._exit_stack.enter_async_context(stdio_client(self._server_params))
        self._session = await self._exit_stack.enter_async_context(ClientSession(read, write))
        await self._session.initialize()
        logger.info("MCP client session initialized successfully.")
        return self

    async def __aexit__(
        self, exc_type: Optional[Type[BaseException]], exc_val: Optional[BaseException], exc_tb: Optional[TracebackType]
    ) -> None:
        logger.debug("Closing MCP client session...")
        await self._exit_stack.aclose()
        self._session = None
        logger.info("MCP client session closed.")

    async def load_into(self, registry: ToolRegistry) -> List[ToolDefinition]:
        """Registers every tool of the MCP server in the given registry.

        Args:
            registry: The registry to register the tools into. It must not be frozen.

        Returns:
            The registered definitions, in the server's order.

        Raises:
            RuntimeError: If the MCP client is not connected.
            ToolRegistrationError: If a tool name is taken or the registry is frozen.
            ToolValidationError: If a tool's input schema cannot be imported.
        """
        if not self._session:
            raise RuntimeError("MCP Client is not connected. Use 'async with'.")

        logger.debug("Fetching tools from MCP server...")
        listing = await self._session.list_tools()
        logger.info(f"Found {len(listing.tools)} tools on MCP server.")

        return [self._register_single_tool(registry, tool) for tool in listing.tools]

    def _register_single_tool(self, registry: ToolRegistry, tool: MCPTool) -> ToolDefinition:
        description = tool.description or f"Tool {tool.name} provided by MCP server."
        try:
            definition = registry.register(
                tool.name,
                description=description,
                func=self._make_proxy(tool.name),
                input_schema=dict(tool.inputSchema or {}),
            )
        except Exception as e:
            logger.error(f"Error registering MCP tool '{tool.name}': {e}")
            raise
        logger.info(f"MCP tool '{tool.name}' registered.")
        return definition

    def _make_proxy(self, tool_name: str) -> Any:
        async def mcp_proxy(**kwargs: Any) -> str:
            """Forward a validated call to the MCP server and flatten its content blocks."""
            if not self._session:
                raise RuntimeError(f"Cannot call tool '{tool_name}': MCP session is not active.")

            logger.info(f"Delegating tool '{tool_name}' to MCP server...")
            logger.debug(f"Tool arguments: {kwargs}")
            mcp_result = await self._session.call_tool(tool_name, arguments=kwargs)

            result_text = self.flatten_content(mcp_result)
            if mcp_result.isError:
                raise ToolExecutionError(result_text or f"MCP tool '{tool_name}' reported an error.")

            preview = result_text[:_LOG_PREVIEW] + "..." if len(result_text) > _LOG_PREVIEW else result_text
            logger.debug(f"Tool '{tool_name}' result: {preview}")
            return result_text

        mcp_proxy.__name__ = tool_name
        return mcp_proxy

    @staticmethod
    def flatten_content(mcp_result: CallToolResult) -> str:
        """Render MCP content blocks as one string; an empty result reads "Success"."""
        if not mcp_result.content:
            return "Success"

        output = []
        for c in mcp_result.content:
            if c.type == "text":
                output.append(cast(TextContent, c).text)
            elif c.type == "image":
                output.append(f"[Image: {cast(ImageContent, c).mimeType}]")
            elif c.type == "resource":
                output.append(f"[Resource: {cast(EmbeddedResource, c).resource.uri}]")
            else:
                output.append(f"[Unknown content type: {c.type}]")
        return "\n".join(output)
