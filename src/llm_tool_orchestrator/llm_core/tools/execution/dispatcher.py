"""Validate-then-execute dispatch of model tool calls."""

from __future__ import annotations

import asyncio
import inspect
import json
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Sequence

from ...config import OrchestratorConfig
from ...exceptions import SchemaValidationError, ToolExecutionError, UnknownToolError, describe_exception
from ...logger import get_logger
from ..models import ToolCallRequest, ToolCallResult, ToolDefinition, ToolError, ToolErrorKind
from ..registry import ToolRegistry
from ..schema import SchemaValidator, received_type

logger = get_logger(__name__)


class ToolCallDispatcher:
    """Turns tool call requests into tool call results.

    Every request yields exactly one result. Unknown tools, invalid arguments
    and failing tools become error results instead of exceptions, so the
    conversation can report them back to the model. Only cancellation
    propagates.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        config: Optional[OrchestratorConfig] = None,
        argument_error_formatter: Optional[Callable[[str, Exception], str]] = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            registry: Tool registry used to resolve tool definitions. A frozen
                snapshot is taken, later registrations are not visible.
            config: Timeouts, retries, output-schema policy and concurrency bound.
            argument_error_formatter: Optional formatter for argument decoding errors.
        """
        self._registry = registry.freeze()
        self._config = config or OrchestratorConfig()
        self._argument_error_formatter = argument_error_formatter or self._default_argument_error

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    async def dispatch(self, request: ToolCallRequest, registry: Optional[ToolRegistry] = None) -> ToolCallResult:
        """Handle a single tool call request.

        Resolves the tool, normalizes and validates the arguments, executes the
        tool and checks its output against the output schema (if any).

        Args:
            request: The tool call request produced by the model.
            registry: Optional registry overriding the dispatcher's own snapshot.

        Returns:
            The result of the call, carrying either an output or an error.
        """
        registry = self._registry if registry is None else registry
        logger.debug(f"Handling tool call: {request.tool_name} (ID: {request.id})")

        try:
            tool = registry.resolve(request.tool_name)
        except UnknownToolError as exc:
            logger.warning(str(exc))
            return self._error_result(request, ToolError(kind=ToolErrorKind.UNKNOWN_TOOL, message=str(exc)))

        try:
            arguments = self._normalize_function_args(request.tool_name, request.raw_arguments)
            arguments = SchemaValidator.validate(tool.input_schema, arguments)
        except SchemaValidationError as exc:
            logger.warning(f"Argument validation failed for '{request.tool_name}': {exc}")
            return self._error_result(request, ToolError.from_schema_error(ToolErrorKind.SCHEMA_VALIDATION, exc))

        try:
            logger.info(f"Executing tool '{tool.name}'...")
            output = await self._execute_with_retry(tool, arguments)
        except asyncio.CancelledError:
            # a tool raising CancelledError on its own is a failed execution
            current = asyncio.current_task()
            if current is None or current.cancelling():
                raise
            logger.warning(f"Tool '{tool.name}' cancelled itself.")
            return self._error_result(
                request, ToolError(kind=ToolErrorKind.EXECUTION, message=f"Tool '{tool.name}' was cancelled.")
            )
        except Exception as exc:
            msg = describe_exception(exc)
            logger.warning(f"Tool '{tool.name}' failed: {msg} ({type(exc).__name__})")
            logger.debug(f"Traceback of failing tool '{tool.name}'", exc_info=True)
            return self._error_result(request, ToolError(kind=ToolErrorKind.EXECUTION, message=msg))

        logger.info(f"Tool '{tool.name}' executed successfully.")
        return self._ensure_encodable(self._check_output(request, tool, output))

    async def dispatch_all(self, requests: Sequence[ToolCallRequest]) -> List[ToolCallResult]:
        """Dispatch all tool calls of one model turn concurrently.

        The calls are joined, never raced: this returns once every call has a
        result, and results are in request order regardless of completion
        order. A request id that already occurred in the batch is not executed
        again. If the surrounding task is cancelled, all outstanding calls are
        cancelled and awaited before the cancellation propagates.

        Args:
            requests: The tool call requests of one assistant message.

        Returns:
            One result per request, in the same order.
        """
        semaphore = asyncio.Semaphore(self._config.max_concurrency) if self._config.max_concurrency else None
        seen: set[str] = set()
        tasks: List["asyncio.Future[ToolCallResult]"] = []

        for request in requests:
            if request.id in seen:
                logger.warning(f"Tool call id '{request.id}' occurs more than once in one turn. Skipping repeat.")
                tasks.append(asyncio.ensure_future(self._duplicate_result(request)))
                continue
            seen.add(request.id)
            tasks.append(asyncio.ensure_future(self._bounded_dispatch(request, semaphore)))

        try:
            return list(await asyncio.gather(*tasks))
        except asyncio.CancelledError:
            pending = [task for task in tasks if not task.done()]
            logger.info(f"Dispatch cancelled. Waiting for {len(pending)} outstanding tool call(s) to stop.")
            for task in pending:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _bounded_dispatch(
        self, request: ToolCallRequest, semaphore: Optional[asyncio.Semaphore]
    ) -> ToolCallResult:
        if semaphore is None:
            return await self.dispatch(request)
        async with semaphore:
            return await self.dispatch(request)

    @staticmethod
    async def _duplicate_result(request: ToolCallRequest) -> ToolCallResult:
        return ToolCallResult(
            id=request.id,
            tool_name=request.tool_name,
            error=ToolError(
                kind=ToolErrorKind.DUPLICATE_CALL_ID,
                message=f"Tool call id '{request.id}' was already dispatched in this turn.",
            ),
        )

    def _check_output(self, request: ToolCallRequest, tool: ToolDefinition, output: Any) -> ToolCallResult:
        if tool.output_schema is None:
            return ToolCallResult(id=request.id, tool_name=request.tool_name, output=output)

        try:
            SchemaValidator.validate(tool.output_schema, output)
        except SchemaValidationError as exc:
            mismatch = ToolError.from_schema_error(ToolErrorKind.OUTPUT_SCHEMA_MISMATCH, exc)
            if self._config.output_schema_policy == "error":
                logger.warning(f"Output of '{tool.name}' does not match its output schema: {exc}")
                return self._error_result(request, mismatch)
            logger.warning(f"Output of '{tool.name}' does not match its output schema, passing it on: {exc}")
            return ToolCallResult(id=request.id, tool_name=request.tool_name, output=output, warnings=(mismatch,))

        return ToolCallResult(id=request.id, tool_name=request.tool_name, output=output)

    @staticmethod
    def _ensure_encodable(result: ToolCallResult) -> ToolCallResult:
        try:
            result.to_json()
        except (TypeError, ValueError) as exc:
            logger.warning(f"Output of '{result.tool_name}' cannot be encoded as JSON: {exc}")
            return ToolCallResult(
                id=result.id,
                tool_name=result.tool_name,
                error=ToolError(kind=ToolErrorKind.EXECUTION, message=f"Tool output is not JSON encodable: {exc}"),
            )
        return result

    @staticmethod
    def _error_result(request: ToolCallRequest, error: ToolError) -> ToolCallResult:
        return ToolCallResult(id=request.id, tool_name=request.tool_name, error=error)

    def _normalize_function_args(self, tool_name: str, raw_args: Any) -> Dict[str, Any]:
        """Normalize tool arguments into a dictionary.

        Handles JSON strings, mappings, or None values.

        Raises:
            SchemaValidationError: If the arguments are not (and do not decode to) an object.
        """
        if raw_args is None or raw_args == "":
            return {}

        if isinstance(raw_args, Mapping):
            return dict(raw_args)

        if isinstance(raw_args, str):
            try:
                parsed = json.loads(raw_args)
            except json.JSONDecodeError as exc:
                raise SchemaValidationError(
                    "$", "object", "invalid JSON", message=self._argument_error_formatter(tool_name, exc)
                ) from exc

            if parsed is None:
                return {}

            if not isinstance(parsed, dict):
                error = ValueError("Function arguments must decode to a JSON object.")
                raise SchemaValidationError(
                    "$", "object", received_type(parsed), message=self._argument_error_formatter(tool_name, error)
                )

            return parsed

        raise SchemaValidationError("$", "object", received_type(raw_args))

    async def _execute_with_retry(self, tool: ToolDefinition, arguments: Dict[str, Any]) -> Any:
        """Execute a tool, retrying failed executions with exponential backoff.

        Raises:
            Exception: The last encountered exception if all retries fail.
        """
        retries = self._config.max_tool_retries
        delay = self._config.tool_retry_base_delay
        for attempt in range(retries + 1):
            try:
                return await self._execute_tool(tool.func, arguments)
            except Exception as e:
                if attempt == retries:
                    raise

                logger.warning(
                    f"Tool '{tool.name}' failed (Retry: {attempt + 1}/{retries}): {describe_exception(e)}. "
                    f"Waiting {delay}s..."
                )
                await asyncio.sleep(delay)
                delay *= 2  # Exponential backoff

        raise ToolExecutionError(f"Tool '{tool.name}' was not executed.")

    async def _execute_tool(self, tool_function: Callable[..., Any], function_args: Dict[str, Any]) -> Any:
        """Execute the tool function, handling async/sync and timeouts.

        Coroutine functions run on the event loop. Everything else runs in a
        worker thread; if that returns an awaitable (e.g. a partial of an async
        function), it is awaited on the loop.

        Raises:
            ToolExecutionError: If execution times out.
        """
        timeout = self._config.tool_timeout

        if inspect.iscoroutinefunction(tool_function):
            return await self._await_with_timeout(tool_function(**function_args), timeout)

        result = await self._run_in_thread(tool_function, function_args, timeout)
        if inspect.isawaitable(result):
            return await self._await_with_timeout(result, timeout)
        return result

    @staticmethod
    async def _await_with_timeout(awaitable: Any, timeout: float) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise ToolExecutionError(f"Tool execution timed out after {timeout} seconds.") from exc

    @staticmethod
    async def _run_in_thread(tool_function: Callable[..., Any], function_args: Dict[str, Any], timeout: float) -> Any:
        """Run a synchronous tool in a worker thread.

        Threads cannot be interrupted. On cancellation the call is allowed to
        finish before the cancellation propagates; on timeout the thread is
        abandoned and keeps running in the background.
        """
        task = asyncio.ensure_future(asyncio.to_thread(tool_function, **function_args))
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout)
        except asyncio.CancelledError:
            await asyncio.wait({task})
            raise

        if not done:
            logger.warning(f"Synchronous tool still running after {timeout} seconds, abandoning it.")
            raise ToolExecutionError(f"Tool execution timed out after {timeout} seconds.")
        return task.result()

    @staticmethod
    def _default_argument_error(tool_name: str, error: Exception) -> str:
        """Format a default error message for argument parsing failures.

        Args:
            tool_name: Name of the tool.
            error: The exception that occurred.

        Returns:
            A formatted error message string.
        """
        return f"Failed to parse arguments for tool '{tool_name}': {error}"
