"""The control loop alternating model invocation and tool dispatch."""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Sequence, TypeVar, Union

from pydantic import BaseModel

from ..binding import ChatModel, ModelBinding
from ..config import OrchestratorConfig
from ..exceptions import ConversationCancelled, IterationLimitExceeded
from ..logger import get_logger
from ..messages import AssistantMessage, ConversationMessage, ToolMessage
from ..tools import ToolCallDispatcher, ToolDefinition, ToolRegistry

logger = get_logger(__name__)

T = TypeVar("T")


class LoopState(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    DISPATCHING_TOOLS = "dispatching_tools"
    TERMINATED = "terminated"


class ConversationStatus(str, Enum):
    COMPLETED = "completed"
    ITERATION_LIMIT_EXCEEDED = "iteration_limit_exceeded"
    CANCELLED = "cancelled"


class ConversationResult(BaseModel):
    """Outcome of a conversation run.

    Attributes:
        status: Why the loop terminated.
        message: The final assistant message for ``COMPLETED``; otherwise the
            last assistant message received, if any.
        history: The full working history, including the caller's messages,
            every assistant message and every tool result.
        iterations: Number of times the loop entered ``AWAITING_MODEL``.
    """

    status: ConversationStatus
    message: Optional[AssistantMessage] = None
    history: List[ConversationMessage]
    iterations: int

    @property
    def content(self) -> str:
        return self.message.content if self.message is not None else ""

    @property
    def completed(self) -> bool:
        return self.status is ConversationStatus.COMPLETED

    def raise_for_status(self) -> "ConversationResult":
        """Return self if the conversation completed, raise its terminal signal otherwise.

        Raises:
            IterationLimitExceeded: If the iteration limit was hit.
            ConversationCancelled: If the run was cancelled.
        """
        if self.status is ConversationStatus.ITERATION_LIMIT_EXCEEDED:
            raise IterationLimitExceeded(f"No final answer after {self.iterations} model call(s).", result=self)
        if self.status is ConversationStatus.CANCELLED:
            raise ConversationCancelled("Conversation was cancelled.", result=self)
        return self


class _CancelRequested(Exception):
    pass


class ConversationLoop:
    """Drives model invocations and tool dispatch until a final answer.

    The loop is a small state machine: ``AWAITING_MODEL`` while the model is
    called, ``DISPATCHING_TOOLS`` while the tool calls of a turn run, and
    ``TERMINATED`` once a run ended. Tool failures never end a run; they are
    reported back to the model. A single instance runs one conversation at a time.
    """

    def __init__(self, binding: ModelBinding[Any], dispatcher: ToolCallDispatcher, max_iterations: int) -> None:
        """Initialize the loop.

        Args:
            binding: The model bound to its tool set.
            dispatcher: Executes the tool calls the model requests.
            max_iterations: Maximum number of model invocations per run (>= 1).

        Raises:
            ValueError: If max_iterations is not a positive integer.
        """
        if isinstance(max_iterations, bool) or not isinstance(max_iterations, int) or max_iterations < 1:
            raise ValueError(f"max_iterations must be a positive integer, got {max_iterations!r}.")

        self.binding = binding
        self.dispatcher = dispatcher
        self.max_iterations = max_iterations
        self.state = LoopState.TERMINATED

    async def run(
        self,
        initial_messages: Sequence[ConversationMessage],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ConversationResult:
        """Run the conversation to a terminal state.

        The caller's messages are copied; the loop owns the working history.

        Args:
            initial_messages: The conversation so far, usually ending with a user message.
            cancel_event: Optional external cancellation signal. When it is set,
                the in-flight model call or tool batch is cancelled (tool calls
                are awaited until they stopped) and the run ends as ``CANCELLED``.

        Returns:
            The result, whose status tells how the run ended.

        Raises:
            ModelInvocationError: If the model call fails.
            asyncio.CancelledError: If the task running the loop is cancelled.
        """
        history: List[ConversationMessage] = list(initial_messages)
        last_message: Optional[AssistantMessage] = None
        iterations = 0

        self._transition(LoopState.AWAITING_MODEL)
        try:
            while True:
                if iterations >= self.max_iterations:
                    logger.warning(f"Max iterations ({self.max_iterations}) reached. Stopping execution.")
                    return self._finish(ConversationStatus.ITERATION_LIMIT_EXCEEDED, last_message, history, iterations)

                iterations += 1
                logger.debug(f"Iteration {iterations}/{self.max_iterations}: invoking model.")
                try:
                    message = await self._unless_cancelled(lambda: self.binding.invoke(history), cancel_event)
                except _CancelRequested:
                    return self._finish(ConversationStatus.CANCELLED, last_message, history, iterations)

                history.append(message)
                last_message = message

                if not message.tool_calls:
                    logger.debug("No tool calls found in response. Loop finished.")
                    return self._finish(ConversationStatus.COMPLETED, message, history, iterations)

                self._transition(LoopState.DISPATCHING_TOOLS)
                logger.info(
                    f"Iteration {iterations}/{self.max_iterations}: Processing {len(message.tool_calls)} tool call(s)."
                )
                try:
                    results = await self._unless_cancelled(
                        lambda: self.dispatcher.dispatch_all(message.tool_calls), cancel_event
                    )
                except _CancelRequested:
                    return self._finish(ConversationStatus.CANCELLED, last_message, history, iterations)

                history.extend(ToolMessage.from_result(result) for result in results)
                self._transition(LoopState.AWAITING_MODEL)
        finally:
            if self.state is not LoopState.TERMINATED:
                self._transition(LoopState.TERMINATED)

    def _finish(
        self,
        status: ConversationStatus,
        message: Optional[AssistantMessage],
        history: List[ConversationMessage],
        iterations: int,
    ) -> ConversationResult:
        self._transition(LoopState.TERMINATED)
        logger.info(f"Conversation terminated: {status.value} after {iterations} model call(s).")
        return ConversationResult(status=status, message=message, history=history, iterations=iterations)

    def _transition(self, state: LoopState) -> None:
        logger.debug(f"Loop state: {self.state.value} -> {state.value}")
        self.state = state

    @staticmethod
    async def _unless_cancelled(start: Callable[[], Awaitable[T]], cancel_event: Optional[asyncio.Event]) -> T:
        """Await the started work, unless the cancel event fires first.

        Raises:
            _CancelRequested: If the event was set; the work has been cancelled
                and has finished by then.
        """
        if cancel_event is None:
            return await start()
        if cancel_event.is_set():
            raise _CancelRequested()

        work = asyncio.ensure_future(start())
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            waiter.cancel()
            await asyncio.gather(work, waiter, return_exceptions=True)
            raise

        if work in done:
            waiter.cancel()
            await asyncio.gather(waiter, return_exceptions=True)
            return work.result()

        logger.info("Cancellation requested. Stopping in-flight work.")
        work.cancel()
        await asyncio.gather(work, return_exceptions=True)
        raise _CancelRequested()


async def run_conversation(
    model: ChatModel[Any],
    initial_messages: Sequence[ConversationMessage],
    tools: Union[ToolRegistry, Iterable[Union[ToolDefinition, Callable[..., Any]]]],
    max_iterations: int,
    *,
    config: Optional[OrchestratorConfig] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> ConversationResult:
    """Run a tool-calling conversation from start to a terminal state.

    Args:
        model: The provider implementation.
        initial_messages: The caller-owned history to start from. It is not mutated.
        tools: A registry, or tool definitions / documented functions to build one from.
        max_iterations: Maximum number of model invocations. Must be given explicitly.
        config: Dispatch configuration (timeouts, retries, output-schema policy).
        cancel_event: Optional external cancellation signal.

    Returns:
        The conversation result: a final message, or an iteration-limit or cancelled status.

    Raises:
        DuplicateToolNameError: If the tool set contains a name twice.
        ModelInvocationError: If the model call fails.
    """
    registry = tools if isinstance(tools, ToolRegistry) else ToolRegistry.from_tools(tools)
    binding = ModelBinding(model, registry)
    dispatcher = ToolCallDispatcher(binding.registry, config)
    loop = ConversationLoop(binding, dispatcher, max_iterations)
    return await loop.run(initial_messages, cancel_event=cancel_event)
