"""AI conversation driven by a streaming backend."""

import asyncio
import logging
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Set

from ai.ai_backend import AIBackend
from ai.ai_conversation_history import AIConversationHistory
from ai.ai_message import AIMessage
from ai.ai_message_source import AIMessageSource
from ai.ai_response import AIError, AIStreamOutcome


class AIConversationState(Enum):
    """State of the conversation's request/response cycle."""
    IDLE = auto()
    SENDING = auto()
    STREAMING = auto()


class AIConversationEvent(Enum):
    """Events that can be emitted by the AIConversation class."""
    ERROR = auto()              # When a request ends with a rate limit, quota or transport error
    COMPLETED = auto()          # When a response is fully completed
    MESSAGE_ADDED = auto()      # When a new message is added to history
    MESSAGE_UPDATED = auto()    # When the streaming message gets new content
    MESSAGE_COMPLETED = auto()  # When the streaming message has been finalized
    STATE_CHANGED = auto()      # When the conversation moves between states


class AIConversation:
    """
    Handles AI conversation logic separate from any user interface.

    Only one request can be in flight at a time.  The user message is added to the history before
    the request is sent and an empty assistant message is added once the response starts
    streaming; every fragment then replaces that message's content with the text accumulated so
    far.  Listeners observe all of this through registered callbacks, each of which is given a
    snapshot of the message as it stood when the event fired.
    """

    def __init__(self, backend: AIBackend, welcome_message: str | None = None) -> None:
        """
        Initialize the AIConversation.

        Args:
            backend: Backend used to stream replies
            welcome_message: Optional assistant greeting to start the history with
        """
        self._logger = logging.getLogger("AIConversation")
        self._backend = backend
        self._conversation = AIConversationHistory()
        self._current_tasks: List[asyncio.Task] = []
        self._current_ai_message: AIMessage | None = None
        self._state = AIConversationState.IDLE
        self._last_outcome: AIStreamOutcome | None = None

        if welcome_message:
            self._conversation.add_message(AIMessage.create(AIMessageSource.AI, welcome_message))

        # Callbacks for events
        self._callbacks: Dict[AIConversationEvent, Set[Callable]] = {
            event: set() for event in AIConversationEvent
        }

    @property
    def state(self) -> AIConversationState:
        """Current request/response state."""
        return self._state

    @property
    def last_outcome(self) -> AIStreamOutcome | None:
        """Outcome of the most recent request, or None if nothing has finished yet."""
        return self._last_outcome

    def is_streaming(self) -> bool:
        """Check if the conversation is currently sending or streaming a response."""
        return self._state != AIConversationState.IDLE

    def register_callback(self, event: AIConversationEvent, callback: Callable) -> None:
        """
        Register a callback for a specific event.

        Args:
            event: The event to register for
            callback: The coroutine function to call when the event occurs
        """
        self._callbacks[event].add(callback)

    def unregister_callback(self, event: AIConversationEvent, callback: Callable) -> None:
        """
        Unregister a callback for a specific event.

        Args:
            event: The event to unregister from
            callback: The callback function to remove
        """
        if callback in self._callbacks[event]:
            self._callbacks[event].remove(callback)

    async def _trigger_event(self, event: AIConversationEvent, *args: Any, **kwargs: Any) -> None:
        """
        Trigger all callbacks registered for an event.

        Args:
            event: The event to trigger
            *args: Arguments to pass to callbacks
            **kwargs: Keyword arguments to pass to callbacks
        """
        for callback in self._callbacks[event]:
            try:
                await callback(*args, **kwargs)

            except Exception:
                self._logger.exception("Error in callback for %s", event)

    async def _set_state(self, state: AIConversationState) -> None:
        if self._state == state:
            return

        self._logger.debug("State %s -> %s", self._state.name, state.name)
        self._state = state
        await self._trigger_event(AIConversationEvent.STATE_CHANGED, state)

    def get_conversation_history(self) -> AIConversationHistory:
        """
        Get the conversation history object.

        Returns:
            The conversation history object
        """
        return self._conversation

    def load_message_history(self, messages: List[AIMessage]) -> None:
        """
        Load existing message history.

        Args:
            messages: List of AIMessage objects to load
        """
        self._conversation.clear()

        for message in messages:
            self._conversation.add_message(message)

    async def submit_message(self, user_message: str) -> bool:
        """
        Submit a user message to the conversation and start streaming the reply.

        Args:
            user_message: The user message to submit

        Returns:
            True if the message was accepted, False if it was empty or a request is already active
        """
        content = user_message.strip()
        if not content:
            return False

        if self._state != AIConversationState.IDLE:
            self._logger.debug("Rejecting message while %s", self._state.name)
            return False

        message = AIMessage.create(AIMessageSource.USER, content)
        self._conversation.add_message(message)
        await self._trigger_event(AIConversationEvent.MESSAGE_ADDED, message.copy())

        # Snapshot before sending so the backend never sees later changes to the history
        request_messages = self._conversation.to_request_messages()
        await self._set_state(AIConversationState.SENDING)

        task = asyncio.create_task(self._start_ai(request_messages))
        self._current_tasks.append(task)

        def task_done_callback(task: asyncio.Task) -> None:
            try:
                self._current_tasks.remove(task)

            except ValueError:
                self._logger.debug("Task already removed")

            # A task cancelled before it ever ran never reaches its own cleanup
            if task.cancelled():
                self._current_ai_message = None
                self._last_outcome = AIStreamOutcome.CANCELLED
                self._state = AIConversationState.IDLE

        task.add_done_callback(task_done_callback)
        return True

    async def _start_ai(self, request_messages: List[Dict[str, str]]) -> None:
        """Stream an AI response for the given conversation snapshot."""
        stream = None

        try:
            self._logger.debug("Starting AI response streaming")

            stream = self._backend.stream_message(request_messages)
            async for response in stream:
                if response.error:
                    await self._handle_error(response.error)
                    return

                if response.connected:
                    await self._handle_connection()
                    continue

                if response.completed:
                    await self._handle_completion()
                    return

                await self._handle_content(response.content)

            # If we get here the backend stopped without finishing the response
            self._logger.debug("AI response ended without completing")
            await self._handle_error(
                AIError(
                    code="incomplete",
                    message=AIBackend.GENERIC_ERROR_MESSAGE,
                    details={"type": "IncompleteResponse"}
                )
            )

        except asyncio.CancelledError:
            self._logger.debug("AI response cancelled")
            await self._handle_cancellation()

        except Exception as e:
            self._logger.exception("Error processing AI response")
            await self._handle_error(
                AIError(
                    code="process_error",
                    message=AIBackend.GENERIC_ERROR_MESSAGE,
                    details={"type": type(e).__name__, "reason": str(e)}
                )
            )

        finally:
            # Properly close the async generator if it exists
            if stream is not None:
                try:
                    await stream.aclose()

                except Exception as e:
                    # Log but don't propagate generator cleanup errors
                    self._logger.debug("Error during generator cleanup: %s", e)

            self._current_ai_message = None
            await self._set_state(AIConversationState.IDLE)

    async def _handle_connection(self) -> None:
        """Handle the response starting to stream by adding an empty assistant message."""
        await self._set_state(AIConversationState.STREAMING)

        new_message = AIMessage.create(AIMessageSource.AI, "", completed=False)
        self._conversation.add_message(new_message)
        self._current_ai_message = new_message
        await self._trigger_event(AIConversationEvent.MESSAGE_ADDED, new_message.copy())

    async def _handle_content(self, content: str) -> None:
        """
        Replace the streaming message's content with the text accumulated so far.

        Args:
            content: Full accumulated content of the AI response
        """
        if not self._current_ai_message:
            self._logger.warning("Content received with no message in progress")
            return

        message = self._conversation.update_message(self._current_ai_message.id, content)
        if message:
            await self._trigger_event(AIConversationEvent.MESSAGE_UPDATED, message.copy())

    async def _finalize_current_message(self) -> None:
        """Mark the streaming message, if any, as complete with whatever it holds."""
        if not self._current_ai_message:
            return

        message = self._conversation.update_message(
            self._current_ai_message.id,
            self._current_ai_message.content,
            completed=True
        )
        self._current_ai_message = None
        if message:
            await self._trigger_event(AIConversationEvent.MESSAGE_COMPLETED, message.copy())

    async def _handle_completion(self) -> None:
        self._logger.debug("Finished AI response streaming")
        await self._finalize_current_message()
        self._last_outcome = AIStreamOutcome.COMPLETED
        await self._trigger_event(AIConversationEvent.COMPLETED, AIStreamOutcome.COMPLETED)

    async def _handle_error(self, error: AIError) -> None:
        """
        Handle errors that occur during AI response processing.

        Any partial response is kept as-is.

        Args:
            error: AIError object containing error details
        """
        self._logger.warning("AI response error (%s): %s", error.code, error.message)
        await self._finalize_current_message()
        self._last_outcome = error.outcome
        await self._trigger_event(AIConversationEvent.ERROR, error)

    async def _handle_cancellation(self) -> None:
        await self._finalize_current_message()
        self._last_outcome = AIStreamOutcome.CANCELLED

    def cancel_current_tasks(self) -> None:
        """Cancel any ongoing AI response tasks."""
        for task in self._current_tasks:
            if not task.done():
                task.cancel()

    async def wait_for_tasks(self) -> None:
        """Wait until any in-flight response has finished."""
        if self._current_tasks:
            await asyncio.gather(*self._current_tasks, return_exceptions=True)
