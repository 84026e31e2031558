"""
Assistant chat side-channel.

Independent of the pipeline stage. The log is append-only; the one exception
is the model reply currently being streamed, which grows fragment by fragment
through ``_append_fragment`` and nowhere else.
"""

import logging
from typing import Callable, List, Optional, Tuple

from .errors import AlreadyInProgressError, ValidationError
from .models import ChatMessage, ChatRole
from .providers.base import GenerationBackend

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = (
    "Hi! I'm your studio assistant. I can help you develop a script or "
    "explain how to use the video generation tools."
)
FALLBACK_MESSAGE = "Sorry, I ran into a connection problem. Please try again later."

ChatListener = Callable[[Tuple[ChatMessage, ...]], None]


class ChatSession:
    """
    Streaming chat with the backend's conversational capability.

    Only one reply may stream at a time; ``send`` while ``is_typing`` raises
    ``AlreadyInProgressError``.
    """

    def __init__(self, backend: GenerationBackend, welcome: Optional[str] = WELCOME_MESSAGE):
        self.backend = backend
        self._messages: Tuple[ChatMessage, ...] = ()
        if welcome:
            self._messages = (ChatMessage(id="welcome", role=ChatRole.MODEL, text=welcome),)
        self._listeners: List[ChatListener] = []
        self._streaming_id: Optional[str] = None
        self.is_typing = False

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        return self._messages

    def subscribe(self, listener: ChatListener) -> Callable[[], None]:
        """Call ``listener`` with every new message log. Returns an unsubscribe callable."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def _publish(self, messages: Tuple[ChatMessage, ...]):
        self._messages = messages
        for listener in list(self._listeners):
            try:
                listener(self._messages)
            except Exception:
                logger.exception("Chat listener %r failed", listener)

    def _append(self, message: ChatMessage) -> ChatMessage:
        self._publish(self._messages + (message,))
        return message

    def _append_fragment(self, message_id: str, fragment: str):
        """Grow the in-flight reply; the only in-place change the log allows"""
        if message_id != self._streaming_id:
            raise RuntimeError(f"Message {message_id} is not the active stream target")
        self._publish(tuple(
            m.with_fragment(fragment) if m.id == message_id else m
            for m in self._messages
        ))

    def _drop_if_empty(self, message_id: str):
        """Remove a reply placeholder that never received a fragment"""
        if any(m.id == message_id and not m.text for m in self._messages):
            self._publish(tuple(m for m in self._messages if m.id != message_id))

    async def send(self, text: str) -> Tuple[ChatMessage, ...]:
        """
        Send a user message and stream the model's reply into the log.

        Transport failures are recovered locally by appending a fallback
        apology; they never raise.

        Returns:
            The message log after the reply finished
        """
        if not text or not text.strip():
            raise ValidationError("Message is empty")
        if self.is_typing:
            raise AlreadyInProgressError("A reply is still streaming")

        # Empty turns are rejected by chat backends
        history = [m.to_history_turn() for m in self._messages if m.text]
        self.is_typing = True
        self._append(ChatMessage(role=ChatRole.USER, text=text))

        reply: Optional[ChatMessage] = None
        try:
            stream = await self.backend.open_chat_stream(history, text)
            reply = self._append(ChatMessage(role=ChatRole.MODEL, text=""))
            self._streaming_id = reply.id
            async for fragment in stream:
                if fragment:
                    self._append_fragment(reply.id, fragment)
        except Exception as exc:
            logger.error("Chat stream failed: %s", exc)
            if reply is not None:
                self._drop_if_empty(reply.id)
            self._append(ChatMessage(role=ChatRole.MODEL, text=FALLBACK_MESSAGE))
        finally:
            self._streaming_id = None
            self.is_typing = False

        return self._messages
