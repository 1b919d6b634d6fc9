"""The message log and the session derived from it."""

import logging

from .core import ChatOptions, Message
from .pipeline import ResponsePipeline
from .session import SessionTimer
from .suggestions import visible

logger = logging.getLogger(__name__)


class Conversation:
    """Single owner of one chat's mutable state.

    Messages are only ever appended, or cleared all at once. Every change to
    the log re-syncs the session timer.

    Two overlapping ``send`` calls are not serialized: each reply is appended
    when its request finishes, so replies can land out of send order.
    """

    def __init__(self, pipeline: ResponsePipeline, timer: SessionTimer | None = None):
        self.pipeline = pipeline
        self.timer = timer or SessionTimer()
        self._messages: list[Message] = []

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    def append(self, message: Message) -> None:
        self._messages.append(message)
        self.timer.sync(self._messages)

    async def send(self, text: str, options: ChatOptions, api_key: str | None = None) -> Message:
        """Append ``text`` as a user message and then the assistant's reply."""
        history = list(self._messages)
        self.append(Message.user(text))
        reply = await self.pipeline.generate(text, history, options, api_key=api_key)
        self.append(reply)
        return reply

    def clear(self) -> None:
        self._messages.clear()
        self.timer.reset()
        logger.info("Conversation cleared")

    def latest_suggestions(self) -> list:
        """Suggestions of the most recent assistant message, if any."""
        for msg in reversed(self._messages):
            if msg.role == "assistant":
                return list(msg.suggestions or [])
        return []

    def visible_suggestions(self, message: Message | None = None) -> list:
        """What a client shows for ``message`` (default: the latest reply)."""
        if message is None:
            return visible(self.latest_suggestions())
        return visible(message.suggestions)
