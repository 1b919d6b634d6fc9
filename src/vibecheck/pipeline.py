"""Turn one user message into one assistant message."""

import logging

from . import mood as mood_classifier
from . import suggestions as extractor
from .backends import ProviderRouter
from .core import ChatOptions, Message
from .errors import ProviderError
from .prompts import build_system_prompt
from .tracks import track_suggestions

logger = logging.getLogger(__name__)

APOLOGY = (
    "I apologize, but I encountered an error while processing your message. "
    "Please check your API settings or try again later."
)


class ResponsePipeline:
    """Mood detection, dispatch and suggestion extraction, in that order."""

    def __init__(self, router: ProviderRouter, backfill_music: bool = False):
        self.router = router
        self.backfill_music = backfill_music

    async def generate(
        self,
        user_text: str,
        history: list[Message],
        options: ChatOptions,
        api_key: str | None = None,
    ) -> Message:
        """Return the assistant reply to ``user_text``.

        Never raises: provider failures come back as an apology message with
        no suggestions. The reply's mood is the mood detected in the user's
        text.
        """
        detected = mood_classifier.classify(user_text)
        try:
            raw = await self.router.route(
                user_text,
                history,
                options,
                system_prompt=build_system_prompt(detected),
                api_key=api_key,
            )
        except ProviderError as e:
            logger.error("Generation failed: %s", e)
            return Message.assistant(APOLOGY)

        result = extractor.extract(raw)
        found = result.suggestions
        if self.backfill_music and not found:
            found = track_suggestions(detected)

        return Message.assistant(result.cleaned_text, mood=detected, suggestions=found)
