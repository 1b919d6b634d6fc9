"""Countdown state machine for the active ritual session.

The session is derived from the most recent assistant message that carries
an ``action`` or ``music`` suggestion. While it runs, a once-a-second tick
advances progress and flips it to ``completed`` when time is up.

States and transitions::

    idle ──(new qualifying suggestion)──> running
    running <──(toggle)──> paused
    running ──(tick, time up)──> completed
    any ──(end)──> completed

A new qualifying suggestion always replaces the current session, whatever
its state. Time comes from an injected clock (epoch milliseconds) so the
machine can be driven deterministically.
"""

import asyncio
import logging
import math
import re
import time
from typing import Callable, Optional

from .config import DEFAULT_SESSION_MINUTES
from .core import ActionSuggestion, ActivitySession, Message, MusicSuggestion, is_duration

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

IDLE_TITLE = "Ready when you are"
IDLE_SUBTITLE = "Ask for a ritual or a track to begin"

_MINUTES = re.compile(r"(\d+(?:\.\d+)?)\s*(?:min|mins|minute|minutes)\b", re.IGNORECASE)
_SECONDS = re.compile(r"(\d+)\s*(?:s|sec|secs|second|seconds)\b", re.IGNORECASE)
_CLOCK = re.compile(r"\b(\d{1,2}):([0-5]\d)\b")


def wall_clock() -> float:
    return time.time() * 1000


def parse_duration_hint(text: str | None) -> Optional[float]:
    """Return a duration in minutes found in ``text``, or None.

    Understands "2 min", "1.5 minutes", "90s" and "01:30". Durations that
    are not positive or run longer than a day give None.
    """
    if not text:
        return None
    m = _MINUTES.search(text)
    if m:
        minutes = float(m.group(1))
        return minutes if is_duration(minutes) else None
    m = _CLOCK.search(text)
    if m:
        minutes = int(m.group(1)) + int(m.group(2)) / 60
        return minutes if minutes > 0 else None
    m = _SECONDS.search(text)
    if m:
        minutes = float(m.group(1)) / 60
        return minutes if is_duration(minutes) else None
    return None


def format_eta(ms: float) -> str:
    """Format remaining milliseconds as mm:ss, rounding up to whole seconds."""
    seconds = max(0, math.ceil(ms / 1000))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def placeholder_session() -> ActivitySession:
    return ActivitySession(session_id=None, title=IDLE_TITLE, subtitle=IDLE_SUBTITLE)


class Ticker:
    """Calls a callback every ``interval`` seconds on the running event loop.

    The pending ``asyncio.TimerHandle`` is the cancellation handle; ``cancel``
    may be called any number of times.
    """

    def __init__(self, interval: float = 1.0):
        self.interval = interval
        self._handle: Optional[asyncio.TimerHandle] = None
        self._callback: Optional[Callable[[], None]] = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    def start(self, callback: Callable[[], None]) -> None:
        """Begin ticking. Must be called from inside a running event loop."""
        self.cancel()
        self._callback = callback
        self._schedule()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._callback = None

    def _schedule(self) -> None:
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.interval, self._fire)

    def _fire(self) -> None:
        callback = self._callback
        if callback is None:
            self._handle = None
            return
        # Reschedule first so the callback can cancel us.
        self._schedule()
        callback()


class SessionTimer:
    """Owns the ActivitySession and every transition on it."""

    def __init__(
        self,
        clock: Clock = wall_clock,
        ticker: Ticker | None = None,
        default_minutes: float = DEFAULT_SESSION_MINUTES,
    ):
        self.clock = clock
        self.ticker = ticker
        self.default_minutes = default_minutes
        self.session = placeholder_session()

    # ── Derivation ───────────────────────────────────────────────

    def sync(self, messages: list[Message]) -> ActivitySession:
        """Start a new session if the log holds a qualifying suggestion we
        are not tracking yet; otherwise leave the current one alone."""
        source = latest_qualifying(messages)
        if source is None:
            return self.session
        if source.id == self.session.session_id:
            return self.session
        self.start(source)
        return self.session

    def start(self, message: Message) -> ActivitySession:
        """Replace the current session with one derived from ``message``."""
        action = _first(message, ActionSuggestion)
        music = _first(message, MusicSuggestion)
        if action is None and music is None:
            raise ValueError(f"message {message.id} has no action or music suggestion")

        if action is not None and is_duration(action.minutes):
            minutes = float(action.minutes)
        else:
            minutes = (parse_duration_hint(music.subtitle) if music else None) or self.default_minutes

        if action is not None:
            title = action.label
            subtitle = f"Ritual • {_minutes_label(minutes)}"
            if music is not None:
                subtitle += f" • {music.title}"
        else:
            title = music.title
            subtitle = music.subtitle or f"Music • {_minutes_label(minutes)}"

        self._stop_ticking()
        self.session = ActivitySession(
            session_id=message.id,
            title=title,
            subtitle=subtitle,
            mode="running",
            duration_minutes=minutes,
            started_at=self.clock(),
            elapsed_ms=0.0,
            has_music=music is not None,
        )
        self._refresh(0.0)
        self._start_ticking()
        logger.debug("Session %s started: %s (%.2f min)", message.id, title, minutes)
        return self.session

    # ── User actions ─────────────────────────────────────────────

    def toggle(self) -> ActivitySession:
        """Pause a running session or resume a paused one."""
        s = self.session
        now = self.clock()
        if s.mode == "running":
            s.elapsed_ms += now - s.started_at
            s.started_at = None
            s.mode = "paused"
            self._stop_ticking()
            self._refresh(s.elapsed_ms)
        elif s.mode == "paused":
            s.started_at = now
            s.mode = "running"
            self._refresh(s.elapsed_ms)
            self._start_ticking()
        else:
            return s
        logger.debug("Session %s -> %s", s.session_id, s.mode)
        return s

    def end(self) -> ActivitySession:
        """Finish the session now. Ending a completed session does nothing."""
        s = self.session
        if s.mode == "completed":
            return s
        if s.mode == "running":
            s.elapsed_ms += self.clock() - s.started_at
        self._complete()
        return s

    def tick(self) -> ActivitySession:
        """Advance a running session; complete it once its time is up."""
        s = self.session
        if s.mode != "running":
            return s
        elapsed = self.elapsed()
        if elapsed >= self.duration_ms:
            s.elapsed_ms = elapsed
            self._complete()
        else:
            self._refresh(elapsed)
        return s

    def reset(self) -> ActivitySession:
        """Drop the current session and go back to the idle placeholder."""
        self._stop_ticking()
        self.session = placeholder_session()
        return self.session

    def close(self) -> None:
        self._stop_ticking()

    # ── Helpers ──────────────────────────────────────────────────

    @property
    def duration_ms(self) -> float:
        return self.session.duration_minutes * 60_000

    def elapsed(self) -> float:
        """Total elapsed milliseconds, including the current running stretch."""
        s = self.session
        if s.mode == "running" and s.started_at is not None:
            return s.elapsed_ms + (self.clock() - s.started_at)
        return s.elapsed_ms

    def snapshot(self) -> dict:
        if self.session.mode == "running":
            self._refresh(self.elapsed())
        return self.session.to_dict()

    def _refresh(self, elapsed: float) -> None:
        s = self.session
        duration = self.duration_ms
        if duration <= 0:
            s.progress = 0.0
            s.eta_label = format_eta(0)
            return
        s.progress = min(max(elapsed / duration, 0.0), 1.0)
        s.eta_label = format_eta(max(duration - elapsed, 0))

    def _complete(self) -> None:
        s = self.session
        self._stop_ticking()
        s.mode = "completed"
        s.started_at = None
        s.progress = 1.0
        s.eta_label = "00:00"
        logger.debug("Session %s completed", s.session_id)

    def _start_ticking(self) -> None:
        if self.ticker is not None:
            self.ticker.start(self.tick)

    def _stop_ticking(self) -> None:
        if self.ticker is not None:
            self.ticker.cancel()


def latest_qualifying(messages: list[Message]) -> Message | None:
    """Return the newest assistant message with an action or music suggestion."""
    for msg in reversed(messages):
        if msg.role != "assistant" or not msg.suggestions:
            continue
        if any(isinstance(s, (ActionSuggestion, MusicSuggestion)) for s in msg.suggestions):
            return msg
    return None


def _first(message: Message, kind):
    for s in message.suggestions or ():
        if isinstance(s, kind):
            return s
    return None


def _minutes_label(minutes: float) -> str:
    return f"{minutes:g} min"
