"""Core data models for vibecheck."""

import math
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Union

from .errors import ConfigurationError, ValidationError

MOODS = (
    "happy",
    "sad",
    "angry",
    "anxious",
    "calm",
    "energetic",
    "contemplative",
    "joyful",
    "melancholy",
    "neutral",
)

MEDIA_KINDS = ("movie", "series", "book")

MAX_MINUTES = 24 * 60


def new_id(size: int = 12) -> str:
    """Return a short random url-safe id."""
    return secrets.token_urlsafe(size)[:size]


def is_duration(minutes) -> bool:
    """Return True for a finite, positive number of minutes no longer than a day."""
    if isinstance(minutes, bool) or not isinstance(minutes, (int, float)):
        return False
    # Compare first: huge ints do not convert to float.
    return 0 < minutes <= MAX_MINUTES and math.isfinite(minutes)


# ── Suggestions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class MusicSuggestion:
    title: str
    subtitle: Optional[str] = None
    link: Optional[str] = None
    preview_url: Optional[str] = None
    mood: Optional[str] = None
    type: str = field(default="music", init=False)

    def to_dict(self) -> dict:
        return _compact({
            "type": self.type,
            "title": self.title,
            "subtitle": self.subtitle,
            "link": self.link,
            "previewUrl": self.preview_url,
            "mood": self.mood,
        })


@dataclass(frozen=True)
class QuoteSuggestion:
    text: str
    author: Optional[str] = None
    type: str = field(default="quote", init=False)

    def to_dict(self) -> dict:
        return _compact({"type": self.type, "text": self.text, "author": self.author})


@dataclass(frozen=True)
class MediaSuggestion:
    """A movie, series or book recommendation."""

    kind: str  # "movie" | "series" | "book"
    title: str
    note: Optional[str] = None
    year: Optional[str] = None
    link: Optional[str] = None

    @property
    def type(self) -> str:
        return self.kind

    def to_dict(self) -> dict:
        return _compact({
            "type": self.kind,
            "title": self.title,
            "note": self.note,
            "year": self.year,
            "link": self.link,
        })


@dataclass(frozen=True)
class ActionSuggestion:
    label: str
    minutes: Optional[float] = None
    id: Optional[str] = None
    type: str = field(default="action", init=False)

    def to_dict(self) -> dict:
        return _compact({"type": self.type, "label": self.label, "minutes": self.minutes, "id": self.id})


Suggestion = Union[MusicSuggestion, QuoteSuggestion, MediaSuggestion, ActionSuggestion]


def suggestion_from_dict(data: object) -> Suggestion:
    """Build a Suggestion from its wire form.

    Raises ValidationError when ``data`` is not an object, carries an unknown
    ``type``, or lacks a required field for its type. Nothing is partially
    accepted.
    """
    if not isinstance(data, dict):
        raise ValidationError(f"suggestion must be an object, got {type(data).__name__}")

    kind = data.get("type")
    if kind == "music":
        return MusicSuggestion(
            title=_required_str(data, "title"),
            subtitle=_optional_str(data, "subtitle"),
            link=_optional_str(data, "link"),
            preview_url=_optional_str(data, "previewUrl"),
            mood=_optional_str(data, "mood"),
        )
    if kind == "quote":
        return QuoteSuggestion(
            text=_required_str(data, "text"),
            author=_optional_str(data, "author"),
        )
    if kind in MEDIA_KINDS:
        year = data.get("year")
        if isinstance(year, bool) or not isinstance(year, (str, int, type(None))):
            raise ValidationError(f"{kind}: 'year' must be a string or integer")
        return MediaSuggestion(
            kind=kind,
            title=_required_str(data, "title"),
            note=_optional_str(data, "note"),
            year=str(year) if year is not None else None,
            link=_optional_str(data, "link"),
        )
    if kind == "action":
        minutes = data.get("minutes")
        if minutes is not None:
            if not is_duration(minutes):
                raise ValidationError(f"action: 'minutes' must be a positive number up to {MAX_MINUTES}")
        return ActionSuggestion(
            label=_required_str(data, "label"),
            minutes=minutes,
            id=_optional_str(data, "id"),
        )
    raise ValidationError(f"unknown suggestion type: {kind!r}")


def _required_str(data: dict, key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{data.get('type')}: missing required field {key!r}")
    return value


def _optional_str(data: dict, key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{data.get('type')}: field {key!r} must be a string")
    return value


def _compact(d: dict) -> dict:
    return {k: v for k, v in d.items() if v is not None}


# ── Messages ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Message:
    """A single chat message. Never mutated once created."""

    id: str
    role: str  # "user" | "assistant"
    content: str
    timestamp: datetime
    mood: Optional[str] = None
    suggestions: Optional[tuple[Suggestion, ...]] = None

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(id=new_id(), role="user", content=content, timestamp=_now())

    @classmethod
    def assistant(
        cls,
        content: str,
        mood: str | None = None,
        suggestions: list[Suggestion] | None = None,
    ) -> "Message":
        return cls(
            id=new_id(),
            role="assistant",
            content=content,
            timestamp=_now(),
            mood=mood,
            suggestions=tuple(suggestions) if suggestions else None,
        )


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ── Provider configuration ───────────────────────────────────────


@dataclass
class ChatOptions:
    """Per-request generation options."""

    model_id: Optional[str] = None  # None means the settings default
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict | None) -> "ChatOptions":
        if not isinstance(data, dict):
            data = {}
        return cls(
            model_id=data.get("model") or None,
            temperature=data.get("temperature"),
            max_tokens=data.get("maxTokens"),
        )


@dataclass
class CustomProxy:
    """A user-defined completion endpoint."""

    id: str
    config_name: str
    model_name: str
    endpoint: str  # full chat-completions URL
    api_key: Optional[str] = None
    custom_prompt: Optional[str] = None
    provider: str = "Custom"
    description: str = ""
    features: list[str] = field(default_factory=list)

    @classmethod
    def new(
        cls,
        config_name: str,
        model_name: str,
        endpoint: str,
        api_key: str | None = None,
        custom_prompt: str | None = None,
        provider: str = "Custom",
        description: str = "",
        features: list[str] | str | None = None,
    ) -> "CustomProxy":
        """Create a proxy with a fresh ``custom-xxxxxx`` id."""
        if not endpoint.strip():
            raise ConfigurationError("Endpoint URL is required.")
        if not config_name.strip() and not model_name.strip():
            raise ConfigurationError("Provide at least a name or model identifier.")
        return cls(
            id=f"custom-{new_id(6)}",
            config_name=config_name.strip() or model_name.strip(),
            model_name=model_name.strip() or config_name.strip(),
            endpoint=endpoint.strip(),
            api_key=api_key or None,
            custom_prompt=custom_prompt or None,
            provider=provider or "Custom",
            description=description or f"{model_name or config_name} via custom endpoint",
            features=_split_features(features) or ["Custom", "API"],
        )

    @classmethod
    def from_dict(cls, data: dict) -> "CustomProxy":
        return cls(
            id=str(data["id"]),
            config_name=str(data.get("configName") or ""),
            model_name=str(data.get("modelName") or ""),
            endpoint=str(data.get("endpoint") or ""),
            api_key=data.get("apiKey") or None,
            custom_prompt=data.get("customPrompt") or None,
            provider=data.get("provider") or "Custom",
            description=str(data.get("description") or ""),
            features=_split_features(data.get("features")),
        )

    def to_dict(self) -> dict:
        return _compact({
            "id": self.id,
            "configName": self.config_name,
            "modelName": self.model_name,
            "endpoint": self.endpoint,
            "apiKey": self.api_key,
            "customPrompt": self.custom_prompt,
            "provider": self.provider,
            "description": self.description,
            "features": list(self.features),
        })


def _split_features(value) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(v).strip() for v in value if str(v).strip()]


@dataclass
class Settings:
    """Persisted user settings: credentials, proxies and the selected model."""

    openrouter_api_key: Optional[str] = None
    custom_proxies: list[CustomProxy] = field(default_factory=list)
    default_model: str = "gpt-4"

    def find_proxy(self, proxy_id: str) -> CustomProxy | None:
        for proxy in self.custom_proxies:
            if proxy.id == proxy_id:
                return proxy
        return None

    def add_proxy(self, proxy: CustomProxy) -> None:
        self.custom_proxies.append(proxy)

    def remove_proxy(self, proxy_id: str) -> bool:
        before = len(self.custom_proxies)
        self.custom_proxies = [p for p in self.custom_proxies if p.id != proxy_id]
        return len(self.custom_proxies) != before

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        proxies = []
        for raw in data.get("customProxies") or []:
            if isinstance(raw, dict) and raw.get("id"):
                proxies.append(CustomProxy.from_dict(raw))
        return cls(
            openrouter_api_key=data.get("openRouterApiKey") or None,
            custom_proxies=proxies,
            default_model=data.get("defaultModel") or cls.default_model,
        )

    def to_dict(self) -> dict:
        return {
            "openRouterApiKey": self.openrouter_api_key,
            "customProxies": [p.to_dict() for p in self.custom_proxies],
            "defaultModel": self.default_model,
        }


# ── Sessions ─────────────────────────────────────────────────────


@dataclass
class ActivitySession:
    """A timed ritual derived from the latest actionable suggestion."""

    session_id: Optional[str]  # id of the message the session came from
    title: str
    subtitle: str
    mode: str = "idle"  # "idle" | "running" | "paused" | "completed"
    progress: float = 0.0
    eta_label: str = "00:00"
    duration_minutes: float = 0.0
    started_at: Optional[float] = None  # epoch ms while running
    elapsed_ms: float = 0.0
    has_music: bool = False

    def to_dict(self) -> dict:
        return {
            "sessionId": self.session_id,
            "title": self.title,
            "subtitle": self.subtitle,
            "mode": self.mode,
            "progress": self.progress,
            "etaLabel": self.eta_label,
            "durationMinutes": self.duration_minutes,
            "startedAt": self.started_at,
            "elapsedMs": self.elapsed_ms,
            "hasMusic": self.has_music,
        }
