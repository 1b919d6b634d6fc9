"""Static catalog of bundled audio tracks, used to back music suggestions."""

from dataclasses import dataclass

from .core import MusicSuggestion


@dataclass(frozen=True)
class Track:
    id: str
    title: str
    category: str  # "grounding" | "lofi" | "focus" | "uplift" | "night"
    mood: tuple[str, ...]
    tags: tuple[str, ...]
    url: str
    length: int  # seconds


TRACKS = [
    Track("ground_pad_60", "Grounding Pad (60 BPM)", "grounding", ("calm", "centered"),
          ("breathwork", "reset", "relax"), "/audio/tunetank.com_831_ocean-breeze_by_enrize.mp3", 90),
    Track("slow_air_glide", "Slow Air Glide", "grounding", ("calm",),
          ("breath", "soothing"), "/audio/tunetank.com_5823_science-research_by_decibel.mp3", 120),
    Track("lofi_soft_keys_1", "Soft Keys Lofi Loop", "lofi", ("calm", "comfort"),
          ("relax", "study"), "/audio/tunetank.com_5808_coffee-time_by_pure.mp3", 75),
    Track("lofi_midnight", "Midnight Window", "lofi", ("calm", "reflective"),
          ("journaling", "night"), "/audio/tunetank.com_5937_calm-lake_by_finval.mp3", 95),
    Track("focus_brown_noise", "Deep Focus (Brown Noise)", "focus", ("focus",),
          ("work", "deepfocus", "noise"), "/audio/tunetank.com_3231_morning-fog_by_finval.mp3", 300),
    Track("pulse_focus_80", "Pulse Loop (80 BPM)", "focus", ("focus", "steady"),
          ("micro-reset", "flow"), "/audio/tunetank.com_202_new-opportunities_by_motion-productions.mp3", 120),
    Track("uplift_chimes", "Uplift Chimes", "uplift", ("energize", "fresh"),
          ("reset", "bounce"), "/audio/tunetank.com_4109_good-morning_by_rocknstock.mp3", 60),
    Track("bright_shift", "Bright Shift", "uplift", ("light", "positive"),
          ("reward", "break"), "/audio/tunetank.com_1218_indie-music_by_rocknstock.mp3", 70),
    Track("deep_mono_pad", "Deep Mono Pad", "night", ("sleep", "relax"),
          ("low", "warm"), "/audio/tunetank.com_6449_good-night_by_ostin.mp3", 150),
    Track("dream_oscillations", "Dream Oscillations", "night", ("dreamy", "soft"),
          ("night", "dream"), "/audio/tunetank.com_6705_night-city_by_musicstockproduction.mp3", 160),
]

MOOD_ALIASES = {
    "happy": ["light", "positive", "energize", "fresh"],
    "sad": ["calm", "comfort", "relax", "grounding"],
    "angry": ["calm", "centered", "grounding"],
    "anxious": ["calm", "centered", "focus", "relax"],
    "calm": ["calm", "night", "comfort"],
    "energetic": ["energize", "focus", "steady"],
    "contemplative": ["reflective", "dreamy", "soft", "lofi"],
    "joyful": ["light", "positive", "energize"],
    "melancholy": ["dreamy", "soft", "night", "calm"],
    "neutral": ["calm", "focus", "light"],
}

CATEGORY_ORDER = ["grounding", "lofi", "focus", "uplift", "night"]


def format_length(seconds: int) -> str:
    """90 -> "1.5 min", 120 -> "2 min", 45 -> "45s"."""
    if seconds >= 60:
        minutes = seconds / 60
        return f"{minutes:.0f} min" if minutes.is_integer() else f"{minutes:.1f} min"
    return f"{seconds}s"


def track_suggestions(mood: str | None, limit: int = 1) -> list[MusicSuggestion]:
    """Return up to ``limit`` music suggestions that fit ``mood``.

    Tracks whose mood, tags or category match the mood (or one of its
    aliases) come first; the rest of the catalog follows in category order.
    """
    mood = (mood or "neutral").lower()
    wanted = {mood, *MOOD_ALIASES.get(mood, [])}

    prioritized = [
        t for t in TRACKS
        if wanted.intersection(t.mood) or wanted.intersection(t.tags) or t.category in wanted
    ]
    fallbacks = [t for category in CATEGORY_ORDER for t in TRACKS if t.category == category]

    seen = set()
    selections = []
    for track in prioritized + fallbacks:
        if track.id in seen:
            continue
        seen.add(track.id)
        if len(selections) >= limit:
            break
        selections.append(MusicSuggestion(
            title=track.title,
            subtitle=f"{track.category.capitalize()} • {format_length(track.length)}",
            link=track.url,
            preview_url=track.url,
            mood=track.mood[0],
        ))
    return selections
