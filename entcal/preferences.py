"""User display and interaction preferences."""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum


class InteractionMode(str, Enum):
    """What opens an event's detail view."""

    CLICK = "click"
    HOVER = "hover"


class DisplayMode(str, Enum):
    POPUP = "popup"
    OVERLAY = "overlay"
    FULLPAGE = "fullpage"


class BackgroundMode(str, Enum):
    IMAGE = "image"
    WHITE = "white"
    BLUR = "blur"


@dataclass(frozen=True)
class Preferences:
    """A read-only snapshot of a user's settings.

    Handed explicitly to whatever needs it; nothing here is global.
    """

    interaction_mode: InteractionMode = InteractionMode.CLICK
    display_mode: DisplayMode = DisplayMode.POPUP
    background_mode: BackgroundMode = BackgroundMode.IMAGE
    overlay_opacity: int = 50  # percent
    show_past_events: bool = False

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "overlay_opacity", int(self.overlay_opacity))
        except (TypeError, ValueError):
            raise ValueError(f"overlay_opacity must be an integer, got {self.overlay_opacity!r}")
        # Accept plain strings so values read from JSON need no pre-processing.
        object.__setattr__(self, "interaction_mode", InteractionMode(self.interaction_mode))
        object.__setattr__(self, "display_mode", DisplayMode(self.display_mode))
        object.__setattr__(self, "background_mode", BackgroundMode(self.background_mode))
        if not 0 <= self.overlay_opacity <= 100:
            raise ValueError(f"overlay_opacity must be within 0-100, got {self.overlay_opacity}")

    @property
    def hover_opens_details(self) -> bool:
        return self.interaction_mode is InteractionMode.HOVER

    def to_dict(self) -> dict:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            data[f.name] = value.value if isinstance(value, Enum) else value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Preferences:
        """Build from a stored row, ignoring unrelated columns.

        Raises:
            ValueError: on an unknown mode or out-of-range opacity.
        """
        known = {f.name for f in fields(cls)}
        # The hosted table prefixes the interaction settings with "event_".
        aliases = {
            "event_interaction_mode": "interaction_mode",
            "event_display_mode": "display_mode",
            "event_background_mode": "background_mode",
        }
        kwargs = {}
        for key, value in data.items():
            key = aliases.get(key, key)
            if key in known:
                kwargs[key] = value
        return cls(**kwargs)
