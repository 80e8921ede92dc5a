"""Click versus hover mediation for opening event details.

Two layers cooperate:

* ``ItemInteraction`` belongs to one rendered calendar item. In click mode a
  click opens the details at once; in hover mode the pointer must rest on the
  item for ``HOVER_OPEN_DELAY`` seconds, and leaving earlier cancels.
* ``CalendarInteractionController`` is the page-level coordinator. It shows a
  lightweight preview as soon as the pointer enters an item, removes it
  ``PREVIEW_DISMISS_DELAY`` seconds after the pointer leaves, and stops
  reacting to hover once an explicit click or a full open has happened.

Timers come from a scheduler exposing ``call_later(delay, callback)`` that
returns a handle with ``cancel()``. The running asyncio loop is used when no
scheduler is given.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from typing import Optional, Protocol

from entcal.models import Event
from entcal.preferences import InteractionMode, Preferences

logger = logging.getLogger(__name__)

HOVER_OPEN_DELAY = 3.0  # seconds
PREVIEW_DISMISS_DELAY = 1.0  # seconds


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class InteractionState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    OPENED = "opened"


class _Timer:
    """A single owned, cancellable, one-shot timer slot."""

    def __init__(self, scheduler: Optional[Scheduler]) -> None:
        self._scheduler = scheduler
        self._handle: Optional[TimerHandle] = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    def start(self, delay: float, callback: Callable[[], None]) -> None:
        """Cancel whatever is pending, then schedule *callback*."""
        self.cancel()

        def fire() -> None:
            self._handle = None
            callback()

        scheduler = self._scheduler or asyncio.get_running_loop()
        self._handle = scheduler.call_later(delay, fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


# ------------------------------------------------------------------
# Per-item state machine
# ------------------------------------------------------------------

class ItemInteraction:
    """Decides when a single calendar item opens its detail view.

    States: IDLE -> PENDING (hover enter) -> OPENED (timer expiry), or
    PENDING -> IDLE (leave before expiry). A click in click mode goes straight
    to OPENED. Only ``close()`` leaves OPENED.
    """

    def __init__(
        self,
        event: Event,
        preferences: Preferences,
        on_open: Callable[[Event], None],
        scheduler: Optional[Scheduler] = None,
        delay: float = HOVER_OPEN_DELAY,
        on_dispose: Optional[Callable[[ItemInteraction], None]] = None,
    ) -> None:
        self.event = event
        self.preferences = preferences
        self._on_open = on_open
        self._on_dispose = on_dispose
        self._delay = delay
        self._timer = _Timer(scheduler)
        self._state = InteractionState.IDLE
        self._disposed = False

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def mode(self) -> InteractionMode:
        return self.preferences.interaction_mode

    def click(self) -> None:
        if self._disposed or self.mode is not InteractionMode.CLICK:
            return
        self._open()

    def enter(self) -> None:
        if self._disposed or self.mode is not InteractionMode.HOVER:
            return
        if self._state is not InteractionState.IDLE:
            return
        self._state = InteractionState.PENDING
        self._timer.start(self._delay, self._expire)
        logger.debug("Hover started on %r", self.event)

    def leave(self) -> None:
        if self._state is not InteractionState.PENDING:
            return
        self._timer.cancel()
        self._state = InteractionState.IDLE
        logger.debug("Hover abandoned on %r", self.event)

    def close(self) -> None:
        """Reset after the detail view is closed."""
        self._timer.cancel()
        self._state = InteractionState.IDLE

    def dispose(self) -> None:
        """Tear down when the item leaves the view; later signals are ignored."""
        if self._disposed:
            return
        self._timer.cancel()
        self._disposed = True
        if self._on_dispose:
            self._on_dispose(self)

    def _expire(self) -> None:
        if self._disposed or self._state is not InteractionState.PENDING:
            return
        self._open()

    def _open(self) -> None:
        self._state = InteractionState.OPENED
        logger.debug("Opening details for %r", self.event)
        self._on_open(self.event)


# ------------------------------------------------------------------
# Page-level coordination
# ------------------------------------------------------------------

class CalendarInteractionController:
    """Tracks the hovered preview and the opened event for a whole page."""

    def __init__(
        self,
        preferences: Preferences,
        on_open: Optional[Callable[[Event], None]] = None,
        on_preview: Optional[Callable[[Optional[Event]], None]] = None,
        scheduler: Optional[Scheduler] = None,
        open_delay: float = HOVER_OPEN_DELAY,
        dismiss_delay: float = PREVIEW_DISMISS_DELAY,
    ) -> None:
        self.preferences = preferences
        self._on_open = on_open
        self._on_preview = on_preview
        self._scheduler = scheduler
        self._open_delay = open_delay
        self._dismiss_delay = dismiss_delay
        self._open_timer = _Timer(scheduler)
        self._dismiss_timer = _Timer(scheduler)
        self._items: list[ItemInteraction] = []
        self.hovered_event: Optional[Event] = None
        self.selected_event: Optional[Event] = None
        self.click_triggered = False

    @property
    def hover_mode(self) -> bool:
        return self.preferences.interaction_mode is InteractionMode.HOVER

    @property
    def items(self) -> tuple[ItemInteraction, ...]:
        """Items currently on the page."""
        return tuple(self._items)

    def item(self, event: Event) -> ItemInteraction:
        """Create a per-item state machine whose opens land on this page."""
        item = ItemInteraction(
            event,
            self.preferences,
            on_open=self._item_opened,
            scheduler=self._scheduler,
            delay=self._open_delay,
            on_dispose=self._release,
        )
        self._items.append(item)
        return item

    def event_click(self, event: Event) -> None:
        if self.hover_mode:
            return
        self.click_triggered = True
        self._select(event)

    def event_hover(self, event: Optional[Event]) -> None:
        """Pointer entered *event*, or left the current item when None."""
        if not self.hover_mode or self.click_triggered or self.selected_event is not None:
            return

        self._open_timer.cancel()
        self._dismiss_timer.cancel()

        if event is not None:
            self._set_preview(event)
            self._open_timer.start(self._open_delay, lambda: self._select(event))
        else:
            self._dismiss_timer.start(self._dismiss_delay, lambda: self._set_preview(None))

    def close(self) -> None:
        """Close the detail view and reset every flag, items included."""
        self._open_timer.cancel()
        self._dismiss_timer.cancel()
        for item in self._items:
            item.close()
        self.selected_event = None
        self.click_triggered = False
        self._set_preview(None)

    def dispose(self) -> None:
        """Cancel every pending timer; call when the page is torn down."""
        self._open_timer.cancel()
        self._dismiss_timer.cancel()
        for item in list(self._items):
            item.dispose()
        self._items.clear()

    def _release(self, item: ItemInteraction) -> None:
        if item in self._items:
            self._items.remove(item)

    def _item_opened(self, event: Event) -> None:
        if not self.hover_mode:
            self.click_triggered = True
        self._select(event)

    def _select(self, event: Event) -> None:
        self._open_timer.cancel()
        self._dismiss_timer.cancel()
        if self.selected_event is not None:
            # A detail view is already open; never stack a second one.
            return
        self.selected_event = event
        logger.debug("Selected %r (click_triggered=%s)", event, self.click_triggered)
        if self._on_open:
            self._on_open(event)

    def _set_preview(self, event: Optional[Event]) -> None:
        if event is self.hovered_event:
            return
        self.hovered_event = event
        if self._on_preview:
            self._on_preview(event)
