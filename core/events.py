"""Event bus connecting the UI, the MPRIS service and the playback controller."""

from collections import defaultdict
from typing import Any, Callable, DefaultDict, List

from core.logging import get_logger

logger = get_logger(__name__)

Callback = Callable[[Any], None]


class EventBus:
    """Publish-subscribe hub. Publishers and subscribers never reference each other.

    Event flow:
    - The main window and the MPRIS service publish ACTION_* requests
    - PlaybackController handles every request and publishes notifications
    - Nothing but the controller touches the playback session
    """

    # =========================================================================
    # Notifications (published by PlaybackController)
    # =========================================================================

    # {"state": "empty"|"playing"|"paused"|"ended", "index": int?}
    PLAYBACK_STATE_CHANGED = "playback.state_changed"
    # {"index": int?, "name": str?}
    TRACK_CHANGED = "track.changed"
    # {"index": int, "message": str}
    PLAYBACK_ERROR = "playback.error"

    # =========================================================================
    # Requests (handled by PlaybackController)
    # =========================================================================

    ACTION_PLAY_TRACK = "action.play_track"  # {"index": int}
    ACTION_TOGGLE_PAUSE = "action.toggle_pause"
    ACTION_PLAY = "action.play"
    ACTION_PAUSE = "action.pause"
    ACTION_NEXT = "action.next"
    ACTION_PREV = "action.previous"

    def __init__(self):
        self._subscribers: DefaultDict[str, List[Callback]] = defaultdict(list)

    def subscribe(self, event: str, callback: Callback) -> None:
        self._subscribers[event].append(callback)

    def unsubscribe(self, event: str, callback: Callback) -> None:
        """Remove ``callback``; unknown callbacks are ignored."""
        callbacks = self._subscribers.get(event)
        if callbacks and callback in callbacks:
            callbacks.remove(callback)

    def publish(self, event: str, data: Any = None) -> None:
        """
        Deliver ``data`` to every subscriber of ``event``.

        Subscribers may (un)subscribe while being notified; delivery uses
        the list as it was when publishing started. A failing subscriber
        is logged and does not stop delivery to the rest.
        """
        for callback in tuple(self._subscribers.get(event, ())):
            try:
                callback(data)
            except Exception:
                logger.exception("Subscriber for %s failed", event)
