"""Playback controller - the single dispatcher from bus actions into the session."""
import time
from typing import Any, Callable, Optional

from core.events import EventBus
from core.exceptions import LoadFailed, NoActiveTrack
from core.logging import get_logger
from core.playback_session import PlaybackSession, SessionSnapshot, SessionState

logger = get_logger(__name__)


class PlaybackController:
    """Subscribes to actions, drives the session, publishes state events.

    Per-track failures never escape: a failed load is logged, kept as a
    transient error message for the UI and published as PLAYBACK_ERROR.
    """

    def __init__(
        self,
        session: PlaybackSession,
        event_bus: EventBus,
        error_timeout: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._session = session
        self._events = event_bus
        self._error_timeout = error_timeout
        self._clock = clock

        self._error_message: Optional[str] = None
        self._error_time: float = 0.0
        self._last_state = session.state
        self._last_index = session.current_index

        self._handlers = {
            EventBus.ACTION_PLAY_TRACK: self._on_action_play_track,
            EventBus.ACTION_TOGGLE_PAUSE: self._on_action_toggle_pause,
            EventBus.ACTION_PLAY: self._on_action_play,
            EventBus.ACTION_PAUSE: self._on_action_pause,
            EventBus.ACTION_NEXT: self._on_action_next,
            EventBus.ACTION_PREV: self._on_action_previous,
        }
        for event, handler in self._handlers.items():
            self._events.subscribe(event, handler)

    @property
    def session(self) -> PlaybackSession:
        return self._session

    @property
    def error_message(self) -> Optional[str]:
        """Most recent load failure, until it times out or a load succeeds."""
        if self._error_message is None:
            return None
        if self._clock() - self._error_time > self._error_timeout:
            self._error_message = None
        return self._error_message

    def tick(self) -> SessionSnapshot:
        """Poll the session for end of track and return a fresh snapshot."""
        self._run(self._session.poll)
        return self._session.snapshot()

    def shutdown(self) -> None:
        """Stop handling actions and release the audio sink before exit."""
        for event, handler in self._handlers.items():
            self._events.unsubscribe(event, handler)
        self._session.close()
        self._publish_changes()

    # ============================================================================
    # Action handlers
    # ============================================================================

    def _on_action_play_track(self, data: Any) -> None:
        index = data.get("index") if isinstance(data, dict) else data
        if (not isinstance(index, int) or isinstance(index, bool)
                or not self._session.catalog.is_valid_index(index)):
            logger.warning("Ignoring play request for invalid index: %r", index)
            return
        self._run(self._session.load, index)

    def _on_action_toggle_pause(self, data: Any) -> None:
        self._run(self._session.toggle_pause)

    def _on_action_play(self, data: Any) -> None:
        state = self._session.state
        if state in (SessionState.PAUSED, SessionState.ENDED):
            self._run(self._session.toggle_pause)
        elif state == SessionState.EMPTY and len(self._session.catalog) > 0:
            self._run(self._session.load, 0)

    def _on_action_pause(self, data: Any) -> None:
        if self._session.state == SessionState.PLAYING:
            self._run(self._session.toggle_pause)

    def _on_action_next(self, data: Any) -> None:
        self._run(self._session.next)

    def _on_action_previous(self, data: Any) -> None:
        self._run(self._session.prev)

    # ============================================================================
    # Internals
    # ============================================================================

    def _run(self, command: Callable[..., Any], *args: Any) -> None:
        """Execute a session command, absorbing per-track errors."""
        try:
            command(*args)
        except LoadFailed as e:
            logger.warning("%s", e)
            name = self._session.catalog[e.index].name
            self._set_error(f"Cannot play {name}: {e.cause}")
            self._events.publish(
                EventBus.PLAYBACK_ERROR, {"index": e.index, "message": self._error_message}
            )
        except NoActiveTrack:
            logger.debug("Transport command ignored: nothing loaded")
        else:
            if self._session.current_index != self._last_index and self._session.current_index is not None:
                self._error_message = None
        self._publish_changes()

    def _set_error(self, message: str) -> None:
        self._error_message = message
        self._error_time = self._clock()

    def _publish_changes(self) -> None:
        state = self._session.state
        index = self._session.current_index
        if index != self._last_index:
            self._last_index = index
            name = self._session.catalog[index].name if index is not None else None
            self._events.publish(EventBus.TRACK_CHANGED, {"index": index, "name": name})
        if state != self._last_state:
            self._last_state = state
            self._events.publish(
                EventBus.PLAYBACK_STATE_CHANGED, {"state": state.value, "index": index}
            )
