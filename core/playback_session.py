"""Playback session: the transport state machine.

The session owns at most one sink handle and derives elapsed time from a
monotonic clock instead of asking the audio backend. Elapsed time is the
sum of finished playback epochs (``accumulated``) plus the running epoch
(``now - reference_start``); pausing folds the running epoch into the
accumulated value so resuming continues from where playback stopped.

States::

    EMPTY --load--> PLAYING <--toggle_pause--> PAUSED
                       |
                     poll (stream finished)
                       v
                     ENDED --toggle_pause--> PLAYING (replay)

``load`` is valid from every state and always stops the previous handle
before opening the next one.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from core.audio_sink import AudioOutput, SinkHandle
from core.catalog import Catalog
from core.exceptions import LoadFailed, NoActiveTrack, PlayerError
from core.logging import get_logger

logger = get_logger(__name__)


class SessionState(Enum):
    """State machine for the playback session."""

    EMPTY = "empty"  # Nothing loaded
    PLAYING = "playing"  # Track loaded and running
    PAUSED = "paused"  # Track loaded, clock frozen
    ENDED = "ended"  # Track ran out, clock frozen


class EndOfTrackPolicy(Enum):
    """What ``poll`` does once the current track has finished."""

    STOP = "stop"
    ADVANCE = "advance"
    REPEAT = "repeat"


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of the session for rendering."""

    track_names: Tuple[str, ...]
    current_index: Optional[int]
    state: SessionState
    elapsed: Optional[float]
    total: Optional[float]

    @property
    def is_loaded(self) -> bool:
        return self.current_index is not None

    @property
    def is_paused(self) -> bool:
        return self.state == SessionState.PAUSED

    @property
    def current_name(self) -> Optional[str]:
        if self.current_index is None:
            return None
        return self.track_names[self.current_index]

    @property
    def progress(self) -> Optional[float]:
        """Elapsed/total ratio in [0, 1], or None when total is unknown."""
        if self.elapsed is None or not self.total:
            return None
        return min(1.0, max(0.0, self.elapsed / self.total))

    @property
    def has_previous(self) -> bool:
        return self.current_index is not None and self.current_index > 0

    @property
    def has_next(self) -> bool:
        return self.current_index is not None and self.current_index + 1 < len(self.track_names)


class PlaybackSession:
    """Owns the active sink and keeps transport commands consistent with it."""

    def __init__(
        self,
        catalog: Catalog,
        output: AudioOutput,
        clock: Callable[[], float] = time.monotonic,
        end_policy: EndOfTrackPolicy = EndOfTrackPolicy.STOP,
    ):
        """
        Create an empty session.

        Args:
            catalog: Tracks addressable by index (never modified)
            output: Audio device used to open tracks
            clock: Monotonic time source in seconds
            end_policy: Behaviour once a track has played to the end
        """
        self._catalog = catalog
        self._output = output
        self._clock = clock
        self.end_policy = end_policy

        self._handle: Optional[SinkHandle] = None
        self._current_index: Optional[int] = None
        self._state = SessionState.EMPTY
        self._total: Optional[float] = None
        self._reference_start: Optional[float] = None
        self._accumulated: float = 0.0

    # ============================================================================
    # Read-only state
    # ============================================================================

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current_index(self) -> Optional[int]:
        return self._current_index

    @property
    def is_paused(self) -> bool:
        return self._state == SessionState.PAUSED

    @property
    def total(self) -> Optional[float]:
        return self._total

    def elapsed(self) -> Optional[float]:
        """
        Playback time of the loaded track in seconds.

        Returns:
            Elapsed seconds clamped to [0, total], or None when nothing is loaded
        """
        if self._state == SessionState.EMPTY:
            return None

        elapsed = self._accumulated
        if self._reference_start is not None:
            elapsed += self._clock() - self._reference_start
        return self._clamp(elapsed)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            track_names=self._catalog.names,
            current_index=self._current_index,
            state=self._state,
            elapsed=self.elapsed(),
            total=self._total,
        )

    # ============================================================================
    # Transport commands
    # ============================================================================

    def load(self, index: int) -> None:
        """
        Stop whatever is playing and start the track at ``index``.

        Args:
            index: Catalog index

        Raises:
            IndexError: If ``index`` is outside the catalog (state untouched)
            LoadFailed: If the track cannot be opened or started; the
                session is left EMPTY
        """
        if not self._catalog.is_valid_index(index):
            raise IndexError(f"Track index {index} out of range (catalog has {len(self._catalog)})")

        self._release()

        track = self._catalog[index]
        handle: Optional[SinkHandle] = None
        try:
            handle, total = self._output.open(track.path)
            handle.play()
        except (PlayerError, OSError) as e:
            if handle is not None:
                handle.stop()
            logger.warning("Could not play %s: %s", track.path, e)
            raise LoadFailed(index, e) from e

        self._handle = handle
        self._current_index = index
        self._state = SessionState.PLAYING
        self._total = total
        self._accumulated = 0.0
        self._reference_start = self._clock()
        logger.info("Playing [%d] %s (duration=%s)", index, track.name, total)

    select_track = load

    def toggle_pause(self) -> None:
        """
        Pause a playing track, resume a paused one, replay an ended one.

        Raises:
            NoActiveTrack: If nothing is loaded (state untouched)
            LoadFailed: If replaying an ended track or resuming a paused one
                fails; the session is left EMPTY
        """
        if self._state == SessionState.EMPTY:
            raise NoActiveTrack()

        if self._state == SessionState.ENDED:
            self.load(self._current_index)
            return

        now = self._clock()
        if self._state == SessionState.PLAYING:
            self._handle.pause()
            self._accumulated += now - self._reference_start
            self._reference_start = None
            self._state = SessionState.PAUSED
            logger.debug("Paused at %.2fs", self._accumulated)
        else:
            try:
                self._handle.play()
            except PlayerError as e:
                index = self._current_index
                logger.warning("Could not resume [%d]: %s", index, e)
                self._release()
                raise LoadFailed(index, e) from e
            self._reference_start = now
            self._state = SessionState.PLAYING
            logger.debug("Resumed at %.2fs", self._accumulated)

    def next(self) -> bool:
        """
        Load the following track.

        Returns:
            True if a track was loaded, False when already at the last one
            or nothing is loaded
        """
        if self._current_index is None or not self._catalog.is_valid_index(self._current_index + 1):
            return False
        self.load(self._current_index + 1)
        return True

    def prev(self) -> bool:
        """
        Load the preceding track.

        Returns:
            True if a track was loaded, False at index 0 or when nothing is loaded
        """
        if self._current_index is None or self._current_index == 0:
            return False
        self.load(self._current_index - 1)
        return True

    def poll(self) -> bool:
        """
        Check whether the playing track has finished and apply the end policy.

        Call periodically; the audio backend sends no completion signal.

        Returns:
            True if the session changed state

        Raises:
            LoadFailed: If the stream stopped on a decode or device error;
                the session is left EMPTY
        """
        if self._state != SessionState.PLAYING or self._handle.is_active():
            return False

        if self._handle.error is not None:
            index = self._current_index
            cause = PlayerError(self._handle.error)
            self._release()
            raise LoadFailed(index, cause)

        self._accumulated = self._total if self._total is not None else self.elapsed()
        self._reference_start = None
        self._state = SessionState.ENDED
        logger.info("Finished [%d]", self._current_index)

        if self.end_policy == EndOfTrackPolicy.ADVANCE:
            self.next()
        elif self.end_policy == EndOfTrackPolicy.REPEAT:
            self.load(self._current_index)
        return True

    def close(self) -> None:
        """Stop playback and release the sink."""
        self._release()

    # ============================================================================
    # Internals
    # ============================================================================

    def _release(self) -> None:
        """Stop and drop the active handle, returning to EMPTY."""
        handle = self._handle
        self._handle = None
        self._current_index = None
        self._state = SessionState.EMPTY
        self._total = None
        self._accumulated = 0.0
        self._reference_start = None
        if handle is not None:
            handle.stop()

    def _clamp(self, seconds: float) -> float:
        seconds = max(0.0, seconds)
        if self._total is not None:
            seconds = min(seconds, self._total)
        return seconds
