"""GStreamer audio output.

The ``AudioDevice`` is created once per process and hands out one
``GstSinkHandle`` per loaded track. Handles expose play/pause/stop and a
polled ``is_active()``; no callbacks are delivered, so nothing here needs
a GLib main loop.
"""

from pathlib import Path
from typing import Optional, Protocol, Tuple, Union

import gi
gi.require_version('Gst', '1.0')
from gi.repository import GLib, Gst

import mutagen

from core.exceptions import DeviceInitError, PlayerError
from core.logging import get_logger

logger = get_logger(__name__)


# GStreamer playbin flags
GST_FLAG_AUDIO = 0x02
GST_FLAG_SOFT_VOLUME = 0x10

# Seconds to wait for a pipeline to preroll when opening a file
PREROLL_TIMEOUT = 5


class SinkHandle(Protocol):
    """A playing (or paused) stream owned by the playback session."""

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def stop(self) -> None: ...

    def is_active(self) -> bool: ...

    @property
    def error(self) -> Optional[str]: ...


class AudioOutput(Protocol):
    """Opens files into sink handles."""

    def open(self, path: Path) -> Tuple[SinkHandle, Optional[float]]: ...


def probe_duration(path: Union[str, Path]) -> Optional[float]:
    """
    Read a file's header and report its length in seconds.

    Args:
        path: Audio file

    Returns:
        Duration in seconds, or None when the format does not record one

    Raises:
        PlayerError: If the file cannot be read or is not a recognised audio file
    """
    try:
        with open(path, 'rb') as stream:
            audio = mutagen.File(stream)
    except OSError as e:
        raise PlayerError(f"Cannot read {path}: {e}") from e
    except mutagen.MutagenError as e:
        raise PlayerError(f"Cannot decode {path}: {e}") from e

    if audio is None:
        raise PlayerError(f"Unrecognised audio format: {path}")

    length = getattr(audio.info, 'length', None)
    if not length or length <= 0:
        return None
    return float(length)


def _error_text(message: Gst.Message) -> str:
    err, debug = message.parse_error()
    if debug:
        logger.debug("GStreamer debug: %s", debug)
    return err.message


def _pending_error(playbin: Gst.Element) -> Optional[str]:
    """Pop the first ERROR message queued on the pipeline bus."""
    bus = playbin.get_bus()
    if bus is None:
        return None
    message = bus.pop_filtered(Gst.MessageType.ERROR)
    if message is None:
        return None
    return _error_text(message)

class GstSinkHandle:
    """One audio-only ``playbin`` pipeline."""

    def __init__(self, playbin: Gst.Element, path: Path):
        self._playbin: Optional[Gst.Element] = playbin
        self._path = path
        self._finished = False
        self._error: Optional[str] = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def error(self) -> Optional[str]:
        """Decoder or device error that ended the stream, if any."""
        return self._error

    def play(self) -> None:
        """Start or resume playback."""
        if self._playbin is None:
            raise PlayerError("Sink already stopped")
        ret = self._playbin.set_state(Gst.State.PLAYING)
        if ret == Gst.StateChangeReturn.FAILURE:
            raise PlayerError(f"Failed to start playback: {self._path}")

    def pause(self) -> None:
        """Pause playback."""
        if self._playbin is not None:
            self._playbin.set_state(Gst.State.PAUSED)

    def stop(self) -> None:
        """Stop playback and release the pipeline. Safe to call twice."""
        if self._playbin is None:
            return
        self._playbin.set_state(Gst.State.NULL)
        self._playbin = None
        logger.debug("Released sink for %s", self._path)

    def is_active(self) -> bool:
        """
        Whether the stream still has audio to play.

        Drains the pipeline bus; once EOS or an error has been seen the
        handle stays inactive. After an error, ``error`` holds its message.
        """
        if self._playbin is None:
            return False
        if self._finished:
            return False

        bus = self._playbin.get_bus()
        if bus is None:
            return True

        while True:
            message = bus.pop()
            if message is None:
                break
            if message.type == Gst.MessageType.EOS:
                logger.debug("End of stream: %s", self._path)
                self._finished = True
            elif message.type == Gst.MessageType.ERROR:
                self._error = _error_text(message)
                logger.error("Playback error in %s: %s", self._path, self._error)
                self._finished = True
        return not self._finished


class AudioDevice:
    """
    Process-wide audio output.

    Created once at startup and passed to the playback session.
    """

    def __init__(self, sink_name: str = 'autoaudiosink'):
        """
        Initialise GStreamer and check the required elements exist.

        Args:
            sink_name: GStreamer audio sink element factory name

        Raises:
            DeviceInitError: If GStreamer or the audio sink is unavailable
        """
        try:
            if not Gst.is_initialized():
                Gst.init(None)
        except GLib.Error as e:
            raise DeviceInitError(f"GStreamer initialisation failed: {e}") from e

        for factory in ('playbin', sink_name):
            if Gst.ElementFactory.find(factory) is None:
                raise DeviceInitError(f"GStreamer element '{factory}' is not available")

        self._sink_name = sink_name
        logger.info("Audio output ready (sink=%s)", sink_name)

    @property
    def sink_name(self) -> str:
        return self._sink_name

    def open(self, path: Path) -> Tuple[GstSinkHandle, Optional[float]]:
        """
        Prepare a file for playback.

        Args:
            path: Audio file to open

        Returns:
            Tuple of (paused handle, duration in seconds or None)

        Raises:
            PlayerError: If the file cannot be read, decoded or prerolled
        """
        path = Path(path)
        duration = probe_duration(path)

        playbin = Gst.ElementFactory.make('playbin', None)
        audio_sink = Gst.ElementFactory.make(self._sink_name, None)
        if playbin is None or audio_sink is None:
            raise PlayerError("Failed to create GStreamer pipeline")

        playbin.set_property('flags', GST_FLAG_AUDIO | GST_FLAG_SOFT_VOLUME)
        playbin.set_property('audio-sink', audio_sink)
        playbin.set_property('uri', Gst.filename_to_uri(str(path.resolve())))

        ret = playbin.set_state(Gst.State.PAUSED)
        if ret != Gst.StateChangeReturn.FAILURE:
            # Decode errors surface while prerolling, after set_state returned ASYNC
            ret = playbin.get_state(Gst.SECOND * PREROLL_TIMEOUT)[0]
        if ret == Gst.StateChangeReturn.FAILURE:
            reason = _pending_error(playbin)
            playbin.set_state(Gst.State.NULL)
            raise PlayerError(f"GStreamer could not open {path}: {reason or 'preroll failed'}")

        logger.debug("Opened %s (duration=%s)", path, duration)
        return GstSinkHandle(playbin, path), duration
