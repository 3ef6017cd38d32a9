"""MPRIS2 (Media Player Remote Interfacing Specification) D-Bus interface.

Publishes the player on the session bus so media keys and desktop shells
can drive it:
- PlayPause, Play, Pause, Next, Previous map onto EventBus actions
- PlaybackStatus, Metadata and Position are read from session snapshots

Seeking is not supported (CanSeek is false).
"""

from typing import Any, Callable, Dict, Optional

import dbus
import dbus.service
from dbus.mainloop.glib import DBusGMainLoop

from core.catalog import Catalog
from core.events import EventBus
from core.logging import get_logger
from core.playback_session import SessionSnapshot, SessionState

logger = get_logger(__name__)


MPRIS2_BUS_NAME = 'org.mpris.MediaPlayer2.dirplayer'
MPRIS2_OBJECT_PATH = '/org/mpris/MediaPlayer2'
MPRIS2_ROOT_INTERFACE = 'org.mpris.MediaPlayer2'
MPRIS2_PLAYER_INTERFACE = 'org.mpris.MediaPlayer2.Player'
PROPERTIES_INTERFACE = 'org.freedesktop.DBus.Properties'

TRACK_ID_PREFIX = '/org/mpris/MediaPlayer2/dirplayer/track/'
NO_TRACK_ID = '/org/mpris/MediaPlayer2/TrackList/NoTrack'

# Seconds -> MPRIS microseconds
USEC = 1_000_000


def playback_status(snapshot: SessionSnapshot) -> str:
    """Map a session state onto an MPRIS PlaybackStatus string."""
    if snapshot.state == SessionState.PLAYING:
        return 'Playing'
    if snapshot.state == SessionState.PAUSED:
        return 'Paused'
    return 'Stopped'


def track_metadata(snapshot: SessionSnapshot, catalog: Catalog) -> Dict[str, Any]:
    """
    Build the MPRIS Metadata map for the loaded track.

    Values are plain Python; ``_to_dbus_metadata`` applies D-Bus types.
    """
    if snapshot.current_index is None:
        return {'mpris:trackid': NO_TRACK_ID}

    track = catalog[snapshot.current_index]
    metadata: Dict[str, Any] = {
        'mpris:trackid': f'{TRACK_ID_PREFIX}{snapshot.current_index}',
        'xesam:title': track.path.stem,
        'xesam:url': track.path.resolve().as_uri(),
    }
    if snapshot.total is not None:
        metadata['mpris:length'] = int(snapshot.total * USEC)
    return metadata


def _to_dbus_metadata(metadata: Dict[str, Any]) -> dbus.Dictionary:
    converted = {}
    for key, value in metadata.items():
        if key == 'mpris:trackid':
            converted[key] = dbus.ObjectPath(value)
        elif key == 'mpris:length':
            converted[key] = dbus.Int64(value)
        else:
            converted[key] = dbus.String(value)
    return dbus.Dictionary(converted, signature='sv')


class MPRIS2Service(dbus.service.Object):
    """Root and Player interfaces on a single object."""

    def __init__(
        self,
        event_bus: EventBus,
        catalog: Catalog,
        snapshot_provider: Callable[[], SessionSnapshot],
        bus: Optional[dbus.Bus] = None,
    ):
        """
        Register the service on the session bus.

        Args:
            event_bus: Bus the actions are published on
            catalog: Track list used for metadata
            snapshot_provider: Returns the current session snapshot
            bus: D-Bus connection (defaults to the session bus)
        """
        DBusGMainLoop(set_as_default=True)
        if bus is None:
            bus = dbus.SessionBus()
        self._bus_name = dbus.service.BusName(MPRIS2_BUS_NAME, bus)
        super().__init__(bus, MPRIS2_OBJECT_PATH)

        self._events = event_bus
        self._catalog = catalog
        self._snapshot = snapshot_provider

        # Callbacks for window management
        self.on_quit: Optional[Callable[[], None]] = None
        self.on_raise: Optional[Callable[[], None]] = None

        self._events.subscribe(EventBus.PLAYBACK_STATE_CHANGED, self._on_state_changed)
        self._events.subscribe(EventBus.TRACK_CHANGED, self._on_state_changed)
        logger.info("MPRIS2 service registered as %s", MPRIS2_BUS_NAME)

    # ============================================================================
    # org.mpris.MediaPlayer2
    # ============================================================================

    @dbus.service.method(MPRIS2_ROOT_INTERFACE, in_signature='', out_signature='')
    def Quit(self):
        """Quit the application."""
        logger.info("MPRIS2: Quit requested")
        if self.on_quit:
            self.on_quit()

    @dbus.service.method(MPRIS2_ROOT_INTERFACE, in_signature='', out_signature='')
    def Raise(self):
        """Raise the application window."""
        logger.debug("MPRIS2: Raise requested")
        if self.on_raise:
            self.on_raise()

    # ============================================================================
    # org.mpris.MediaPlayer2.Player
    # ============================================================================

    @dbus.service.method(MPRIS2_PLAYER_INTERFACE, in_signature='', out_signature='')
    def Next(self):
        logger.info("MPRIS2: Next requested")
        self._events.publish(EventBus.ACTION_NEXT)

    @dbus.service.method(MPRIS2_PLAYER_INTERFACE, in_signature='', out_signature='')
    def Previous(self):
        logger.info("MPRIS2: Previous requested")
        self._events.publish(EventBus.ACTION_PREV)

    @dbus.service.method(MPRIS2_PLAYER_INTERFACE, in_signature='', out_signature='')
    def Pause(self):
        logger.info("MPRIS2: Pause requested")
        self._events.publish(EventBus.ACTION_PAUSE)

    @dbus.service.method(MPRIS2_PLAYER_INTERFACE, in_signature='', out_signature='')
    def PlayPause(self):
        logger.info("MPRIS2: PlayPause requested")
        self._events.publish(EventBus.ACTION_TOGGLE_PAUSE)

    @dbus.service.method(MPRIS2_PLAYER_INTERFACE, in_signature='', out_signature='')
    def Stop(self):
        # No stopped state distinct from paused
        logger.info("MPRIS2: Stop requested")
        self._events.publish(EventBus.ACTION_PAUSE)

    @dbus.service.method(MPRIS2_PLAYER_INTERFACE, in_signature='', out_signature='')
    def Play(self):
        logger.info("MPRIS2: Play requested")
        self._events.publish(EventBus.ACTION_PLAY)

    @dbus.service.method(MPRIS2_PLAYER_INTERFACE, in_signature='x', out_signature='')
    def Seek(self, offset):
        logger.debug("MPRIS2: Seek not supported (offset=%d)", offset)

    @dbus.service.method(MPRIS2_PLAYER_INTERFACE, in_signature='ox', out_signature='')
    def SetPosition(self, track_id, position):
        logger.debug("MPRIS2: SetPosition not supported (%s, %d)", track_id, position)

    @dbus.service.method(MPRIS2_PLAYER_INTERFACE, in_signature='s', out_signature='')
    def OpenUri(self, uri):
        logger.debug("MPRIS2: OpenUri not supported: %s", uri)

    @dbus.service.signal(MPRIS2_PLAYER_INTERFACE, signature='x')
    def Seeked(self, position):
        pass

    # ============================================================================
    # org.freedesktop.DBus.Properties
    # ============================================================================

    @dbus.service.method(PROPERTIES_INTERFACE, in_signature='ss', out_signature='v')
    def Get(self, interface, prop):
        properties = self._properties(interface)
        if prop not in properties:
            raise dbus.exceptions.DBusException(
                f'Unknown property {interface}.{prop}',
                name='org.freedesktop.DBus.Error.InvalidArgs',
            )
        return properties[prop]

    @dbus.service.method(PROPERTIES_INTERFACE, in_signature='s', out_signature='a{sv}')
    def GetAll(self, interface):
        return dbus.Dictionary(self._properties(interface), signature='sv')

    @dbus.service.method(PROPERTIES_INTERFACE, in_signature='ssv', out_signature='')
    def Set(self, interface, prop, value):
        # Volume and rate are fixed
        logger.debug("MPRIS2: Ignoring write to %s.%s", interface, prop)

    @dbus.service.signal(PROPERTIES_INTERFACE, signature='sa{sv}as')
    def PropertiesChanged(self, interface, changed_properties, invalidated_properties):
        pass

    def _properties(self, interface: str) -> Dict[str, Any]:
        if interface == MPRIS2_ROOT_INTERFACE:
            return {
                'CanQuit': dbus.Boolean(True),
                'CanRaise': dbus.Boolean(True),
                'HasTrackList': dbus.Boolean(False),
                'Identity': dbus.String('Directory Player'),
                'SupportedUriSchemes': dbus.Array(['file'], signature='s'),
                'SupportedMimeTypes': dbus.Array(['audio/mpeg'], signature='s'),
            }
        if interface == MPRIS2_PLAYER_INTERFACE:
            snapshot = self._snapshot()
            position = int((snapshot.elapsed or 0.0) * USEC)
            return {
                'PlaybackStatus': dbus.String(playback_status(snapshot)),
                'Rate': dbus.Double(1.0),
                'Metadata': _to_dbus_metadata(track_metadata(snapshot, self._catalog)),
                'Volume': dbus.Double(1.0),
                'Position': dbus.Int64(position),
                'MinimumRate': dbus.Double(1.0),
                'MaximumRate': dbus.Double(1.0),
                'CanGoNext': dbus.Boolean(snapshot.has_next),
                'CanGoPrevious': dbus.Boolean(snapshot.has_previous),
                'CanPlay': dbus.Boolean(len(self._catalog) > 0),
                'CanPause': dbus.Boolean(snapshot.is_loaded),
                'CanSeek': dbus.Boolean(False),
                'CanControl': dbus.Boolean(True),
            }
        return {}

    def _on_state_changed(self, data: Any) -> None:
        snapshot = self._snapshot()
        changed = {
            'PlaybackStatus': dbus.String(playback_status(snapshot)),
            'Metadata': _to_dbus_metadata(track_metadata(snapshot, self._catalog)),
            'CanGoNext': dbus.Boolean(snapshot.has_next),
            'CanGoPrevious': dbus.Boolean(snapshot.has_previous),
            'CanPause': dbus.Boolean(snapshot.is_loaded),
        }
        self.PropertiesChanged(
            MPRIS2_PLAYER_INTERFACE,
            dbus.Dictionary(changed, signature='sv'),
            dbus.Array([], signature='s'),
        )
