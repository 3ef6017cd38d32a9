"""GTK application: owns the session, controller and MPRIS service."""

import gi
gi.require_version('Gtk', '4.0')
from gi.repository import Gtk

# Try to use libadwaita if available, otherwise fall back to Gtk.Application
try:
    gi.require_version('Adw', '1')
    from gi.repository import Adw
    USE_ADW = True
except ValueError:
    USE_ADW = False

import dbus

from core.audio_sink import AudioDevice
from core.catalog import Catalog
from core.config import Config
from core.events import EventBus
from core.logging import get_logger
from core.mpris import MPRIS2Service
from core.playback_controller import PlaybackController
from core.playback_session import EndOfTrackPolicy, PlaybackSession
from ui.main_window import MainWindow

logger = get_logger(__name__)


class DirPlayerApp(Adw.Application if USE_ADW else Gtk.Application):
    """Main application class."""
    
    def __init__(self, config: Config, catalog: Catalog, device: AudioDevice,
                 end_policy: EndOfTrackPolicy = EndOfTrackPolicy.STOP):
        super().__init__(
            application_id='com.dirplayer.app',
            flags=0
        )
        self._config = config
        self.event_bus = EventBus()
        self.session = PlaybackSession(catalog, device, end_policy=end_policy)
        self.controller = PlaybackController(
            self.session, self.event_bus, error_timeout=config.error_timeout
        )
        self.mpris = None
        self.window = None
        
        self.connect('activate', self._on_activate)
        self.connect('shutdown', self._on_shutdown)
    
    def _on_activate(self, app):
        """Handle application activation."""
        if not self.window:
            self.window = MainWindow(
                app,
                self.controller,
                self.event_bus,
                refresh_interval_ms=self._config.refresh_interval_ms,
                width=self._config.get_int('ui', 'window_width', 480),
                height=self._config.get_int('ui', 'window_height', 640),
            )
            self._start_mpris()
        self.window.present()
    
    def _start_mpris(self):
        """Publish the MPRIS2 service; playback works without it."""
        if not self._config.mpris_enabled:
            return
        try:
            self.mpris = MPRIS2Service(self.event_bus, self.session.catalog, self.session.snapshot)
        except dbus.exceptions.DBusException as e:
            logger.warning("MPRIS2 unavailable: %s", e)
            return
        self.mpris.on_raise = self.window.present
        self.mpris.on_quit = self.quit
    
    def _on_shutdown(self, app):
        """Release the audio sink before the process exits."""
        logger.info("Shutting down")
        self.controller.shutdown()
