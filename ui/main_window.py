"""Main application window: track list, transport controls, status line."""

from typing import Optional

import gi
gi.require_version('Gtk', '4.0')
gi.require_version('GLib', '2.0')
from gi.repository import Gtk, GLib

from core.events import EventBus
from core.logging import get_logger
from core.playback_controller import PlaybackController
from ui.components.player_controls import PlayerControls
from ui.components.track_list import TrackList
from ui.presenter import present_controls

logger = get_logger(__name__)


# Window defaults
DEFAULT_WINDOW_WIDTH = 480
DEFAULT_WINDOW_HEIGHT = 640
DEFAULT_REFRESH_INTERVAL = 200


class MainWindow(Gtk.ApplicationWindow):
    """
    Renders session snapshots and publishes user commands.

    The window never touches the session: commands go out as EventBus
    actions and state comes back through ``PlaybackController.tick``.
    """

    def __init__(
        self,
        app: Gtk.Application,
        controller: PlaybackController,
        event_bus: EventBus,
        refresh_interval_ms: int = DEFAULT_REFRESH_INTERVAL,
        width: int = DEFAULT_WINDOW_WIDTH,
        height: int = DEFAULT_WINDOW_HEIGHT,
    ):
        super().__init__(application=app)
        self.set_title("Directory Player")
        self.set_default_size(width, height)

        self._controller = controller
        self._events = event_bus
        self._tick_id: Optional[int] = None

        self._create_ui()
        self.track_list.set_tracks(controller.session.catalog.names)

        skipped = len(controller.session.catalog.warnings)
        self._idle_status = f"{skipped} folder(s) could not be read" if skipped else ""

        self._on_tick()
        self._tick_id = GLib.timeout_add(refresh_interval_ms, self._on_tick)
        self.connect('close-request', self._on_close)

    def _create_ui(self):
        """Create the user interface."""
        main_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=0)
        self.set_child(main_box)

        self.track_list = TrackList()
        self.track_list.connect('track-activated', self._on_track_activated)
        main_box.append(self.track_list)

        main_box.append(Gtk.Separator(orientation=Gtk.Orientation.HORIZONTAL))

        self.player_controls = PlayerControls()
        self.player_controls.connect('toggle-pause-clicked', lambda w: self._events.publish(EventBus.ACTION_TOGGLE_PAUSE))
        self.player_controls.connect('next-clicked', lambda w: self._events.publish(EventBus.ACTION_NEXT))
        self.player_controls.connect('prev-clicked', lambda w: self._events.publish(EventBus.ACTION_PREV))
        main_box.append(self.player_controls)

        self.status_label = Gtk.Label()
        self.status_label.add_css_class("dim-label")
        self.status_label.set_margin_bottom(5)
        self.status_label.set_wrap(True)
        main_box.append(self.status_label)

    def _on_track_activated(self, track_list, index: int):
        """Handle a click on a track row."""
        self._events.publish(EventBus.ACTION_PLAY_TRACK, {"index": index})
        self._on_tick()

    def _on_tick(self) -> bool:
        """Poll the session and repaint (GLib timeout callback)."""
        snapshot = self._controller.tick()
        self.track_list.set_current(snapshot.current_index)
        self.player_controls.update(present_controls(snapshot))
        self.status_label.set_text(self._controller.error_message or self._idle_status)
        return True

    def _on_close(self, window) -> bool:
        """Stop the refresh timer; the application releases audio on shutdown."""
        if self._tick_id is not None:
            GLib.source_remove(self._tick_id)
            self._tick_id = None
        return False
