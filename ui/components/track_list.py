"""Track list component - one row per catalog entry."""

from typing import List, Optional, Sequence

import gi
gi.require_version('Gtk', '4.0')
from gi.repository import Gtk, GObject


class TrackList(Gtk.Box):
    """Scrollable list of discovered files; activating a row selects it."""
    
    __gsignals__ = {
        'track-activated': (GObject.SignalFlags.RUN_FIRST, None, (int,)),
    }
    
    def __init__(self):
        super().__init__(orientation=Gtk.Orientation.VERTICAL, spacing=5)
        
        header_label = Gtk.Label(label="Tracks")
        header_label.add_css_class("title-2")
        header_label.set_halign(Gtk.Align.START)
        header_label.set_margin_start(10)
        header_label.set_margin_top(5)
        self.append(header_label)
        
        scrolled = Gtk.ScrolledWindow()
        scrolled.set_policy(Gtk.PolicyType.NEVER, Gtk.PolicyType.AUTOMATIC)
        scrolled.set_vexpand(True)
        
        self.list_box = Gtk.ListBox()
        self.list_box.set_selection_mode(Gtk.SelectionMode.SINGLE)
        self.list_box.set_activate_on_single_click(True)
        self.list_box.connect('row-activated', self._on_row_activated)
        scrolled.set_child(self.list_box)
        self.append(scrolled)
        
        self.placeholder = Gtk.Label(label="No audio files found")
        self.placeholder.add_css_class("dim-label")
        self.list_box.set_placeholder(self.placeholder)
        
        self._rows: List[Gtk.ListBoxRow] = []
        self._current_index: Optional[int] = None
        self.set_vexpand(True)
    
    def set_tracks(self, names: Sequence[str]):
        """Fill the list; called once, the catalog never changes."""
        for row in self._rows:
            self.list_box.remove(row)
        self._rows = []
        
        for name in names:
            label = Gtk.Label(label=name)
            label.set_halign(Gtk.Align.START)
            label.set_margin_start(10)
            label.set_margin_end(10)
            label.set_margin_top(6)
            label.set_margin_bottom(6)
            row = Gtk.ListBoxRow()
            row.set_child(label)
            self.list_box.append(row)
            self._rows.append(row)
    
    def set_current(self, index: Optional[int]):
        """Highlight the loaded track."""
        if index == self._current_index:
            return
        self._current_index = index
        if index is None:
            self.list_box.unselect_all()
        elif 0 <= index < len(self._rows):
            self.list_box.select_row(self._rows[index])
    
    def _on_row_activated(self, list_box, row):
        """Handle row activation (click or Enter)."""
        self.emit('track-activated', row.get_index())
