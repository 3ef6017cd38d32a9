"""Player controls component - pause/resume, next/prev, progress."""

import gi
gi.require_version('Gtk', '4.0')
gi.require_version('Pango', '1.0')
from gi.repository import Gtk, GObject, Pango

from ui.presenter import ControlsView


class PlayerControls(Gtk.Box):
    """Transport buttons and the progress bar for the loaded track."""
    
    __gsignals__ = {
        'toggle-pause-clicked': (GObject.SignalFlags.RUN_FIRST, None, ()),
        'next-clicked': (GObject.SignalFlags.RUN_FIRST, None, ()),
        'prev-clicked': (GObject.SignalFlags.RUN_FIRST, None, ()),
    }
    
    def __init__(self):
        super().__init__(orientation=Gtk.Orientation.VERTICAL, spacing=10)
        self.set_margin_top(10)
        self.set_margin_bottom(10)
        self.set_margin_start(10)
        self.set_margin_end(10)
        
        self.title_label = Gtk.Label()
        self.title_label.add_css_class("title-4")
        self.title_label.set_ellipsize(Pango.EllipsizeMode.END)
        self.append(self.title_label)
        
        # Progress bar; text carries the elapsed/total time
        self.progress_bar = Gtk.ProgressBar()
        self.progress_bar.set_show_text(True)
        self.progress_bar.set_hexpand(True)
        self.append(self.progress_bar)
        
        controls_box = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=10)
        controls_box.set_halign(Gtk.Align.CENTER)
        
        self.prev_button = Gtk.Button(label="⏮ Prev")
        self.prev_button.connect('clicked', lambda btn: self.emit('prev-clicked'))
        controls_box.append(self.prev_button)
        
        self.pause_button = Gtk.Button()
        self.pause_button.connect('clicked', lambda btn: self.emit('toggle-pause-clicked'))
        controls_box.append(self.pause_button)
        
        self.next_button = Gtk.Button(label="⏭ Next")
        self.next_button.connect('clicked', lambda btn: self.emit('next-clicked'))
        controls_box.append(self.next_button)
        
        self.append(controls_box)
        self.set_visible(False)
    
    def update(self, view: ControlsView):
        """Render one refresh tick."""
        self.set_visible(view.visible)
        if not view.visible:
            return
        
        self.title_label.set_text(view.title)
        self.pause_button.set_label(view.pause_label)
        self.prev_button.set_sensitive(view.can_prev)
        self.next_button.set_sensitive(view.can_next)
        
        if view.progress is None:
            self.progress_bar.pulse()
        else:
            self.progress_bar.set_fraction(view.progress)
        self.progress_bar.set_text(view.time_text)
