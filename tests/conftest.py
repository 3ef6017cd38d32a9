"""Pytest configuration and fixtures."""

import pytest
import tempfile
import shutil
from pathlib import Path

# Mock GStreamer, GTK and D-Bus before imports
import sys
from unittest.mock import MagicMock

# Mock gi.repository
sys.modules['gi'] = MagicMock()
sys.modules['gi.repository'] = MagicMock()
sys.modules['gi.repository.Gst'] = MagicMock()
sys.modules['gi.repository.GLib'] = MagicMock()
sys.modules['gi.repository.Gtk'] = MagicMock()
sys.modules['gi.repository.Adw'] = MagicMock()

# Mock dbus (submodules share the parent mock so attribute access and
# ``import dbus.service`` resolve to the same objects)
_dbus = MagicMock()
sys.modules['dbus'] = _dbus
sys.modules['dbus.service'] = _dbus.service
sys.modules['dbus.exceptions'] = _dbus.exceptions
sys.modules['dbus.mainloop'] = _dbus.mainloop
sys.modules['dbus.mainloop.glib'] = _dbus.mainloop.glib

from core.catalog import Catalog, Track
from tests.support.fakes import FakeClock, FakeOutput


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def mock_config(monkeypatch, temp_dir):
    """Fresh configuration rooted in temporary XDG directories."""
    from core.config import Config

    monkeypatch.setenv('XDG_CONFIG_HOME', str(temp_dir / 'config'))
    monkeypatch.setenv('XDG_DATA_HOME', str(temp_dir / 'data'))
    monkeypatch.setattr(Config, '_instance', None)

    return Config.get_instance()


@pytest.fixture
def catalog():
    """Catalog of three tracks: a.mp3, b.mp3, c.mp3."""
    root = Path('/music')
    return Catalog(root, [Track(root / name) for name in ('a.mp3', 'b.mp3', 'c.mp3')])


@pytest.fixture
def fake_output():
    return FakeOutput()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def music_tree(temp_dir):
    """Directory tree with audio and non-audio files."""
    root = temp_dir / 'music'
    (root / 'album' / 'disc2').mkdir(parents=True)
    (root / 'empty').mkdir()
    for relative in ('b.mp3', 'a.mp3', 'album/02.mp3', 'album/01.mp3',
                     'album/disc2/01.mp3', 'album/cover.jpg', 'notes.txt',
                     'LOUD.MP3', 'album/track.flac'):
        (root / relative).write_bytes(b'\x00')
    return root
