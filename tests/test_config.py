"""Tests for configuration management."""

import pytest
from pathlib import Path
from core.config import Config, get_config
from core.exceptions import ConfigurationError


class TestConfig:
    """Test Config class."""
    
    def test_get_instance(self, mock_config):
        """Test singleton pattern."""
        config1 = get_config()
        config2 = get_config()
        assert config1 is config2
    
    def test_xdg_directories(self, temp_dir, monkeypatch):
        """Test XDG directory resolution."""
        monkeypatch.setenv('XDG_CONFIG_HOME', str(temp_dir / 'config'))
        monkeypatch.setenv('XDG_DATA_HOME', str(temp_dir / 'data'))
        
        # Reset singleton
        monkeypatch.setattr(Config, '_instance', None)
        
        config = get_config()
        assert config.config_dir == temp_dir / 'config' / 'dirplayer'
        assert config.data_dir == temp_dir / 'data' / 'dirplayer'
        assert config.config_file.exists()
    
    def test_defaults(self, mock_config):
        """Test default values."""
        assert mock_config.music_root == Path('./music')
        assert mock_config.audio_extensions == ['mp3']
        assert mock_config.sort_catalog is True
        assert mock_config.audio_sink == 'autoaudiosink'
        assert mock_config.end_of_track == 'stop'
        assert mock_config.refresh_interval_ms == 200
        assert mock_config.mpris_enabled is True
    
    def test_config_get_set(self, mock_config):
        """Test getting and setting config values."""
        mock_config.set('library', 'sort', 'false')
        assert mock_config.get('library', 'sort') == 'false'
        assert mock_config.get_bool('library', 'sort') is False
    
    def test_config_get_list(self, mock_config):
        """Test getting list values."""
        mock_config.set('library', 'extensions', 'mp3, .flac,ogg')
        assert mock_config.audio_extensions == ['mp3', 'flac', 'ogg']
    
    def test_values_persist(self, mock_config, monkeypatch):
        """Test that saved values are read back by a new instance."""
        mock_config.set('library', 'root_dir', '/srv/music')
        monkeypatch.setattr(Config, '_instance', None)
        assert get_config().music_root == Path('/srv/music')
    
    def test_partial_file_keeps_defaults(self, mock_config, monkeypatch):
        """Test that a config file missing sections falls back to defaults."""
        mock_config.config_file.write_text("[playback]\nend_of_track = advance\n")
        monkeypatch.setattr(Config, '_instance', None)
        config = get_config()
        assert config.end_of_track == 'advance'
        assert config.audio_extensions == ['mp3']
    
    def test_invalid_end_of_track(self, mock_config):
        mock_config.set('playback', 'end_of_track', 'shuffle')
        with pytest.raises(ConfigurationError):
            mock_config.end_of_track
    
    def test_invalid_integer(self, mock_config):
        mock_config.set('ui', 'refresh_interval_ms', 'fast')
        with pytest.raises(ConfigurationError):
            mock_config.refresh_interval_ms
    
    def test_refresh_interval_floor(self, mock_config):
        mock_config.set('ui', 'refresh_interval_ms', '1')
        assert mock_config.refresh_interval_ms == 16
    
    def test_config_properties(self, mock_config):
        """Test config convenience properties."""
        assert isinstance(mock_config.music_root, Path)
        assert isinstance(mock_config.log_dir, Path)
        assert mock_config.log_dir.is_dir()
