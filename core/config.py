"""Configuration management using XDG Base Directory Specification.

This module provides centralized configuration management following Linux
standards for config and data directories.
"""

import configparser
import os
from pathlib import Path
from typing import Optional

from core.exceptions import ConfigurationError


END_OF_TRACK_POLICIES = ('stop', 'advance', 'repeat')


class Config:
    """
    Configuration manager using XDG Base Directory Specification.
    
    Follows Linux standards:
    - Config: ~/.config/dirplayer/ (or XDG_CONFIG_HOME)
    - Data: ~/.local/share/dirplayer/ (or XDG_DATA_HOME)
    """
    
    _instance: Optional['Config'] = None
    
    def __init__(self) -> None:
        """
        Initialize configuration manager.
        
        Sets up XDG Base Directory paths and loads or creates configuration.
        """
        if Config._instance is not None:
            return
        
        # XDG Base Directory paths
        self.config_home = Path(os.getenv('XDG_CONFIG_HOME', Path.home() / '.config'))
        self.data_home = Path(os.getenv('XDG_DATA_HOME', Path.home() / '.local' / 'share'))
        
        # Application-specific directories
        self.app_name = 'dirplayer'
        self.config_dir = self.config_home / self.app_name
        self.data_dir = self.data_home / self.app_name
        
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        
        self.config_file = self.config_dir / 'config.ini'
        self.config = configparser.ConfigParser()
        
        self._load_config()
        
        Config._instance = self
    
    @classmethod
    def get_instance(cls) -> 'Config':
        """Get the singleton config instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance
    
    def _load_config(self) -> None:
        """Load configuration from file, filling in any missing defaults."""
        self._apply_defaults()
        if self.config_file.exists():
            try:
                self.config.read(self.config_file)
            except configparser.Error as e:
                raise ConfigurationError(f"Invalid config file {self.config_file}: {e}") from e
        else:
            self.save()
    
    def _apply_defaults(self) -> None:
        """Populate default configuration values."""
        self.config['library'] = {
            'root_dir': './music',
            'extensions': 'mp3',
            'sort': 'true',
        }
        
        self.config['audio'] = {
            'sink': 'autoaudiosink',
        }
        
        # What happens when a track runs out: stop, advance or repeat
        self.config['playback'] = {
            'end_of_track': 'stop',
        }
        
        self.config['ui'] = {
            'window_width': '480',
            'window_height': '640',
            'refresh_interval_ms': '200',
            'error_timeout': '5.0',
        }
        
        self.config['logging'] = {
            'level': 'INFO',
        }
        
        self.config['mpris'] = {
            'enabled': 'true',
        }
    
    def save(self) -> None:
        """
        Save configuration to file.
        
        Writes current configuration state to the config file.
        """
        try:
            with open(self.config_file, 'w') as f:
                self.config.write(f)
        except OSError as e:
            from core.logging import get_logger
            logger = get_logger(__name__)
            logger.error("Failed to save config: %s", e, exc_info=True)
    
    def get(self, section: str, key: str, fallback: Optional[str] = None) -> Optional[str]:
        """Get a configuration value."""
        return self.config.get(section, key, fallback=fallback)
    
    def set(self, section: str, key: str, value: str) -> None:
        """
        Set a configuration value.
        
        Args:
            section: Configuration section name
            key: Configuration key name
            value: Value to set (will be converted to string)
        """
        if section not in self.config:
            self.config.add_section(section)
        self.config.set(section, key, str(value))
        self.save()
    
    def get_bool(self, section: str, key: str, fallback: bool = False) -> bool:
        """Get a boolean configuration value."""
        try:
            return self.config.getboolean(section, key, fallback=fallback)
        except ValueError as e:
            raise ConfigurationError(f"[{section}] {key}: {e}") from e
    
    def get_int(self, section: str, key: str, fallback: int = 0) -> int:
        """Get an integer configuration value."""
        try:
            return self.config.getint(section, key, fallback=fallback)
        except ValueError as e:
            raise ConfigurationError(f"[{section}] {key}: {e}") from e
    
    def get_float(self, section: str, key: str, fallback: float = 0.0) -> float:
        """Get a float configuration value."""
        try:
            return self.config.getfloat(section, key, fallback=fallback)
        except ValueError as e:
            raise ConfigurationError(f"[{section}] {key}: {e}") from e
    
    def get_path(self, section: str, key: str, fallback: Optional[Path] = None) -> Optional[Path]:
        """Get a path configuration value (``~`` is expanded)."""
        value = self.get(section, key)
        if value:
            return Path(value).expanduser()
        return fallback
    
    def get_list(self, section: str, key: str, separator: str = ',', fallback: Optional[list[str]] = None) -> list[str]:
        """
        Get a list configuration value.
        
        Args:
            section: Configuration section name
            key: Configuration key name
            separator: Separator character (default: ',')
            fallback: Default value if not found
            
        Returns:
            List of strings
        """
        value = self.get(section, key)
        if value:
            return [item.strip() for item in value.split(separator) if item.strip()]
        return fallback or []
    
    # Convenience properties
    @property
    def music_root(self) -> Path:
        """Get the directory the catalog is built from."""
        return self.get_path('library', 'root_dir', Path('./music'))
    
    @property
    def audio_extensions(self) -> list[str]:
        """Get the file extensions treated as playable (without dots)."""
        return [ext.lstrip('.') for ext in self.get_list('library', 'extensions', fallback=['mp3'])]
    
    @property
    def sort_catalog(self) -> bool:
        """Whether discovered tracks are sorted by path."""
        return self.get_bool('library', 'sort', True)
    
    @property
    def audio_sink(self) -> str:
        """Get the GStreamer sink element name."""
        return self.get('audio', 'sink', 'autoaudiosink')
    
    @property
    def end_of_track(self) -> str:
        """Get the end-of-track policy name."""
        policy = (self.get('playback', 'end_of_track', 'stop') or 'stop').strip().lower()
        if policy not in END_OF_TRACK_POLICIES:
            raise ConfigurationError(
                f"[playback] end_of_track must be one of {', '.join(END_OF_TRACK_POLICIES)}, got {policy!r}"
            )
        return policy
    
    @property
    def refresh_interval_ms(self) -> int:
        """Get the UI refresh interval, never below 16ms."""
        return max(16, self.get_int('ui', 'refresh_interval_ms', 200))
    
    @property
    def error_timeout(self) -> float:
        """Seconds a load error stays visible."""
        return max(0.0, self.get_float('ui', 'error_timeout', 5.0))
    
    @property
    def log_level(self) -> str:
        """Get the configured log level name."""
        return self.get('logging', 'level', 'INFO')
    
    @property
    def mpris_enabled(self) -> bool:
        """Whether the MPRIS2 D-Bus service is published."""
        return self.get_bool('mpris', 'enabled', True)
    
    @property
    def log_dir(self) -> Path:
        """Get log directory."""
        log_dir = self.data_dir / 'logs'
        log_dir.mkdir(parents=True, exist_ok=True)
        return log_dir


# Convenience function
def get_config() -> Config:
    """Get the configuration instance."""
    return Config.get_instance()
