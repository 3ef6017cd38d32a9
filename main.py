#!/usr/bin/env python3
"""Directory Player - Main entry point."""

import sys

from core.audio_sink import AudioDevice
from core.catalog import build_catalog, extension_predicate
from core.config import get_config
from core.exceptions import CatalogError, ConfigurationError, DeviceInitError
from core.logging import LinuxLogger, get_logger, parse_level
from core.playback_session import EndOfTrackPolicy

logger = get_logger(__name__)


def main():
    """Main entry point."""
    try:
        config = get_config()
    except ConfigurationError as e:
        LinuxLogger()
        logger.critical("%s", e)
        return 1
    
    # Initialize logging (uses config for log directory)
    LinuxLogger(log_dir=config.log_dir, level=parse_level(config.log_level))
    logger.info("Starting, music directory: %s", config.music_root)
    
    try:
        end_policy = EndOfTrackPolicy(config.end_of_track)
        catalog = build_catalog(
            config.music_root,
            extension_predicate(config.audio_extensions),
            sort=config.sort_catalog,
        )
        # The audio device is process-wide and created exactly once
        device = AudioDevice(config.audio_sink)
    except (ConfigurationError, CatalogError, DeviceInitError) as e:
        logger.critical("%s", e)
        return 1
    
    from ui.application import DirPlayerApp
    
    app = DirPlayerApp(config, catalog, device, end_policy)
    return app.run(sys.argv)


if __name__ == '__main__':
    sys.exit(main())
