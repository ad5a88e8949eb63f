"""
Core module for spot-synchronizer.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - logger: Logging system with multiple outputs

Usage:
    from spot_synchronizer.core import (
        Config, load_config,
        setup_logging, get_logger,
        SpotSynchronizerError, ConfigError, SpotifyError
    )
"""

from spot_synchronizer.core.config import (
    Config,
    OutputConfig,
    SpotifyConfig,
    SyncConfig,
    load_config,
)
from spot_synchronizer.core.exceptions import (
    AuthRequiredError,
    ConfigError,
    CoverUploadError,
    DefinitionCorruptError,
    DefinitionError,
    DefinitionNotFoundError,
    ImageError,
    OperationCancelledError,
    PlaylistUnavailableError,
    SpotifyError,
    SpotSynchronizerError,
)
from spot_synchronizer.core.logger import (
    get_logger,
    log_sync_failure,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Config",
    "SpotifyConfig",
    "OutputConfig",
    "SyncConfig",
    "load_config",
    # Exceptions
    "SpotSynchronizerError",
    "ConfigError",
    "SpotifyError",
    "AuthRequiredError",
    "PlaylistUnavailableError",
    "ImageError",
    "CoverUploadError",
    "OperationCancelledError",
    "DefinitionError",
    "DefinitionNotFoundError",
    "DefinitionCorruptError",
    # Logger
    "setup_logging",
    "get_logger",
    "log_sync_failure",
    "shutdown_logging",
]
