"""
Configuration management for spot-synchronizer.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml.

The configuration file contains:
    - Spotify application credentials (client_id, optional client_secret)
    - OAuth redirect URI and token cache location
    - Output directory for log files
    - Synchronization tuning: thread count, cover upload retry bound,
      cover readiness polling interval and attempts

Configuration File Location:
    The config.yaml file is read from the current working directory
    unless an explicit path is given.

Environment Overrides:
    A .env file in the working directory is loaded with python-dotenv.
    SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET and SPOTIFY_REDIRECT_URI take
    precedence over the values in config.yaml, so credentials do not have
    to be stored in the file.

Example config.yaml:
    spotify:
      client_id: "your_client_id_here"
      client_secret: null   # Optional: omit to use the PKCE flow
      redirect_uri: "http://127.0.0.1:8888/callback"
      cache_path: "~/.cache/spot-synchronizer/token.json"

    output:
      directory: "~/.spot-synchronizer"

    sync:
      threads: 4
      upload_retry_delay: 0.5
      upload_max_attempts: 20
      cover_poll_interval: 0.5
      cover_poll_attempts: 5
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from spot_synchronizer.core.exceptions import ConfigError


# Default configuration file name (in current working directory)
CONFIG_FILENAME = "config.yaml"

DEFAULT_REDIRECT_URI = "http://127.0.0.1:8888/callback"
DEFAULT_CACHE_PATH = "~/.cache/spot-synchronizer/token.json"

# Environment variables that override the spotify section
ENV_OVERRIDES = {
    "SPOTIFY_CLIENT_ID": "client_id",
    "SPOTIFY_CLIENT_SECRET": "client_secret",
    "SPOTIFY_REDIRECT_URI": "redirect_uri",
}


@dataclass(frozen=True)
class SpotifyConfig:
    """
    Spotify application configuration.

    Credentials are obtained from the Spotify Developer Dashboard:
    https://developer.spotify.com/dashboard

    Attributes:
        client_id: The Spotify application client ID.
        client_secret: The client secret, or None to authenticate with
                       the PKCE flow (no secret stored on disk).
        redirect_uri: OAuth redirect URI registered for the application.
        cache_path: File where spotipy caches the access/refresh token.
    """
    client_id: str
    client_secret: str | None
    redirect_uri: str
    cache_path: Path


@dataclass(frozen=True)
class OutputConfig:
    """
    Output directory configuration.

    Attributes:
        directory: Absolute path of the directory holding the logs/ folder.
                   Path expansion is performed (~ is expanded to home directory).
    """
    directory: Path


@dataclass(frozen=True)
class SyncConfig:
    """
    Synchronization behavior configuration.

    Attributes:
        threads: Worker threads for independent fetches (playlist tracks,
                 id resolution during discovery). Default: 4.
        upload_retry_delay: Fixed delay in seconds between cover upload
                            attempts. Default: 0.5.
        upload_max_attempts: Upper bound on cover upload attempts. Default: 20.
        cover_poll_interval: Fixed delay in seconds between cover readiness
                             polls. Default: 0.5.
        cover_poll_attempts: Number of readiness polls before giving up
                             on the cover URL. Default: 5.
    """
    threads: int = 4
    upload_retry_delay: float = 0.5
    upload_max_attempts: int = 20
    cover_poll_interval: float = 0.5
    cover_poll_attempts: int = 5


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable (frozen dataclass).

    Attributes:
        spotify: Spotify application settings.
        output: Output directory settings.
        sync: Synchronization settings.
    """
    spotify: SpotifyConfig
    output: OutputConfig
    sync: SyncConfig


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in current working directory.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If the config file is not found, has invalid YAML syntax,
                     is missing required fields, or contains invalid values.

    Behavior:
        1. Load .env (if present) into the process environment
        2. Locate config file (explicit path or CWD/config.yaml)
        3. Read and parse YAML content
        4. Validate structure (required sections exist)
        5. Apply environment overrides to the spotify section
        6. Parse each section, applying defaults
        7. Create and return frozen Config object
    """
    load_dotenv()

    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    if not config_path.exists():
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except IOError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    _validate_config(raw_config)

    spotify_section = _apply_env_overrides(raw_config["spotify"])

    return Config(
        spotify=_parse_spotify_config(spotify_section),
        output=_parse_output_config(raw_config["output"]),
        sync=_parse_sync_config(raw_config.get("sync"))
    )


def _validate_config(raw_config: dict[str, Any]) -> None:
    """
    Check the configuration has all required sections as dictionaries.

    Raises:
        ConfigError: If a section is missing or not a mapping.
    """
    required_sections = ["spotify", "output"]

    for section in required_sections:
        if section not in raw_config:
            raise ConfigError(
                f"Missing required section: '{section}'",
                details={"missing_section": section}
            )

        if not isinstance(raw_config[section], dict):
            raise ConfigError(
                f"Section '{section}' must be a dictionary",
                details={"section": section}
            )

    sync_section = raw_config.get("sync")
    if sync_section is not None and not isinstance(sync_section, dict):
        raise ConfigError(
            "Section 'sync' must be a dictionary",
            details={"section": "sync"}
        )


def _apply_env_overrides(spotify_section: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of the spotify section with environment values applied."""
    merged = dict(spotify_section)
    for env_var, key in ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value:
            merged[key] = value
    return merged


def _parse_spotify_config(spotify_section: dict[str, Any]) -> SpotifyConfig:
    """
    Parse and validate the Spotify configuration section.

    Args:
        spotify_section: The 'spotify' section (with env overrides applied).

    Returns:
        SpotifyConfig: Validated Spotify settings.

    Raises:
        ConfigError: If client_id is missing or any field has the wrong type.
    """
    client_id = spotify_section.get("client_id", "")
    client_secret = spotify_section.get("client_secret")
    redirect_uri = spotify_section.get("redirect_uri") or DEFAULT_REDIRECT_URI
    cache_path = spotify_section.get("cache_path") or DEFAULT_CACHE_PATH

    if not isinstance(client_id, str) or not client_id.strip():
        raise ConfigError(
            "'spotify.client_id' must be a non-empty string",
            details={"field": "spotify.client_id"}
        )

    if client_secret is not None:
        if not isinstance(client_secret, str):
            raise ConfigError(
                "'spotify.client_secret' must be a string or null",
                details={"field": "spotify.client_secret"}
            )
        # Empty string means "use PKCE" just like null
        client_secret = client_secret.strip() or None

    if not isinstance(redirect_uri, str):
        raise ConfigError(
            "'spotify.redirect_uri' must be a string",
            details={"field": "spotify.redirect_uri"}
        )

    if not isinstance(cache_path, str):
        raise ConfigError(
            "'spotify.cache_path' must be a string path",
            details={"field": "spotify.cache_path"}
        )

    return SpotifyConfig(
        client_id=client_id.strip(),
        client_secret=client_secret,
        redirect_uri=redirect_uri.strip(),
        cache_path=Path(cache_path.strip()).expanduser().resolve()
    )


def _parse_output_config(output_section: dict[str, Any]) -> OutputConfig:
    """
    Parse and validate the output configuration section.

    Expands ~ to home directory and converts to absolute Path.
    Does NOT create the directory (setup_logging does that).

    Raises:
        ConfigError: If directory is missing or empty.
    """
    directory = output_section.get("directory", "")

    if not isinstance(directory, str) or not directory.strip():
        raise ConfigError(
            "'output.directory' must be a non-empty string",
            details={"field": "output.directory"}
        )

    return OutputConfig(directory=Path(directory.strip()).expanduser().resolve())


def _parse_sync_config(sync_section: dict[str, Any] | None) -> SyncConfig:
    """
    Parse and validate the sync configuration section.

    Applies defaults if section is missing or fields are not specified.

    Args:
        sync_section: The 'sync' section from config.yaml, or None.

    Returns:
        SyncConfig: Validated configuration with defaults applied.

    Raises:
        ConfigError: If a count is not a positive integer or a delay
                     is not a non-negative number.
    """
    defaults = SyncConfig()
    if sync_section is None:
        return defaults

    values: dict[str, Any] = {}

    for field_name in ("threads", "upload_max_attempts", "cover_poll_attempts"):
        raw = sync_section.get(field_name)
        if raw is None:
            continue
        # bool is a subclass of int; "threads: yes" is a mistake, not 1
        if isinstance(raw, bool) or not isinstance(raw, int) or raw < 1:
            raise ConfigError(
                f"'sync.{field_name}' must be a positive integer",
                details={"field": f"sync.{field_name}", "value": raw}
            )
        values[field_name] = raw

    for field_name in ("upload_retry_delay", "cover_poll_interval"):
        raw = sync_section.get(field_name)
        if raw is None:
            continue
        if isinstance(raw, bool) or not isinstance(raw, (int, float)) or raw < 0:
            raise ConfigError(
                f"'sync.{field_name}' must be a non-negative number of seconds",
                details={"field": f"sync.{field_name}", "value": raw}
            )
        values[field_name] = float(raw)

    return SyncConfig(
        threads=values.get("threads", defaults.threads),
        upload_retry_delay=values.get("upload_retry_delay", defaults.upload_retry_delay),
        upload_max_attempts=values.get("upload_max_attempts", defaults.upload_max_attempts),
        cover_poll_interval=values.get("cover_poll_interval", defaults.cover_poll_interval),
        cover_poll_attempts=values.get("cover_poll_attempts", defaults.cover_poll_attempts)
    )
