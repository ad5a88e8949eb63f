"""
spot-synchronizer: Spotify playlists built from other playlists.

A synchronized playlist is an ordinary Spotify playlist whose track list
is computed from three groups of source playlists:

    included   Tracks are collected from these, in order, without duplicates
    excluded   Tracks found here are removed
    required   If any are given, only tracks found in one of them are kept

The rule itself is stored on Spotify, inside the playlist: the description
is set to the marker "@synchronized" and the rule is written as JSON into
the comment of a tiny JPEG uploaded as the playlist cover. Nothing is kept
on the local machine except the OAuth token cache and log files.

Architecture:
    Create:
        - Create the playlist with the marker description
        - Upload the cover carrying the rule (bounded retry)
        - Wait for Spotify to finish processing the cover
        - Compute and add the tracks

    Discover:
        - List the user's own playlists
        - Keep those with the marker and a cover
        - Download each cover and decode the rule

    Resynchronize:
        - Recompute the track list from the current sources
        - Replace the playlist's tracks wholesale

Modules:
    core/       - Configuration, logging, exceptions
    spotify/    - Spotify API client and models
    image/      - Placeholder JPEG generation and comment segments
    sync/       - Definition codec, cover provisioning, reconciliation,
                  and the Synchronizer orchestrator
    utils/      - Playlist ID parsing and duration formatting
    cli.py      - Command-line interface

Usage:
    Command Line:
        spot-sync create "Mix" -i <playlist> -i <playlist> -e <playlist>
        spot-sync list
        spot-sync sync --all

    Python API:
        from spot_synchronizer.core import load_config, setup_logging
        from spot_synchronizer.spotify import SpotifyClient
        from spot_synchronizer.sync import CoverProvisioner, Synchronizer

        config = load_config()
        setup_logging(config.output.directory)

        client = SpotifyClient.from_config(config.spotify)
        synchronizer = Synchronizer(
            client,
            CoverProvisioner(client, config.sync),
            threads=config.sync.threads
        )

        for synchronized in synchronizer.discover():
            synchronizer.synchronize(synchronized)

Configuration:
    Requires a config.yaml file in the current directory:

        spotify:
          client_id: "your_client_id"
          client_secret: null
          redirect_uri: "http://127.0.0.1:8888/callback"

        output:
          directory: "~/.spot-synchronizer"

        sync:
          threads: 4

Dependencies:
    - spotipy: Spotify API client and OAuth/PKCE token handling
    - Pillow: JPEG generation and comment segments
    - requests: Cover image downloads
    - pyyaml: Configuration file parsing
    - python-dotenv: Credential overrides from .env
    - click: CLI framework
    - rich-click: CLI colors
    - tqdm: Progress bars
"""

__version__ = "0.1.0"
__author__ = "spot-synchronizer"
__license__ = "MIT"

# Convenience imports for common usage
from spot_synchronizer.core import (
    Config,
    ConfigError,
    SpotifyError,
    SpotSynchronizerError,
    get_logger,
    load_config,
    setup_logging,
)
from spot_synchronizer.spotify import Playlist, SpotifyClient, Track
from spot_synchronizer.sync import (
    CoverProvisioner,
    SynchronizationDefinition,
    SynchronizedPlaylist,
    Synchronizer,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "setup_logging",
    "get_logger",
    # Exceptions
    "SpotSynchronizerError",
    "ConfigError",
    "SpotifyError",
    # Spotify
    "SpotifyClient",
    "Track",
    "Playlist",
    # Synchronization
    "CoverProvisioner",
    "SynchronizationDefinition",
    "SynchronizedPlaylist",
    "Synchronizer",
]
