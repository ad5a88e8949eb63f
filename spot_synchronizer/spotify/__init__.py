"""
Spotify integration module for spot-synchronizer.

This module provides all functionality for interacting with the Spotify API:
    - SpotifyClient: API client used by the synchronization engine
    - create_auth_manager: builds the token provider from configuration
    - Track, Playlist, CoverImage: Data models for Spotify entities

Usage:
    from spot_synchronizer.spotify import SpotifyClient, Playlist

    client = SpotifyClient.from_config(config.spotify)
    playlist = client.playlist("37i9dQZF1DXcBWIGoYBM5M")
"""

from spot_synchronizer.spotify.client import (
    SpotifyClient,
    clear_token_cache,
    create_auth_manager,
)
from spot_synchronizer.spotify.models import CoverImage, Playlist, Track

__all__ = [
    # Client
    "SpotifyClient",
    "create_auth_manager",
    "clear_token_cache",
    # Models
    "Track",
    "Playlist",
    "CoverImage",
]
