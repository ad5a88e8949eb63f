"""
Data models for Spotify entities.

This module defines immutable dataclasses representing the Spotify objects
the synchronization engine reads and writes: tracks, playlists and playlist
cover images.

Design Decisions:
    - All dataclasses are frozen (immutable) to prevent accidental modification
    - Only the fields the engine needs are kept; raw API payloads are not stored
    - A Track is identified by its URI alone; name and duration are cosmetic

Usage:
    from spot_synchronizer.spotify.models import Track, Playlist

    playlist = Playlist.from_spotify_api(client.playlist(playlist_id))
    print(playlist.name, playlist.cover_url)
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CoverImage:
    """
    One image variant of a playlist cover as reported by Spotify.

    Attributes:
        url: Fetchable URL of the image.
        width: Width in pixels, or None when Spotify reports no size.
        height: Height in pixels, or None when Spotify reports no size.
                Custom uploaded covers settle with height None once
                Spotify has finished processing them.
    """
    url: str
    width: int | None = None
    height: int | None = None

    @classmethod
    def from_spotify_api(cls, image_data: dict[str, Any]) -> "CoverImage":
        return cls(
            url=image_data["url"],
            width=image_data.get("width"),
            height=image_data.get("height"),
        )

    @classmethod
    def from_image_list(cls, images: list[dict[str, Any]] | None) -> "CoverImage | None":
        """
        Pick the cover variant from Spotify's 'images' list.

        Spotify lists variants from largest to smallest; the last entry is
        the one used everywhere in this application (it is also the only
        entry for a freshly uploaded custom cover).

        Returns:
            The last image variant, or None if the list is missing or empty.
        """
        if not images:
            return None
        return cls.from_spotify_api(images[-1])


@dataclass(frozen=True)
class Track:
    """
    Immutable representation of a track inside a playlist.

    Attributes:
        uri: Spotify URI, the identity used for every set operation.
             Example: "spotify:track:4cOdK2wGLETKBW3PvgPWqT"
        name: Track title, display only.
        duration_ms: Duration in milliseconds, display only.
    """
    uri: str
    name: str
    duration_ms: int = 0

    @classmethod
    def from_spotify_api(cls, track_data: dict[str, Any]) -> "Track":
        """
        Create a Track from the 'track' object of a playlist item.

        Args:
            track_data: The track object (playlist_items()["items"][i]["track"]).

        Returns:
            Track: A new Track instance.
        """
        return cls(
            uri=track_data["uri"],
            name=track_data.get("name") or "",
            duration_ms=track_data.get("duration_ms") or 0,
        )

    @staticmethod
    def is_valid_item(item: dict[str, Any]) -> bool:
        """
        Check whether a playlist item can take part in synchronization.

        Items are skipped when the track was removed from Spotify (track is
        None or carries no URI) or when it is a local file, since local
        files cannot be added to another playlist through the Web API.
        """
        track_data = item.get("track")
        if not track_data:
            return False
        if item.get("is_local") or track_data.get("is_local"):
            return False
        return bool(track_data.get("uri"))


@dataclass(frozen=True)
class Playlist:
    """
    Immutable representation of a Spotify playlist (without its tracks).

    Attributes:
        id: Unique Spotify playlist ID.
            Example: "37i9dQZF1DXcBWIGoYBM5M"
        name: Playlist name as it appears on Spotify.
        description: Playlist description text. Synchronized playlists
                     carry the literal marker "@synchronized".
        cover: Cover image variant, or None if the playlist has no cover.
        spotify_url: Full Spotify URL for the playlist.
    """
    id: str
    name: str
    description: str = ""
    cover: CoverImage | None = None
    spotify_url: str = ""

    @property
    def cover_url(self) -> str | None:
        """URL of the cover image, or None when there is no cover."""
        return self.cover.url if self.cover is not None else None

    @classmethod
    def from_spotify_api(cls, playlist_data: dict[str, Any]) -> "Playlist":
        """
        Create a Playlist from a Spotify API playlist object.

        Works with both full playlist objects (playlist()) and simplified
        ones (current_user_playlists() items).
        """
        playlist_id = playlist_data["id"]
        return cls(
            id=playlist_id,
            name=playlist_data.get("name") or "",
            description=playlist_data.get("description") or "",
            cover=CoverImage.from_image_list(playlist_data.get("images")),
            spotify_url=(playlist_data.get("external_urls") or {}).get(
                "spotify", f"https://open.spotify.com/playlist/{playlist_id}"
            ),
        )
